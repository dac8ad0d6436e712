"""Formula evaluation: arithmetic, function calls and value formatting."""

from .expression import ExpressionError, ExpressionEvaluator, evaluate_expression
from .formatting import NumberFormatter
from .resolver import FormulaSyntaxError, FunctionResolver, tokenize
from .syntax import extract_currency, parse_number, slugify

__all__ = [
    "ExpressionError",
    "ExpressionEvaluator",
    "evaluate_expression",
    "NumberFormatter",
    "FormulaSyntaxError",
    "FunctionResolver",
    "tokenize",
    "extract_currency",
    "parse_number",
    "slugify",
]
