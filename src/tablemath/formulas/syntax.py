"""Formula syntax definitions, literal parsing and name normalization."""

import re
from typing import Optional, Pattern

FORMULA_MARKER = "="

# Header divider row: only dashes, colons, pipes and whitespace
SEPARATOR_PATTERN: Pattern = re.compile(r"^[-:|\s]*$")

# Display currency: ",CCC" followed by another argument or the closing paren
CURRENCY_HINT_PATTERN: Pattern = re.compile(r",\s*([A-Z]{3})(?:\s*,|\s*\))", re.IGNORECASE)

# A cell consisting of a single NOTE lookup
NOTE_CELL_PATTERN: Pattern = re.compile(r'^=NOTE\("([^"]+)"\)\.(\w+)$', re.IGNORECASE)

# Inline markup stripped from variable labels: **bold**, *em*, _em_, ~~strike~~, ==mark==
MARKUP_PATTERN: Pattern = re.compile(r"\*\*|\*|_|~~(.+?)~~|==(.+?)==")

# Symbols dropped before parsing a literal number
LITERAL_NOISE_PATTERN: Pattern = re.compile(r"[,$€£¥₹]")

# Longest numeric prefix, the way a lenient float parser reads "12 kg" as 12
NUMERIC_PREFIX_PATTERN: Pattern = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Quick document pre-filter used by bulk indexing
FUNCTION_CALL_HINTS = ("=SUM(", "=AVG(", "=MIN(", "=MAX(", "=NOTE(")


def is_formula(content: str) -> bool:
    """Return True when a cell's content is a formula."""
    return content.startswith(FORMULA_MARKER)


def is_separator(content: str) -> bool:
    """Return True when a cell belongs to a header divider row."""
    return bool(SEPARATOR_PATTERN.match(content))


def parse_number(text: str) -> Optional[float]:
    """
    Parse a literal cell value.

    Currency symbols and thousands separators are stripped first. The
    longest numeric prefix is used, so "12 kg" reads as 12. Text with no
    numeric prefix yields None rather than zero.
    """
    cleaned = LITERAL_NOISE_PATTERN.sub("", text).strip()
    match = NUMERIC_PREFIX_PATTERN.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def extract_currency(formula: str) -> Optional[str]:
    """Find the display currency code in a formula, if any."""
    match = CURRENCY_HINT_PATTERN.search(formula)
    return match.group(1).upper() if match else None


def slugify(label: str) -> str:
    """
    Turn a row label into a variable name.

    Examples:
        "**Total Cost**" -> "total_cost"
        "Net (after tax)" -> "net_after_tax"
    """
    plain = MARKUP_PATTERN.sub(lambda m: (m.group(1) or "") + (m.group(2) or ""), label)
    return re.sub(r"[^a-z0-9]+", "_", plain.lower()).strip("_")


def might_contain_formulas(text: str) -> bool:
    """Cheap check for documents worth indexing."""
    if "|" not in text or "=" not in text:
        return False
    upper = text.upper()
    return any(hint in upper for hint in FUNCTION_CALL_HINTS)
