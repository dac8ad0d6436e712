"""Data models for the cross-document index."""

from typing import Optional
from pydantic import BaseModel


class NamedVariable(BaseModel):
    """A value a table row publishes under its slugified label."""

    value: float
    currency: Optional[str] = None


# document name -> variable name -> published value
VariableMap = dict[str, NamedVariable]
IndexData = dict[str, VariableMap]
