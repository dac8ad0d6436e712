"""User-facing display options."""

from pydantic import BaseModel, Field

from ..config import settings


class TableMathSettings(BaseModel):
    """Options that control how computed values are displayed."""

    precision: int = Field(default=settings.precision, ge=0, le=10)
    locale: str = Field(default=settings.locale, min_length=1)
