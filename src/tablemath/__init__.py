"""tablemath: spreadsheet-style formulas inside markdown tables."""

__version__ = "0.1.0"
