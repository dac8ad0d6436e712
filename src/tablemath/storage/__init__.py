"""Key-value persistence for plugin settings."""

from .models import TableMathSettings
from .settings_store import SettingsStore

__all__ = ["SettingsStore", "TableMathSettings"]
