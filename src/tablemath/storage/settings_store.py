"""SQLite-backed key-value store for plugin settings."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import aiosqlite
from pydantic import ValidationError

from ..config import settings
from .models import TableMathSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Generic key-value persistence, plus typed access to display options."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or settings.settings_db_path)
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self):
        """Initialize the database and create the settings table."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(str(self.db_path))

        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS plugin_settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        await self._connection.commit()
        logger.info("SettingsStore initialized")

    async def close(self):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    # Raw key-value operations

    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under a key."""
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO plugin_settings (key, value, updated_at)
            VALUES (?, ?, ?)
            """,
            (key, json.dumps(value), datetime.now(timezone.utc).isoformat()),
        )
        await self._connection.commit()

    async def get(self, key: str, default: Any = None) -> Any:
        """Get a stored value, or *default* when absent or unreadable."""
        async with self._connection.execute(
            "SELECT value FROM plugin_settings WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning(f"Ignoring corrupt setting {key!r}")
            return default

    async def delete(self, key: str) -> bool:
        """Delete a stored value."""
        cursor = await self._connection.execute(
            "DELETE FROM plugin_settings WHERE key = ?", (key,)
        )
        await self._connection.commit()
        return cursor.rowcount > 0

    async def all(self) -> dict[str, Any]:
        """Every stored key and value."""
        async with self._connection.execute(
            "SELECT key, value FROM plugin_settings"
        ) as cursor:
            rows = await cursor.fetchall()
        return {key: json.loads(value) for key, value in rows}

    # Typed display options

    async def load_settings(self) -> TableMathSettings:
        """Load display options, merging stored values over the defaults."""
        stored = {}
        for field in TableMathSettings.model_fields:
            value = await self.get(field)
            if value is not None:
                stored[field] = value
        try:
            return TableMathSettings(**stored)
        except ValidationError as e:
            logger.warning(f"Stored settings are invalid, using defaults: {e}")
            return TableMathSettings()

    async def save_settings(self, options: TableMathSettings) -> None:
        """Persist display options."""
        for field, value in options.model_dump().items():
            await self.set(field, value)
        logger.info(f"Saved settings: precision={options.precision}, locale={options.locale}")
