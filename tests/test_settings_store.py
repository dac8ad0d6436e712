"""Tests for the SQLite settings store."""

import pytest

from tablemath.storage import TableMathSettings


class TestKeyValue:
    """Test raw key-value access."""

    @pytest.mark.asyncio
    async def test_set_get_delete(self, settings_store):
        await settings_store.set("theme", {"dark": True})
        assert await settings_store.get("theme") == {"dark": True}
        assert await settings_store.all() == {"theme": {"dark": True}}

        assert await settings_store.delete("theme")
        assert await settings_store.get("theme", "none") == "none"
        assert not await settings_store.delete("theme")

    @pytest.mark.asyncio
    async def test_overwrite(self, settings_store):
        await settings_store.set("precision", 2)
        await settings_store.set("precision", 4)
        assert await settings_store.get("precision") == 4


class TestDisplayOptions:
    """Test typed settings."""

    @pytest.mark.asyncio
    async def test_defaults_when_empty(self, settings_store):
        options = await settings_store.load_settings()
        assert options == TableMathSettings()

    @pytest.mark.asyncio
    async def test_save_and_load(self, settings_store):
        await settings_store.save_settings(TableMathSettings(precision=4, locale="fr-FR"))
        options = await settings_store.load_settings()
        assert options.precision == 4
        assert options.locale == "fr-FR"

    @pytest.mark.asyncio
    async def test_partial_values_merge_with_defaults(self, settings_store):
        await settings_store.set("locale", "de-DE")
        options = await settings_store.load_settings()
        assert options.locale == "de-DE"
        assert options.precision == TableMathSettings().precision

    @pytest.mark.asyncio
    async def test_invalid_values_fall_back(self, settings_store):
        await settings_store.set("precision", 50)
        assert await settings_store.load_settings() == TableMathSettings()

    def test_model_bounds(self):
        with pytest.raises(ValueError):
            TableMathSettings(precision=11)
        with pytest.raises(ValueError):
            TableMathSettings(locale="")
