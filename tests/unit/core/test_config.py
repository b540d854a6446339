"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from essence_engine.core.config import (
    CombatSettings,
    Settings,
    TraitSettings,
    clear_settings_cache,
    get_settings,
)
from essence_engine.core.exceptions import ConfigurationError


class TestTraitSettings:
    """Tests for TraitSettings configuration."""

    def test_default_layout(self) -> None:
        """Test the default slot layout."""
        settings = TraitSettings()

        types = [rule.type for rule in settings.slot_unlocks]
        assert types == ["default", "default", "default", "level", "level", "essence_earned"]
        assert settings.slot_unlocks[3].threshold == 5
        assert settings.max_presets == 5

    def test_empty_layout_rejected(self) -> None:
        """Test that at least one slot is required."""
        with pytest.raises(ConfigurationError) as exc_info:
            TraitSettings(slot_unlocks=[])

        assert "slot_unlocks" in str(exc_info.value)

    def test_layout_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the layout can be given as JSON in the environment."""
        monkeypatch.setenv(
            "ESSENCE_ENGINE_TRAITS_SLOT_UNLOCKS",
            '[{"type": "default"}, {"type": "level", "threshold": 2}]',
        )

        settings = TraitSettings()

        assert len(settings.slot_unlocks) == 2
        assert settings.slot_unlocks[1].threshold == 2


class TestCombatSettings:
    """Tests for CombatSettings configuration."""

    def test_default_values(self) -> None:
        """Test default combat tuning."""
        settings = CombatSettings()

        assert settings.essence_siphon_ratio == 0.2
        assert settings.enemy_damage_variance == 2
        assert settings.flee_chance == 0.5
        assert settings.level_scaling_factor == 0.2
        assert settings.strict_actions is False
        assert settings.seed is None

    def test_env_override(self, mock_env_vars: dict[str, str]) -> None:
        """Test environment variables override defaults."""
        assert CombatSettings().flee_chance == 0.75


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default settings initialization."""
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.app_name == "Essence Engine"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.content_path is None
        assert settings.effective_log_level == "INFO"

    def test_debug_mode(self, tmp_path: Path, mock_env_vars: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
        """Test debug mode and log level from the environment."""
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.effective_log_level == "DEBUG"

    def test_debug_overrides_log_level(self) -> None:
        """Test debug forces DEBUG logging."""
        assert Settings(debug=True, log_level="ERROR").effective_log_level == "DEBUG"
        assert Settings(log_level="ERROR").effective_log_level == "ERROR"

    def test_missing_content_path(self, tmp_path: Path) -> None:
        """Test a content path that does not exist is rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(content_path=tmp_path / "missing.json")

        assert "content_path" in str(exc_info.value)

    def test_existing_content_path(self, tmp_path: Path) -> None:
        """Test a real content file is accepted."""
        content = tmp_path / "traits.json"
        content.write_text("{}", encoding="utf-8")

        assert Settings(content_path=content).content_path == content


class TestGetSettings:
    """Tests for get_settings singleton function."""

    def test_caching(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that settings are cached."""
        monkeypatch.chdir(tmp_path)
        clear_settings_cache()

        assert get_settings() is get_settings()

    def test_cache_clear(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that cache can be cleared."""
        monkeypatch.chdir(tmp_path)

        settings1 = get_settings()
        clear_settings_cache()
        settings2 = get_settings()

        assert settings1 is not settings2

    def test_invalid_env_wrapped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test invalid environment values surface as ConfigurationError."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ESSENCE_ENGINE_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            get_settings()
