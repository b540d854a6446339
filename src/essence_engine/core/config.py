"""Configuration management for the essence engine.

Settings come from environment variables and an optional ``.env`` file via
pydantic-settings. Combat tuning and the slot layout are configurable so
balance changes need no code edits.

Example:
    >>> from essence_engine.core.config import get_settings
    >>> get_settings().combat.flee_chance
    0.5

Environment Variables:
    ESSENCE_ENGINE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    ESSENCE_ENGINE_CONTENT_PATH: Trait content file replacing the bundled data
    ESSENCE_ENGINE_TRAITS_SLOT_UNLOCKS: JSON list of slot unlock rules
    ESSENCE_ENGINE_COMBAT_FLEE_CHANCE: Probability that fleeing succeeds
    ESSENCE_ENGINE_COMBAT_STRICT_ACTIONS: Raise on out-of-turn combat actions
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from essence_engine.core.exceptions import ConfigurationError


ENV_PREFIX = "ESSENCE_ENGINE_"


def _env_config(section: str = "", **extra: str) -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=f"{ENV_PREFIX}{section}",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        **extra,
    )


class SlotUnlockRule(BaseModel):
    """How one slot becomes usable.

    ``default`` slots start unlocked. ``level`` and ``essence_earned`` slots
    open once the player's level or cumulative earned essence reaches
    ``threshold``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["default", "level", "essence_earned"] = "default"
    threshold: int = Field(default=0, ge=0)


def _default_slot_unlocks() -> list[SlotUnlockRule]:
    starting = [SlotUnlockRule() for _ in range(3)]
    return [
        *starting,
        SlotUnlockRule(type="level", threshold=5),
        SlotUnlockRule(type="level", threshold=10),
        SlotUnlockRule(type="essence_earned", threshold=500),
    ]


class TraitSettings(BaseSettings):
    """Slot layout and loadout limits. List position in ``slot_unlocks`` is the slot index."""

    model_config = _env_config("TRAITS_")

    slot_unlocks: list[SlotUnlockRule] = Field(
        default_factory=_default_slot_unlocks,
        description="Ordered slot unlock rules",
    )
    max_presets: int = Field(default=5, ge=0, le=50, description="Maximum saved loadout presets")

    @field_validator("slot_unlocks", mode="after")
    @classmethod
    def require_a_slot(cls, value: list[SlotUnlockRule]) -> list[SlotUnlockRule]:
        if not value:
            raise ConfigurationError("At least one trait slot must be configured", config_key="slot_unlocks")
        return value


class CombatSettings(BaseSettings):
    """Combat tuning.

    Attributes:
        base_critical_chance: Critical chance every player has before traits.
        base_critical_damage: Critical multiplier bonus before traits.
        essence_siphon_ratio: Share of dealt damage returned as essence.
        enemy_damage_variance: Enemy hits vary uniformly by up to this much.
        flee_chance: Success probability of a flee attempt.
        level_scaling_factor: Enemy stat growth for each level above 1.
        strict_actions: Raise on out-of-turn actions instead of ignoring them.
        seed: Seeds the combat random source for reproducible fights.
    """

    model_config = _env_config("COMBAT_")

    base_critical_chance: float = Field(default=0.0, ge=0.0, le=1.0)
    base_critical_damage: float = Field(default=0.0, ge=0.0)
    essence_siphon_ratio: float = Field(default=0.2, gt=0.0, le=1.0)
    enemy_damage_variance: int = Field(default=2, ge=0, le=20)
    flee_chance: float = Field(default=0.5, ge=0.0, le=1.0)
    level_scaling_factor: float = Field(default=0.2, ge=0.0)
    strict_actions: bool = False
    seed: int | None = None


class Settings(BaseSettings):
    """Top-level engine settings.

    Nested sections can be set with a double underscore, e.g.
    ``ESSENCE_ENGINE_COMBAT__SEED=7``. ``debug`` forces DEBUG logging
    regardless of ``log_level``.
    """

    model_config = _env_config(env_nested_delimiter="__")

    app_name: str = Field(default="Essence Engine", description="Engine name")
    debug: bool = Field(default=False, description="Log at DEBUG level")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(default=False, description="Render logs as JSON lines")
    content_path: Path | None = Field(
        default=None,
        description="Trait content file overriding the bundled data",
    )

    traits: TraitSettings = Field(default_factory=TraitSettings)
    combat: CombatSettings = Field(default_factory=CombatSettings)

    @model_validator(mode="after")
    def check_content_path(self) -> "Settings":
        if self.content_path is not None and not self.content_path.is_file():
            raise ConfigurationError(
                f"Trait content file not found: {self.content_path}",
                config_key="content_path",
            )
        return self

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use.

    Raises:
        ConfigurationError: If the environment holds invalid values.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load engine settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    get_settings.cache_clear()


__all__ = [
    "ENV_PREFIX",
    "SlotUnlockRule",
    "TraitSettings",
    "CombatSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
