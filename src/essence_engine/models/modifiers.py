"""Modifier records and stat blocks.

A ModifierRecord is the merged effect of a set of active traits. Keys the
engine knows about always have a value (their neutral one when no trait
contributes); unknown keys from content are carried through untouched.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from essence_engine.core.constants import (
    ADDITIVE_KEYS,
    ATTACK_BONUS,
    CRITICAL_CHANCE,
    CRITICAL_DAMAGE,
    DEFENSE_BONUS,
    DODGE_CHANCE,
    ESSENCE_GAIN_MULTIPLIER,
    ESSENCE_SIPHON_CHANCE,
    GOLD_MULTIPLIER,
    MULTIPLICATIVE_KEYS,
    XP_MULTIPLIER,
)


def neutral_value(key: str) -> float:
    """Return the identity value for a modifier key.

    Multiplicative keys are neutral at 1; every other key, known or not,
    is neutral at 0.
    """
    return 1.0 if key in MULTIPLICATIVE_KEYS else 0.0


def neutral_values() -> dict[str, float]:
    """Return a fresh map of every known key at its neutral value."""
    values = {key: 0.0 for key in ADDITIVE_KEYS}
    values.update({key: 1.0 for key in MULTIPLICATIVE_KEYS})
    return values


class ModifierRecord(BaseModel):
    """Flat, immutable map of modifier key to aggregated value.

    ``values`` is a read-only view; use ``as_dict`` for a mutable copy.

    Example:
        >>> record = ModifierRecord.neutral()
        >>> record.attack_bonus, record.xp_multiplier
        (0.0, 1.0)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    values: Mapping[str, float] = Field(default_factory=neutral_values)

    @model_validator(mode="after")
    def fill_known_keys(self) -> ModifierRecord:
        filled = neutral_values()
        filled.update(self.values)
        # frozen model; write the view straight into the instance
        object.__setattr__(self, "values", MappingProxyType(filled))
        return self

    @field_serializer("values")
    def dump_values(self, values: Mapping[str, float]) -> dict[str, float]:
        return dict(values)

    @classmethod
    def neutral(cls) -> ModifierRecord:
        """A record with every known key at its neutral value."""
        return cls()

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> ModifierRecord:
        """Build a record from a partial map, filling unspecified known keys."""
        return cls(values=dict(values))

    def __getitem__(self, key: str) -> float:
        return self.values.get(key, neutral_value(key))

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def get(self, key: str, default: float | None = None) -> float | None:
        if key in self.values:
            return self.values[key]
        return default

    def as_dict(self) -> dict[str, float]:
        return dict(self.values)

    @property
    def unknown_keys(self) -> frozenset[str]:
        """Keys carried from content that the engine does not interpret."""
        return frozenset(self.values) - ADDITIVE_KEYS - MULTIPLICATIVE_KEYS

    @property
    def attack_bonus(self) -> float:
        return self[ATTACK_BONUS]

    @property
    def defense_bonus(self) -> float:
        return self[DEFENSE_BONUS]

    @property
    def dodge_chance(self) -> float:
        return self[DODGE_CHANCE]

    @property
    def critical_chance(self) -> float:
        return self[CRITICAL_CHANCE]

    @property
    def critical_damage(self) -> float:
        return self[CRITICAL_DAMAGE]

    @property
    def essence_siphon_chance(self) -> float:
        return self[ESSENCE_SIPHON_CHANCE]

    @property
    def xp_multiplier(self) -> float:
        return self[XP_MULTIPLIER]

    @property
    def gold_multiplier(self) -> float:
        return self[GOLD_MULTIPLIER]

    @property
    def essence_gain_multiplier(self) -> float:
        return self[ESSENCE_GAIN_MULTIPLIER]


# =============================================================================
# Stat Blocks
# =============================================================================


class PlayerBaseStats(BaseModel):
    """Player combat stats before trait modifiers.

    Attributes:
        attack: Base attack.
        defense: Base defense.
        max_health: Maximum health.
        max_mana: Maximum mana.
        current_health: Health entering combat; ``max_health`` when omitted.
        current_mana: Mana entering combat; ``max_mana`` when omitted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attack: int = Field(default=10, ge=0)
    defense: int = Field(default=5, ge=0)
    max_health: int = Field(default=100, ge=1)
    max_mana: int = Field(default=50, ge=0)
    current_health: int | None = Field(default=None, ge=0)
    current_mana: int | None = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def default_current_values(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            if data.get("current_health") is None:
                data["current_health"] = data.get("max_health", 100)
            if data.get("current_mana") is None:
                data["current_mana"] = data.get("max_mana", 50)
        return data

    @model_validator(mode="after")
    def validate_current_within_max(self) -> PlayerBaseStats:
        if self.current_health is not None and self.current_health > self.max_health:
            msg = f"current_health {self.current_health} exceeds max_health {self.max_health}"
            raise ValueError(msg)
        if self.current_mana is not None and self.current_mana > self.max_mana:
            msg = f"current_mana {self.current_mana} exceeds max_mana {self.max_mana}"
            raise ValueError(msg)
        return self


class DerivedStats(BaseModel):
    """Player stats after trait modifiers."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    attack: int = Field(ge=0)
    defense: int = Field(ge=0)
    max_health: int = Field(ge=1)
    max_mana: int = Field(ge=0)


__all__ = [
    "neutral_value",
    "neutral_values",
    "ModifierRecord",
    "PlayerBaseStats",
    "DerivedStats",
]
