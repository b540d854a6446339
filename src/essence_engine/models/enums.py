"""Enumeration types for the essence engine.

Trait rarity keeps the capitalized spelling used by content files; combat
log types keep the lowercase strings the game UI switches on.
"""

from __future__ import annotations

from enum import StrEnum


class Rarity(StrEnum):
    """Trait rarity tiers, lowest first."""

    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"

    @classmethod
    def _missing_(cls, value: object) -> Rarity | None:
        # Content files are inconsistent about casing.
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None

    @property
    def rank(self) -> int:
        """Ordinal position, 0 for Common."""
        return list(Rarity).index(self)


class SlotUnlockType(StrEnum):
    """How a trait slot becomes usable."""

    DEFAULT = "default"
    LEVEL = "level"
    ESSENCE_EARNED = "essence_earned"


class CombatTurn(StrEnum):
    """Whose action the encounter is waiting on."""

    PLAYER = "player"
    ENEMY = "enemy"


class CombatOutcome(StrEnum):
    """Terminal encounter results."""

    VICTORY = "victory"
    DEFEAT = "defeat"
    RETREAT = "retreat"


class LogEntryType(StrEnum):
    """Combat log entry categories."""

    INFO = "info"
    ATTACK = "attack"
    CRITICAL = "critical"
    DAMAGE = "damage"
    DODGE = "dodge"
    ESSENCE = "essence"
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLEE = "flee"


class Importance(StrEnum):
    """Combat log emphasis level."""

    NORMAL = "normal"
    HIGH = "high"


class CombatEventType(StrEnum):
    """Side effects reported alongside an updated encounter."""

    HIT = "hit"
    CRITICAL_HIT = "critical_hit"
    DODGED = "dodged"
    ESSENCE_SIPHONED = "essence_siphoned"
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"
    FLEE_FAILED = "flee_failed"


__all__ = [
    "Rarity",
    "SlotUnlockType",
    "CombatTurn",
    "CombatOutcome",
    "LogEntryType",
    "Importance",
    "CombatEventType",
]
