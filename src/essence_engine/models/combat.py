"""Pydantic V2 schemas for single-enemy encounters.

The resolver never mutates an encounter it is given; every action returns
a new EncounterState together with the events it produced.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from essence_engine.core.constants import STARTING_ROUND
from essence_engine.models.enums import (
    CombatEventType,
    CombatOutcome,
    CombatTurn,
    Importance,
    LogEntryType,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Enemies
# =============================================================================


class EnemyTemplate(BaseModel):
    """Unscaled enemy stats as stored in content.

    Attributes:
        id: Template identifier.
        name: Display name.
        base_health: Health at level 1, normal difficulty.
        base_attack: Attack at level 1.
        base_defense: Defense at level 1.
        base_experience: Experience reward at level 1.
        base_gold: Gold reward at level 1.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    base_health: int = Field(ge=1, alias="health")
    base_attack: int = Field(ge=0, alias="attack")
    base_defense: int = Field(ge=0, alias="defense")
    base_experience: int = Field(default=0, ge=0, alias="experience")
    base_gold: int = Field(default=0, ge=0, alias="gold")


class EnemyState(BaseModel):
    """A scaled enemy inside an encounter."""

    model_config = ConfigDict(extra="forbid")

    template_id: str | None = None
    name: str
    level: int = Field(default=1, ge=1)
    current_health: int = Field(ge=0)
    max_health: int = Field(ge=1)
    attack: int = Field(ge=0)
    defense: int = Field(ge=0)
    experience_reward: int = Field(default=0, ge=0)
    gold_reward: int = Field(default=0, ge=0)

    @property
    def is_defeated(self) -> bool:
        return self.current_health <= 0


class PlayerCombatState(BaseModel):
    """The player's side of an encounter.

    ``base_attack`` and ``base_defense`` are pre-modifier values; trait
    modifiers are applied on every action so mid-fight loadout changes are
    honored.
    """

    model_config = ConfigDict(extra="forbid")

    current_health: int = Field(ge=0)
    max_health: int = Field(ge=1)
    current_mana: int = Field(default=0, ge=0)
    max_mana: int = Field(default=0, ge=0)
    base_attack: int = Field(ge=0)
    base_defense: int = Field(ge=0)

    @property
    def is_defeated(self) -> bool:
        return self.current_health <= 0


# =============================================================================
# Log and Events
# =============================================================================


class CombatLogEntry(BaseModel):
    """One line of the append-only combat log."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime = Field(default_factory=_utcnow)
    message: str
    type: LogEntryType = LogEntryType.INFO
    importance: Importance = Importance.NORMAL


class CombatEvent(BaseModel):
    """A side effect of one action, for callers that update other state.

    Attributes:
        type: What happened.
        actor: ``player`` or ``enemy``.
        amount: Damage dealt or essence siphoned, when applicable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: CombatEventType
    actor: CombatTurn
    amount: int = 0


class Rewards(BaseModel):
    """Rewards granted on victory, after trait multipliers."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    experience: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)


# =============================================================================
# Encounter
# =============================================================================


class EncounterState(BaseModel):
    """Full state of one player-versus-enemy encounter.

    Attributes:
        id: Unique encounter ID.
        round: Starts at 1 and advances by 0.5 per action.
        turn: Side expected to act next.
        player: Player combat values.
        enemy: Scaled enemy.
        log: Append-only combat log.
        active: False once the encounter is resolved.
        outcome: Terminal result, if resolved.
        rewards: Victory rewards, if won.
        essence_siphoned: Essence gained from siphon procs so far.
    """

    model_config = ConfigDict(extra="forbid")

    id: UUID = Field(default_factory=uuid4, description="Unique encounter ID")
    round: float = Field(default=STARTING_ROUND, ge=STARTING_ROUND)
    turn: CombatTurn = CombatTurn.PLAYER
    player: PlayerCombatState
    enemy: EnemyState
    log: list[CombatLogEntry] = Field(default_factory=list)
    active: bool = True
    outcome: CombatOutcome | None = None
    rewards: Rewards | None = None
    essence_siphoned: int = Field(default=0, ge=0)
    started_at: datetime = Field(default_factory=_utcnow)
    ended_at: datetime | None = None

    @property
    def player_turn(self) -> bool:
        """True while waiting on the player."""
        return self.active and self.turn == CombatTurn.PLAYER


class CombatTurnResult(BaseModel):
    """An updated encounter plus what the action did.

    Attributes:
        encounter: The encounter after the action.
        events: Side effects, in order.
        applied: False when the action was ignored (wrong turn, resolved).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    encounter: EncounterState
    events: list[CombatEvent] = Field(default_factory=list)
    applied: bool = True

    @property
    def essence_gained(self) -> int:
        return sum(e.amount for e in self.events if e.type == CombatEventType.ESSENCE_SIPHONED)

    @property
    def damage_dealt(self) -> int:
        """Damage landed by this action, 0 on a dodge."""
        return sum(
            e.amount
            for e in self.events
            if e.type in (CombatEventType.HIT, CombatEventType.CRITICAL_HIT)
        )


__all__ = [
    "EnemyTemplate",
    "EnemyState",
    "PlayerCombatState",
    "CombatLogEntry",
    "CombatEvent",
    "Rewards",
    "EncounterState",
    "CombatTurnResult",
]
