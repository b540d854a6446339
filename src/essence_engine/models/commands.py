"""Command and result schemas for the trait and combat entry points.

Commands form closed discriminated unions on ``type`` so raw payloads from a
UI or save replay can be parsed with a single TypeAdapter. Every command
produces a CommandResult; engine errors become failure results with a
stable ``error_code`` instead of propagating to the caller.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from essence_engine.core.exceptions import EssenceEngineError


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    command_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.now)


# =============================================================================
# Trait Commands
# =============================================================================


class DiscoverTrait(_Command):
    """Mark a trait as seen by the player."""

    type: Literal["discover_trait"] = "discover_trait"
    trait_id: str = Field(min_length=1)


class AcquireTrait(_Command):
    """Buy a trait with essence.

    ``essence_cost`` overrides the definition's cost when given.
    """

    type: Literal["acquire_trait"] = "acquire_trait"
    trait_id: str = Field(min_length=1)
    essence_cost: int | None = Field(default=None, ge=0)


class EquipTrait(_Command):
    """Place an acquired trait in a slot (lowest free slot when omitted)."""

    type: Literal["equip_trait"] = "equip_trait"
    trait_id: str = Field(min_length=1)
    slot_index: int | None = Field(default=None, ge=0)


class UnequipTrait(_Command):
    """Remove a trait from its slot, by trait id or by slot index."""

    type: Literal["unequip_trait"] = "unequip_trait"
    trait_id: str | None = None
    slot_index: int | None = Field(default=None, ge=0)


class PromoteTrait(_Command):
    """Make an acquired trait permanently active."""

    type: Literal["promote_trait"] = "promote_trait"
    trait_id: str = Field(min_length=1)
    essence_cost: int = Field(default=0, ge=0)


class UnlockSlot(_Command):
    """Unlock a slot directly, bypassing its requirement."""

    type: Literal["unlock_slot"] = "unlock_slot"
    slot_index: int = Field(ge=0)


class SwapTraits(_Command):
    """Exchange the slots of two equipped traits."""

    type: Literal["swap_traits"] = "swap_traits"
    first_trait_id: str = Field(min_length=1)
    second_trait_id: str = Field(min_length=1)


class ClearSlots(_Command):
    """Empty every slot."""

    type: Literal["clear_slots"] = "clear_slots"


class SavePreset(_Command):
    """Store the current slot layout under a name."""

    type: Literal["save_preset"] = "save_preset"
    name: str = Field(min_length=1, max_length=64)


class LoadPreset(_Command):
    """Re-equip a saved layout, skipping traits that are no longer eligible."""

    type: Literal["load_preset"] = "load_preset"
    name: str = Field(min_length=1, max_length=64)


class DeletePreset(_Command):
    """Forget a saved layout."""

    type: Literal["delete_preset"] = "delete_preset"
    name: str = Field(min_length=1, max_length=64)


class EvolveTrait(_Command):
    """Replace an owned trait with one of its evolutions, keeping its slot."""

    type: Literal["evolve_trait"] = "evolve_trait"
    trait_id: str = Field(min_length=1)
    evolution_choice: str = Field(min_length=1)


class IncreaseAffinity(_Command):
    """Add affinity points to a trait category."""

    type: Literal["increase_affinity"] = "increase_affinity"
    category: str = Field(min_length=1)
    amount: int = Field(default=1, ge=1)


TraitCommand = Annotated[
    DiscoverTrait
    | AcquireTrait
    | EquipTrait
    | UnequipTrait
    | PromoteTrait
    | UnlockSlot
    | SwapTraits
    | ClearSlots
    | SavePreset
    | LoadPreset
    | DeletePreset
    | EvolveTrait
    | IncreaseAffinity,
    Field(discriminator="type"),
]


# =============================================================================
# Combat Commands
# =============================================================================


class PlayerAttack(_Command):
    """Player's basic attack against the enemy."""

    type: Literal["player_attack"] = "player_attack"


class EnemyAttack(_Command):
    """Enemy's attack against the player."""

    type: Literal["enemy_attack"] = "enemy_attack"


class Flee(_Command):
    """Attempt to leave the encounter."""

    type: Literal["flee"] = "flee"


CombatCommand = Annotated[
    PlayerAttack | EnemyAttack | Flee,
    Field(discriminator="type"),
]


trait_command_adapter: TypeAdapter[TraitCommand] = TypeAdapter(TraitCommand)
combat_command_adapter: TypeAdapter[CombatCommand] = TypeAdapter(CombatCommand)


def parse_trait_command(payload: dict[str, Any]) -> TraitCommand:
    """Parse a raw payload into a trait command.

    Raises:
        pydantic.ValidationError: If ``type`` is unknown or fields are invalid.

    Example:
        >>> parse_trait_command({"type": "equip_trait", "trait_id": "battle_hardened"}).trait_id
        'battle_hardened'
    """
    return trait_command_adapter.validate_python(payload)


def parse_combat_command(payload: dict[str, Any]) -> CombatCommand:
    """Parse a raw payload into a combat command."""
    return combat_command_adapter.validate_python(payload)


# =============================================================================
# Results
# =============================================================================


class CommandResult(BaseModel):
    """Outcome of applying one command.

    Attributes:
        command_id: ID of the command this answers.
        command_type: The command's ``type`` tag.
        success: Whether the command took effect (no-ops count as success).
        message: Human-readable summary.
        error_code: Stable code of the failure, if any.
        error_details: Context carried by the failure, if any.
        value: Command-specific payload, e.g. the slot index used.
    """

    model_config = ConfigDict(frozen=True)

    command_id: UUID
    command_type: str
    success: bool
    message: str
    error_code: str | None = None
    error_details: dict[str, Any] = Field(default_factory=dict)
    value: Any = None

    @classmethod
    def ok(cls, command: _Command, message: str, value: Any = None) -> CommandResult:
        return cls(
            command_id=command.command_id,
            command_type=command.type,  # type: ignore[attr-defined]
            success=True,
            message=message,
            value=value,
        )

    @classmethod
    def failure(cls, command: _Command, error: EssenceEngineError) -> CommandResult:
        """Build a failed result from an engine error."""
        return cls(
            command_id=command.command_id,
            command_type=command.type,  # type: ignore[attr-defined]
            success=False,
            message=error.message,
            error_code=error.code,
            error_details=dict(error.details),
        )


__all__ = [
    "DiscoverTrait",
    "AcquireTrait",
    "EquipTrait",
    "UnequipTrait",
    "PromoteTrait",
    "UnlockSlot",
    "SwapTraits",
    "ClearSlots",
    "SavePreset",
    "LoadPreset",
    "DeletePreset",
    "EvolveTrait",
    "IncreaseAffinity",
    "TraitCommand",
    "PlayerAttack",
    "EnemyAttack",
    "Flee",
    "CombatCommand",
    "trait_command_adapter",
    "combat_command_adapter",
    "parse_trait_command",
    "parse_combat_command",
    "CommandResult",
]
