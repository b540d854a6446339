"""Pydantic V2 schemas for traits, modifiers, combat and commands."""

from __future__ import annotations

from essence_engine.models.combat import (
    CombatEvent,
    CombatLogEntry,
    CombatTurnResult,
    EncounterState,
    EnemyState,
    EnemyTemplate,
    PlayerCombatState,
    Rewards,
)
from essence_engine.models.commands import (
    AcquireTrait,
    ClearSlots,
    CombatCommand,
    CommandResult,
    DeletePreset,
    DiscoverTrait,
    EnemyAttack,
    EquipTrait,
    EvolveTrait,
    Flee,
    IncreaseAffinity,
    LoadPreset,
    PlayerAttack,
    PromoteTrait,
    SavePreset,
    SwapTraits,
    TraitCommand,
    UnequipTrait,
    UnlockSlot,
    parse_combat_command,
    parse_trait_command,
)
from essence_engine.models.enums import (
    CombatEventType,
    CombatOutcome,
    CombatTurn,
    Importance,
    LogEntryType,
    Rarity,
    SlotUnlockType,
)
from essence_engine.models.modifiers import (
    DerivedStats,
    ModifierRecord,
    PlayerBaseStats,
)
from essence_engine.models.traits import (
    PlayerTraitState,
    SlotUnlockRequirement,
    TraitDefinition,
    TraitEffect,
    TraitRequirements,
    TraitSlot,
    create_player_trait_state,
    get_active_trait_ids,
    normalize_effects,
)


__all__ = [
    # Enums
    "Rarity",
    "SlotUnlockType",
    "CombatTurn",
    "CombatOutcome",
    "LogEntryType",
    "Importance",
    "CombatEventType",
    # Traits
    "TraitEffect",
    "TraitRequirements",
    "TraitDefinition",
    "SlotUnlockRequirement",
    "TraitSlot",
    "PlayerTraitState",
    "normalize_effects",
    "get_active_trait_ids",
    "create_player_trait_state",
    # Modifiers
    "ModifierRecord",
    "PlayerBaseStats",
    "DerivedStats",
    # Combat
    "EnemyTemplate",
    "EnemyState",
    "PlayerCombatState",
    "CombatLogEntry",
    "CombatEvent",
    "Rewards",
    "EncounterState",
    "CombatTurnResult",
    # Commands
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
    "parse_trait_command",
    "parse_combat_command",
    "CommandResult",
]
