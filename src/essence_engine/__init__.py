"""Essence Engine - trait slots, effect resolution and turn-based combat.

The rules core of an incremental RPG: players collect traits with essence,
equip them into a limited number of slots or make them permanent, and the
merged effects of the active traits drive combat resolution.

Example:
    >>> from essence_engine import TraitStore, AcquireTrait, EquipTrait, CombatResolver
    >>>
    >>> store = TraitStore.from_settings()
    >>> store.grant_essence(100)
    >>> store.apply(AcquireTrait(trait_id="BattleHardened"))
    >>> store.apply(EquipTrait(trait_id="BattleHardened"))
    >>>
    >>> resolver = CombatResolver()
    >>> encounter = resolver.start_encounter(PlayerBaseStats(), EnemyRegistry.default().get("goblin"))
    >>> result = resolver.player_attack(encounter, store.modifiers())

Modules:
    core: Configuration, logging, exceptions and constants.
    models: Pydantic V2 schemas for traits, modifiers, combat and commands.
    engine: Registry, slot manager, aggregator, combat resolver and store.
"""

from __future__ import annotations

from essence_engine.core.config import Settings, get_settings
from essence_engine.core.exceptions import EssenceEngineError
from essence_engine.core.logging import configure_logging, get_logger
from essence_engine.engine import (
    CombatResolver,
    EffectAggregator,
    EnemyRegistry,
    TraitRegistry,
    TraitSlotManager,
    TraitStore,
    aggregate,
    compute_derived_stats,
    enemy_attack,
    is_terminal,
    load_trait_definitions,
    player_attack,
    start_encounter,
)
from essence_engine.models import (
    AcquireTrait,
    ClearSlots,
    CombatOutcome,
    CommandResult,
    DiscoverTrait,
    EncounterState,
    EnemyTemplate,
    EquipTrait,
    ModifierRecord,
    PlayerBaseStats,
    PlayerTraitState,
    PromoteTrait,
    TraitDefinition,
    UnequipTrait,
    UnlockSlot,
    get_active_trait_ids,
)


__version__ = "0.1.0"
__all__ = [
    "__version__",
    # Core
    "EssenceEngineError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Traits
    "TraitDefinition",
    "PlayerTraitState",
    "TraitRegistry",
    "TraitSlotManager",
    "TraitStore",
    "load_trait_definitions",
    "get_active_trait_ids",
    # Commands
    "DiscoverTrait",
    "AcquireTrait",
    "EquipTrait",
    "UnequipTrait",
    "PromoteTrait",
    "UnlockSlot",
    "ClearSlots",
    "CommandResult",
    # Effects
    "ModifierRecord",
    "PlayerBaseStats",
    "EffectAggregator",
    "aggregate",
    "compute_derived_stats",
    # Combat
    "EnemyTemplate",
    "EnemyRegistry",
    "EncounterState",
    "CombatOutcome",
    "CombatResolver",
    "start_encounter",
    "player_attack",
    "enemy_attack",
    "is_terminal",
]
