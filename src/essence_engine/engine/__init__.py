"""Trait registry, slot management, effect aggregation and combat resolution."""

from __future__ import annotations

from essence_engine.engine.aggregator import (
    EffectAggregator,
    aggregate,
    compute_derived_stats,
    floor_scaled,
)
from essence_engine.engine.chance import ChanceRoll, ChanceRoller
from essence_engine.engine.combat import (
    CombatResolver,
    enemy_attack,
    is_terminal,
    level_multiplier_for,
    player_attack,
    round_half_up,
    start_encounter,
)
from essence_engine.engine.registry import (
    EnemyRegistry,
    TraitRegistry,
    load_trait_definitions,
)
from essence_engine.engine.slots import TraitSlotManager
from essence_engine.engine.store import TraitStore


__all__ = [
    # Registry
    "TraitRegistry",
    "EnemyRegistry",
    "load_trait_definitions",
    # Slots
    "TraitSlotManager",
    "TraitStore",
    # Aggregation
    "EffectAggregator",
    "aggregate",
    "compute_derived_stats",
    "floor_scaled",
    # Combat
    "ChanceRoll",
    "ChanceRoller",
    "CombatResolver",
    "level_multiplier_for",
    "round_half_up",
    "start_encounter",
    "player_attack",
    "enemy_attack",
    "is_terminal",
]
