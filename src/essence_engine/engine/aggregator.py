"""Effect aggregation for the active trait set.

Aggregation is a pure function of the active trait ids and the registry.
Results are never cached because the active set changes with every equip,
unequip and promotion.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from essence_engine.core.constants import MULTIPLICATIVE_KEYS
from essence_engine.core.logging import get_logger
from essence_engine.engine.registry import TraitRegistry
from essence_engine.models.modifiers import (
    DerivedStats,
    ModifierRecord,
    PlayerBaseStats,
    neutral_values,
)


logger = get_logger(__name__)

# Products like 100 * 1.15 land a hair under the integer in binary floats.
# Nine places drops that noise but keeps real fractions like 0.9999996.
_FLOOR_PRECISION = 9


def floor_scaled(value: float, factor: float) -> int:
    """Floor ``value * factor`` after trimming float noise.

    Example:
        >>> floor_scaled(10, 1.15)
        11
        >>> floor_scaled(100, 1.15)
        115
    """
    return math.floor(round(value * factor, _FLOOR_PRECISION))


class EffectAggregator:
    """Merges trait effects into a single ModifierRecord.

    Additive keys sum from 0, multiplicative keys multiply from 1, and keys
    the engine does not know are summed and passed through so content can
    introduce effects ahead of the code that reads them.

    Example:
        >>> aggregator = EffectAggregator(TraitRegistry.default())
        >>> aggregator.aggregate(["BattleHardened"]).attack_bonus
        0.1
    """

    def __init__(self, registry: TraitRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> TraitRegistry:
        return self._registry

    def aggregate(self, trait_ids: Iterable[str]) -> ModifierRecord:
        """Combine the effects of every trait in ``trait_ids``.

        Unknown ids are skipped with a warning; content may lag behind a
        save file.

        Args:
            trait_ids: Active trait ids; duplicates count once.

        Returns:
            The merged ModifierRecord.
        """
        values = neutral_values()
        for trait_id in dict.fromkeys(trait_ids):
            definition = self._registry.find(trait_id)
            if definition is None:
                logger.warning("Skipping unknown trait during aggregation", trait_id=trait_id)
                continue
            for key, magnitude in definition.effects.items():
                if key in MULTIPLICATIVE_KEYS:
                    values[key] *= magnitude
                else:
                    values[key] = values.get(key, 0.0) + magnitude
        return ModifierRecord(values=values)

    def contributions(self, trait_ids: Iterable[str]) -> dict[str, dict[str, float]]:
        """Per-trait effect maps for the known ids, for breakdown displays."""
        breakdown: dict[str, dict[str, float]] = {}
        for trait_id in dict.fromkeys(trait_ids):
            definition = self._registry.find(trait_id)
            if definition is not None:
                breakdown[trait_id] = dict(definition.effects)
        return breakdown


def aggregate(trait_ids: Iterable[str], registry: TraitRegistry) -> ModifierRecord:
    """Functional form of EffectAggregator.aggregate."""
    return EffectAggregator(registry).aggregate(trait_ids)


def compute_derived_stats(base: PlayerBaseStats, modifiers: ModifierRecord) -> DerivedStats:
    """Apply attack and defense bonuses to base stats.

    Args:
        base: Stats before traits.
        modifiers: Aggregated trait modifiers.

    Returns:
        DerivedStats with ``attack = floor(base * (1 + attackBonus))`` and
        the same rule for defense; bonuses below -100% bottom out at 0.
    """
    return DerivedStats(
        attack=max(0, floor_scaled(base.attack, 1 + modifiers.attack_bonus)),
        defense=max(0, floor_scaled(base.defense, 1 + modifiers.defense_bonus)),
        max_health=base.max_health,
        max_mana=base.max_mana,
    )


__all__ = [
    "floor_scaled",
    "EffectAggregator",
    "aggregate",
    "compute_derived_stats",
]
