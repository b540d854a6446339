"""Single owner of the player's trait state.

Game code reads through ``snapshot()`` and changes state only by sending
commands to ``apply()``. The store also handles progress events (essence
gains, level ups) that can unlock slots.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from essence_engine.core.logging import get_logger
from essence_engine.engine.aggregator import EffectAggregator, compute_derived_stats
from essence_engine.engine.registry import TraitRegistry
from essence_engine.engine.slots import TraitSlotManager
from essence_engine.models.commands import CommandResult, TraitCommand
from essence_engine.models.modifiers import DerivedStats, ModifierRecord, PlayerBaseStats
from essence_engine.models.traits import PlayerTraitState, create_player_trait_state


if TYPE_CHECKING:
    from essence_engine.core.config import Settings


logger = get_logger(__name__)


class TraitStore:
    """Owns a PlayerTraitState and serializes every change to it.

    Example:
        >>> store = TraitStore.from_settings()
        >>> store.grant_essence(100)
        100
        >>> store.apply(AcquireTrait(trait_id="BattleHardened")).success
        True
    """

    def __init__(
        self,
        registry: TraitRegistry,
        state: PlayerTraitState | None = None,
        *,
        max_presets: int | None = None,
    ) -> None:
        if state is None or max_presets is None:
            from essence_engine.core.config import get_settings

            trait_settings = get_settings().traits
            state = state if state is not None else create_player_trait_state(trait_settings)
            max_presets = max_presets if max_presets is not None else trait_settings.max_presets
        self._registry = registry
        self._state = state
        self._manager = TraitSlotManager(state, registry, max_presets=max_presets)
        self._aggregator = EffectAggregator(registry)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TraitStore:
        """Build a store with the configured content and slot layout."""
        if settings is None:
            from essence_engine.core.config import get_settings

            settings = get_settings()
        registry = TraitRegistry.from_settings(settings)
        state = create_player_trait_state(settings.traits)
        return cls(registry, state, max_presets=settings.traits.max_presets)

    @property
    def registry(self) -> TraitRegistry:
        return self._registry

    def snapshot(self) -> PlayerTraitState:
        """Deep copy of the current state; mutating it has no effect here."""
        return self._state.model_copy(deep=True)

    def apply(self, command: TraitCommand) -> CommandResult:
        """Apply one trait command. Never raises for engine errors."""
        result = self._manager.apply(command)
        if result.success:
            logger.debug("Trait command applied", command_type=result.command_type, value=result.value)
        return result

    def apply_all(self, commands: Iterable[TraitCommand]) -> list[CommandResult]:
        """Apply commands in order, continuing past failures."""
        return [self.apply(command) for command in commands]

    # =========================================================================
    # Derived Views
    # =========================================================================

    def active_trait_ids(self) -> frozenset[str]:
        return self._state.active_trait_ids

    def modifiers(self) -> ModifierRecord:
        """Aggregate the currently active traits. Recomputed on every call."""
        return self._aggregator.aggregate(sorted(self._state.active_trait_ids))

    def derived_stats(self, base: PlayerBaseStats) -> DerivedStats:
        return compute_derived_stats(base, self.modifiers())

    # =========================================================================
    # Progress Events
    # =========================================================================

    def grant_essence(self, amount: int) -> int:
        """Add earned essence and unlock any slots it qualifies for.

        Returns:
            The new essence balance.

        Raises:
            ValidationError: If ``amount`` is negative.
        """
        balance = self._state.gain_essence(amount)
        self._manager.unlock_eligible_slots()
        return balance

    def set_level(self, level: int) -> list[int]:
        """Record a level change and unlock slots it qualifies for.

        Returns:
            Indices of newly unlocked slots.
        """
        self._state.level = max(1, level)
        return self._manager.unlock_eligible_slots()

    def set_relationship(self, npc_id: str, value: int) -> None:
        """Record the relationship value an NPC-gated trait is checked against."""
        self._state.relationships[npc_id] = value


__all__ = [
    "TraitStore",
]
