"""Trait slot management.

TraitSlotManager is the only code that mutates a PlayerTraitState. Each
operation validates first and mutates last, so a rejected operation leaves
the state exactly as it was.

Slot lifecycle:
    Locked -> Unlocked (by requirement or direct unlock), never back.
    Unlocked slots move between Empty and Occupied through equip/unequip.
    Promotion moves a trait out of its slot into the permanent set.
    Evolution swaps a trait for its evolved form in the same slot.
"""

from __future__ import annotations

from essence_engine.core.exceptions import (
    AlreadyEquippedError,
    EssenceEngineError,
    InvalidEvolutionError,
    InvalidSlotError,
    NoAvailableSlotError,
    NotAcquiredError,
    PresetNotFoundError,
    RequirementNotMetError,
    ValidationError,
)
from essence_engine.core.logging import get_logger
from essence_engine.engine.registry import TraitRegistry
from essence_engine.models.commands import CommandResult, TraitCommand
from essence_engine.models.traits import PlayerTraitState, TraitDefinition, TraitSlot


logger = get_logger(__name__)

DEFAULT_MAX_PRESETS = 5


class TraitSlotManager:
    """Enforces slot and ownership rules on a player's trait state.

    Example:
        >>> manager = TraitSlotManager(create_player_trait_state(), TraitRegistry.default())
        >>> manager.state.gain_essence(100)
        100
        >>> manager.acquire("BattleHardened")
        True
        >>> manager.equip("BattleHardened")
        0
    """

    def __init__(
        self,
        state: PlayerTraitState,
        registry: TraitRegistry,
        *,
        max_presets: int = DEFAULT_MAX_PRESETS,
    ) -> None:
        self._state = state
        self._registry = registry
        self._max_presets = max_presets

    @property
    def state(self) -> PlayerTraitState:
        return self._state

    @property
    def registry(self) -> TraitRegistry:
        return self._registry

    # =========================================================================
    # Lookups
    # =========================================================================

    def _slot(self, index: int) -> TraitSlot:
        if not 0 <= index < len(self._state.slots):
            raise InvalidSlotError(
                f"No slot at index {index}",
                slot_index=index,
                slot_count=len(self._state.slots),
            )
        return self._state.slots[index]

    def _first_available(self) -> TraitSlot | None:
        for slot in self._state.slots:
            if slot.is_available:
                return slot
        return None

    def _require_acquired(self, trait_id: str) -> TraitDefinition:
        definition = self._registry.get(trait_id)
        if trait_id not in self._state.acquired_trait_ids:
            raise NotAcquiredError(f"Trait not acquired: {trait_id}", trait_id=trait_id)
        return definition

    # =========================================================================
    # Ownership
    # =========================================================================

    def discover(self, trait_id: str) -> bool:
        """Record that the player has seen a trait.

        Returns:
            True if the trait was newly discovered.

        Raises:
            NotFoundError: If the trait is not in the registry.
        """
        self._registry.get(trait_id)
        if trait_id in self._state.discovered_trait_ids:
            return False
        self._state.discovered_trait_ids.add(trait_id)
        logger.info("Trait discovered", trait_id=trait_id)
        return True

    def check_requirements(self, trait_id: str) -> None:
        """Verify level, relationship and prerequisite requirements.

        Raises:
            NotFoundError: If the trait is not in the registry.
            RequirementNotMetError: On the first unmet requirement.
        """
        requirements = self._registry.get(trait_id).requirements
        state = self._state

        if requirements.min_level is not None and state.level < requirements.min_level:
            raise RequirementNotMetError(
                f"Requires level {requirements.min_level}",
                trait_id=trait_id,
                requirement="min_level",
                details={"required": requirements.min_level, "current": state.level},
            )
        if requirements.min_relationship is not None and requirements.npc_id:
            current = state.relationships.get(requirements.npc_id, 0)
            if current < requirements.min_relationship:
                raise RequirementNotMetError(
                    f"Requires relationship {requirements.min_relationship} with {requirements.npc_id}",
                    trait_id=trait_id,
                    requirement="min_relationship",
                    details={"npc_id": requirements.npc_id, "required": requirements.min_relationship, "current": current},
                )
        missing = [p for p in requirements.prerequisite_trait_ids if p not in state.acquired_trait_ids]
        if missing:
            raise RequirementNotMetError(
                "Requires prerequisite traits",
                trait_id=trait_id,
                requirement="prerequisites",
                details={"missing": missing},
            )

    def acquire(self, trait_id: str, essence_cost: int | None = None) -> bool:
        """Buy a trait with essence.

        Args:
            trait_id: Trait to acquire.
            essence_cost: Price override; the definition's cost when omitted.

        Returns:
            True if acquired now, False if already owned.

        Raises:
            NotFoundError: If the trait is not in the registry.
            RequirementNotMetError: If a requirement is unmet.
            InsufficientEssenceError: If the player cannot pay.
        """
        definition = self._registry.get(trait_id)
        if trait_id in self._state.acquired_trait_ids:
            logger.info("Trait already acquired", trait_id=trait_id)
            return False

        self.check_requirements(trait_id)
        cost = definition.essence_cost if essence_cost is None else essence_cost
        remaining = self._state.spend_essence(cost, trait_id=trait_id)

        self._state.discovered_trait_ids.add(trait_id)
        self._state.acquired_trait_ids.add(trait_id)
        logger.info("Trait acquired", trait_id=trait_id, cost=cost, essence_remaining=remaining)
        return True

    # =========================================================================
    # Slot Operations
    # =========================================================================

    def equip(self, trait_id: str, slot_index: int | None = None) -> int:
        """Place an acquired trait into a slot.

        A requested slot that is locked or occupied falls back to the
        lowest-index unlocked empty slot.

        Args:
            trait_id: Trait to equip.
            slot_index: Preferred slot.

        Returns:
            Index of the slot the trait now occupies.

        Raises:
            NotFoundError: If the trait is not in the registry.
            NotAcquiredError: If the player does not own the trait.
            AlreadyEquippedError: If the trait is slotted or permanent.
            InvalidSlotError: If ``slot_index`` is out of range.
            NoAvailableSlotError: If every unlocked slot is full.
        """
        self._require_acquired(trait_id)

        current = self._state.slot_of(trait_id)
        if current is not None:
            raise AlreadyEquippedError(
                f"Trait already equipped: {trait_id}",
                trait_id=trait_id,
                slot_index=current.index,
            )
        if trait_id in self._state.permanent_trait_ids:
            raise AlreadyEquippedError(f"Trait is permanent: {trait_id}", trait_id=trait_id)

        target: TraitSlot | None = None
        if slot_index is not None:
            requested = self._slot(slot_index)
            if requested.is_available:
                target = requested
            else:
                logger.debug("Requested slot unavailable, falling back", slot_index=slot_index)
        if target is None:
            target = self._first_available()
        if target is None:
            raise NoAvailableSlotError("No unlocked empty slot", trait_id=trait_id)

        target.occupant_trait_id = trait_id
        logger.info("Trait equipped", trait_id=trait_id, slot_index=target.index)
        return target.index

    def unequip(self, trait_id: str | None = None, slot_index: int | None = None) -> int | None:
        """Clear a slot by trait id or slot index.

        Unequipping something that is not equipped does nothing.

        Returns:
            Index of the cleared slot, or None for a no-op.

        Raises:
            ValidationError: If neither argument is given.
            InvalidSlotError: If ``slot_index`` is out of range.
        """
        if trait_id is None and slot_index is None:
            raise ValidationError("Unequip needs a trait id or a slot index", field_name="trait_id")

        slot = self._state.slot_of(trait_id) if trait_id is not None else self._slot(slot_index)  # type: ignore[arg-type]
        if slot is None or slot.is_empty:
            logger.warning("Unequip ignored, nothing equipped", trait_id=trait_id, slot_index=slot_index)
            return None

        removed = slot.occupant_trait_id
        slot.occupant_trait_id = None
        logger.info("Trait unequipped", trait_id=removed, slot_index=slot.index)
        return slot.index

    def promote_to_permanent(self, trait_id: str, essence_cost: int = 0) -> bool:
        """Make an acquired trait permanently active.

        The trait leaves its slot, if it had one, so the slot can be reused.

        Returns:
            True if promoted now, False if it was already permanent.

        Raises:
            NotFoundError: If the trait is not in the registry.
            NotAcquiredError: If the player does not own the trait.
            InsufficientEssenceError: If the player cannot pay.
        """
        self._require_acquired(trait_id)
        if trait_id in self._state.permanent_trait_ids:
            return False

        self._state.spend_essence(essence_cost, trait_id=trait_id)
        slot = self._state.slot_of(trait_id)
        if slot is not None:
            slot.occupant_trait_id = None
        self._state.permanent_trait_ids.add(trait_id)
        logger.info(
            "Trait promoted to permanent",
            trait_id=trait_id,
            freed_slot=slot.index if slot is not None else None,
            cost=essence_cost,
        )
        return True

    def unlock_slot(self, index: int) -> bool:
        """Unlock a slot regardless of its requirement.

        Returns:
            True if the slot was locked before.

        Raises:
            InvalidSlotError: If ``index`` is out of range.
        """
        slot = self._slot(index)
        if slot.is_unlocked:
            return False
        slot.is_unlocked = True
        logger.info("Trait slot unlocked", slot_index=index)
        return True

    def unlock_eligible_slots(self) -> list[int]:
        """Unlock every locked slot whose requirement is now met."""
        unlocked: list[int] = []
        for slot in self._state.slots:
            if slot.is_unlocked:
                continue
            if slot.unlock_requirement.is_met(
                level=self._state.level,
                essence_earned=self._state.essence_earned,
            ):
                slot.is_unlocked = True
                unlocked.append(slot.index)
        if unlocked:
            logger.info("Trait slots unlocked by progress", slot_indices=unlocked)
        return unlocked

    def swap(self, first_trait_id: str, second_trait_id: str) -> tuple[int, int]:
        """Exchange the slots of two equipped traits.

        Returns:
            The new slot indices of the first and second trait.

        Raises:
            ValidationError: If either trait is not equipped.
        """
        first = self._state.slot_of(first_trait_id)
        second = self._state.slot_of(second_trait_id)
        if first is None or second is None:
            raise ValidationError(
                "Both traits must be equipped to swap",
                field_name="trait_id",
                invalid_value=first_trait_id if first is None else second_trait_id,
            )
        if first is not second:
            first.occupant_trait_id, second.occupant_trait_id = second_trait_id, first_trait_id
            logger.info("Traits swapped", first=first_trait_id, second=second_trait_id)
        return second.index, first.index

    def clear_all(self) -> list[str]:
        """Empty every slot and return the removed trait ids in slot order."""
        removed: list[str] = []
        for slot in self._state.slots:
            if slot.occupant_trait_id is not None:
                removed.append(slot.occupant_trait_id)
                slot.occupant_trait_id = None
        logger.info("Trait slots cleared", removed=removed)
        return removed

    # =========================================================================
    # Progression
    # =========================================================================

    def evolve(self, trait_id: str, evolution_choice: str) -> int | None:
        """Replace an owned trait with one of its evolutions.

        The evolved trait takes the original's place: its slot when equipped,
        the permanent set when permanent, and its entries in saved presets.
        The original trait is no longer owned afterwards.

        Returns:
            Slot index now holding the evolved trait, or None if it is not slotted.

        Raises:
            NotFoundError: If either trait is not in the registry.
            NotAcquiredError: If the player does not own ``trait_id``.
            InvalidEvolutionError: If ``evolution_choice`` is not on the evolution
                path or the player already owns it.
            RequirementNotMetError: If the evolved trait's requirements are unmet.
        """
        definition = self._require_acquired(trait_id)
        if evolution_choice not in definition.evolution_path:
            raise InvalidEvolutionError(
                f"{evolution_choice} is not an evolution of {trait_id}",
                trait_id=trait_id,
                evolution_choice=evolution_choice,
                details={"evolution_path": list(definition.evolution_path)},
            )
        evolved = self._registry.get(evolution_choice)
        state = self._state
        if evolution_choice in state.acquired_trait_ids or state.slot_of(evolution_choice) is not None:
            raise InvalidEvolutionError(
                f"Evolution already owned: {evolution_choice}",
                trait_id=trait_id,
                evolution_choice=evolution_choice,
            )
        self.check_requirements(evolution_choice)

        slot = state.slot_of(trait_id)
        if slot is not None:
            slot.occupant_trait_id = evolution_choice
        if trait_id in state.permanent_trait_ids:
            state.permanent_trait_ids.discard(trait_id)
            state.permanent_trait_ids.add(evolution_choice)
        state.acquired_trait_ids.discard(trait_id)
        state.acquired_trait_ids.add(evolution_choice)
        state.discovered_trait_ids.add(evolution_choice)
        for loadout in state.presets.values():
            loadout[:] = [evolution_choice if entry == trait_id else entry for entry in loadout]

        logger.info(
            "Trait evolved",
            trait_id=trait_id,
            evolved_into=evolution_choice,
            name=evolved.name,
            slot_index=slot.index if slot is not None else None,
        )
        return slot.index if slot is not None else None

    def increase_affinity(self, category: str, amount: int = 1) -> int:
        """Add affinity points to a trait category.

        Returns:
            The category's affinity level after the increase.

        Raises:
            ValidationError: If ``amount`` is not positive.
        """
        if amount < 1:
            raise ValidationError("Affinity increase must be positive", field_name="amount", invalid_value=amount)

        state = self._state
        previous = state.affinity_level(category)
        state.affinities[category] = state.affinities.get(category, 0) + amount
        level = state.affinity_level(category)
        if level > previous:
            logger.info("Trait affinity level up", category=category, level=level, points=state.affinities[category])
        return level

    # =========================================================================
    # Presets
    # =========================================================================

    def save_preset(self, name: str) -> list[str]:
        """Store the equipped traits under ``name``, replacing any old preset.

        Raises:
            ValidationError: If storing a new preset exceeds the limit.
        """
        presets = self._state.presets
        if name not in presets and len(presets) >= self._max_presets:
            raise ValidationError(
                f"Preset limit of {self._max_presets} reached",
                field_name="name",
                invalid_value=name,
            )
        loadout = list(self._state.equipped_trait_ids)
        presets[name] = loadout
        logger.info("Loadout preset saved", name=name, traits=loadout)
        return loadout

    def load_preset(self, name: str) -> list[str]:
        """Clear the slots and equip a saved loadout.

        Traits that are no longer owned, have become permanent, or do not fit
        are skipped.

        Returns:
            The trait ids actually equipped.

        Raises:
            PresetNotFoundError: If no preset has this name.
        """
        if name not in self._state.presets:
            raise PresetNotFoundError(f"No preset named {name!r}", details={"name": name})

        self.clear_all()
        equipped: list[str] = []
        for trait_id in self._state.presets[name]:
            try:
                self.equip(trait_id)
            except EssenceEngineError as exc:
                logger.warning("Preset trait skipped", name=name, trait_id=trait_id, reason=exc.code)
                continue
            equipped.append(trait_id)
        logger.info("Loadout preset loaded", name=name, traits=equipped)
        return equipped

    def delete_preset(self, name: str) -> None:
        """Forget a saved loadout.

        Raises:
            PresetNotFoundError: If no preset has this name.
        """
        if self._state.presets.pop(name, None) is None:
            raise PresetNotFoundError(f"No preset named {name!r}", details={"name": name})

    # =========================================================================
    # Command Entry Point
    # =========================================================================

    def apply(self, command: TraitCommand) -> CommandResult:
        """Apply a trait command, converting engine errors into a failure result.

        Args:
            command: Any member of the TraitCommand union.

        Returns:
            The CommandResult; ``value`` carries the operation's return value.
        """
        try:
            return self._dispatch(command)
        except EssenceEngineError as exc:
            logger.info("Trait command rejected", command_type=command.type, error_code=exc.code, error=exc.message)
            return CommandResult.failure(command, exc)

    def _dispatch(self, command: TraitCommand) -> CommandResult:
        command_type = command.type

        if command_type == "discover_trait":
            new = self.discover(command.trait_id)
            message = "Trait discovered" if new else "Trait already discovered"
            return CommandResult.ok(command, message, value=new)
        elif command_type == "acquire_trait":
            new = self.acquire(command.trait_id, command.essence_cost)
            message = "Trait acquired" if new else "Trait already acquired"
            return CommandResult.ok(command, message, value=new)
        elif command_type == "equip_trait":
            index = self.equip(command.trait_id, command.slot_index)
            return CommandResult.ok(command, f"Equipped in slot {index}", value=index)
        elif command_type == "unequip_trait":
            index = self.unequip(command.trait_id, command.slot_index)
            message = "Nothing to unequip" if index is None else f"Cleared slot {index}"
            return CommandResult.ok(command, message, value=index)
        elif command_type == "promote_trait":
            new = self.promote_to_permanent(command.trait_id, command.essence_cost)
            message = "Trait promoted" if new else "Trait already permanent"
            return CommandResult.ok(command, message, value=new)
        elif command_type == "unlock_slot":
            new = self.unlock_slot(command.slot_index)
            message = "Slot unlocked" if new else "Slot already unlocked"
            return CommandResult.ok(command, message, value=new)
        elif command_type == "swap_traits":
            indices = self.swap(command.first_trait_id, command.second_trait_id)
            return CommandResult.ok(command, "Traits swapped", value=indices)
        elif command_type == "clear_slots":
            removed = self.clear_all()
            return CommandResult.ok(command, f"Cleared {len(removed)} slots", value=removed)
        elif command_type == "save_preset":
            loadout = self.save_preset(command.name)
            return CommandResult.ok(command, f"Saved preset {command.name!r}", value=loadout)
        elif command_type == "load_preset":
            equipped = self.load_preset(command.name)
            return CommandResult.ok(command, f"Loaded preset {command.name!r}", value=equipped)
        elif command_type == "delete_preset":
            self.delete_preset(command.name)
            return CommandResult.ok(command, f"Deleted preset {command.name!r}")
        elif command_type == "evolve_trait":
            index = self.evolve(command.trait_id, command.evolution_choice)
            return CommandResult.ok(command, f"{command.trait_id} evolved into {command.evolution_choice}", value=index)
        elif command_type == "increase_affinity":
            level = self.increase_affinity(command.category, command.amount)
            return CommandResult.ok(command, f"{command.category} affinity at level {level}", value=level)
        raise ValidationError(f"Unsupported trait command: {command_type}", field_name="type", invalid_value=command_type)


__all__ = [
    "DEFAULT_MAX_PRESETS",
    "TraitSlotManager",
]
