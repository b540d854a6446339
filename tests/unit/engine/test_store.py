"""Tests for TraitStore."""

from __future__ import annotations

import pytest

from essence_engine.core.config import Settings
from essence_engine.core.exceptions import ValidationError
from essence_engine.engine.store import TraitStore
from essence_engine.models.commands import AcquireTrait, EquipTrait, PromoteTrait, UnequipTrait
from essence_engine.models.modifiers import ModifierRecord, PlayerBaseStats


class TestTraitStore:
    """Tests for the trait state owner."""

    def test_snapshot_is_a_copy(self, trait_store: TraitStore) -> None:
        """Test mutating a snapshot leaves the store alone."""
        snapshot = trait_store.snapshot()
        snapshot.essence = 0
        snapshot.acquired_trait_ids.add("Sturdy")

        assert trait_store.snapshot().essence == 200
        assert "Sturdy" not in trait_store.snapshot().acquired_trait_ids

    def test_apply_all_continues_past_failures(self, trait_store: TraitStore) -> None:
        """Test a failure does not stop later commands."""
        results = trait_store.apply_all(
            [
                EquipTrait(trait_id="Sturdy"),
                AcquireTrait(trait_id="Sturdy"),
                EquipTrait(trait_id="Sturdy"),
            ]
        )

        assert [r.success for r in results] == [False, True, True]
        assert trait_store.active_trait_ids() == frozenset({"Sturdy"})

    def test_modifiers_follow_active_set(self, trait_store: TraitStore) -> None:
        """Test modifiers are recomputed after every change."""
        assert trait_store.modifiers() == ModifierRecord.neutral()

        trait_store.apply_all([AcquireTrait(trait_id="Fierce"), EquipTrait(trait_id="Fierce")])
        assert trait_store.modifiers().attack_bonus == pytest.approx(0.15)

        trait_store.apply(UnequipTrait(trait_id="Fierce"))
        assert trait_store.modifiers() == ModifierRecord.neutral()

    def test_permanent_traits_count(self, trait_store: TraitStore) -> None:
        """Test promoted traits stay in the aggregate without a slot."""
        trait_store.apply_all(
            [
                AcquireTrait(trait_id="Lucky"),
                EquipTrait(trait_id="Lucky"),
                PromoteTrait(trait_id="Lucky"),
            ]
        )

        assert trait_store.snapshot().equipped_trait_ids == []
        assert trait_store.modifiers().gold_multiplier == pytest.approx(1.5)

    def test_derived_stats(self, trait_store: TraitStore) -> None:
        """Test derived stats use the active modifiers."""
        trait_store.apply_all([AcquireTrait(trait_id="Sturdy"), EquipTrait(trait_id="Sturdy")])

        derived = trait_store.derived_stats(PlayerBaseStats(attack=10, defense=20))

        assert derived.defense == 22
        assert derived.attack == 10

    def test_grant_essence_unlocks_slot(self, trait_store: TraitStore) -> None:
        """Test earning essence unlocks the essence-gated slot."""
        assert trait_store.grant_essence(100) == 300
        assert trait_store.snapshot().slots[3].is_unlocked

    def test_grant_negative_essence(self, trait_store: TraitStore) -> None:
        """Test negative grants raise."""
        with pytest.raises(ValidationError):
            trait_store.grant_essence(-1)

    def test_set_level_unlocks_slot(self, trait_store: TraitStore) -> None:
        """Test reaching level 5 unlocks the level-gated slot."""
        assert trait_store.set_level(4) == []
        assert trait_store.set_level(5) == [2]
        assert trait_store.snapshot().level == 5

    def test_set_relationship_enables_npc_trait(self, trait_store: TraitStore) -> None:
        """Test relationship updates satisfy NPC requirements."""
        assert not trait_store.apply(AcquireTrait(trait_id="Mentored")).success

        trait_store.set_relationship("npc1", 60)

        assert trait_store.apply(AcquireTrait(trait_id="Mentored")).success

    def test_from_settings(self) -> None:
        """Test the bundled content and default slot layout."""
        store = TraitStore.from_settings(Settings())
        snapshot = store.snapshot()

        assert "BattleHardened" in store.registry
        assert len(snapshot.slots) == 6
        assert snapshot.unlocked_slot_count == 3
