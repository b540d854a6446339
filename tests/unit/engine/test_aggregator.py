"""Tests for effect aggregation and derived stats."""

from __future__ import annotations

import pytest

from essence_engine.engine.aggregator import (
    EffectAggregator,
    aggregate,
    compute_derived_stats,
    floor_scaled,
)
from essence_engine.engine.registry import TraitRegistry
from essence_engine.models.modifiers import ModifierRecord, PlayerBaseStats


class TestFloorScaled:
    """Tests for floor_scaled."""

    @pytest.mark.parametrize(
        ("value", "factor", "expected"),
        [
            (10, 1.15, 11),
            (100, 1.15, 115),
            (10, 1.0, 10),
            (7, 0.5, 3),
            (20, 1.2, 24),
        ],
    )
    def test_values(self, value: int, factor: float, expected: int) -> None:
        """Test flooring with float noise trimmed."""
        assert floor_scaled(value, factor) == expected

    def test_near_integer_fraction_floors_down(self) -> None:
        """Test a product just under an integer is not rounded up to it."""
        assert floor_scaled(1, 0.9999996) == 0
        assert floor_scaled(10, 0.99999996) == 9

    def test_accumulated_float_noise_absorbed(self) -> None:
        """Test summed bonuses that fall a hair short still floor to the integer."""
        factor = 0.7 + 0.1
        assert 10 * factor < 8
        assert floor_scaled(10, factor) == 8


class TestEffectAggregator:
    """Tests for EffectAggregator."""

    def test_empty_set_is_neutral(self, trait_registry: TraitRegistry) -> None:
        """Test no active traits yields the neutral record."""
        assert aggregate([], trait_registry) == ModifierRecord.neutral()

    def test_additive_keys_sum(self, trait_registry: TraitRegistry) -> None:
        """Test bonuses from different traits add up."""
        record = EffectAggregator(trait_registry).aggregate(["Sturdy", "Fierce", "Veteran"])

        assert record.defense_bonus == pytest.approx(0.1)
        assert record.attack_bonus == pytest.approx(0.15)
        assert record.critical_chance == pytest.approx(0.1)

    def test_multiplicative_keys_multiply(self, trait_registry: TraitRegistry) -> None:
        """Test multipliers compound."""
        record = aggregate(["Lucky", "Scholar"], trait_registry)

        assert record.xp_multiplier == pytest.approx(3.0)
        assert record.gold_multiplier == pytest.approx(1.5)

    def test_unknown_effect_keys_pass_through(self, trait_registry: TraitRegistry) -> None:
        """Test content-only keys are summed and kept."""
        record = aggregate(["Scholar", "Mentored"], trait_registry)
        assert record["learningSpeed"] == pytest.approx(0.3)

    def test_duplicates_count_once(self, trait_registry: TraitRegistry) -> None:
        """Test repeated ids do not stack."""
        assert aggregate(["Fierce", "Fierce"], trait_registry) == aggregate(["Fierce"], trait_registry)

    def test_order_independent(self, trait_registry: TraitRegistry) -> None:
        """Test aggregation does not depend on order."""
        forward = aggregate(["Sturdy", "Lucky", "Fierce"], trait_registry)
        backward = aggregate(["Fierce", "Lucky", "Sturdy"], trait_registry)

        for key in forward.as_dict():
            assert forward[key] == pytest.approx(backward[key])

    def test_unknown_trait_skipped(self, trait_registry: TraitRegistry) -> None:
        """Test ids missing from the registry are ignored."""
        assert aggregate(["Ghost", "Sturdy"], trait_registry) == aggregate(["Sturdy"], trait_registry)

    def test_list_and_map_effects_equal(self) -> None:
        """Test both effect shapes aggregate to the same record."""
        as_map = TraitRegistry.load({"T": {"name": "T", "effects": {"attackBonus": 0.2, "goldMultiplier": 1.1}}})
        as_list = TraitRegistry.load(
            {
                "T": {
                    "name": "T",
                    "effects": [
                        {"type": "attackBonus", "magnitude": 0.2},
                        {"type": "goldMultiplier", "magnitude": 1.1},
                    ],
                }
            }
        )
        assert aggregate(["T"], as_map) == aggregate(["T"], as_list)

    def test_contributions(self, trait_registry: TraitRegistry) -> None:
        """Test the per-trait breakdown."""
        breakdown = EffectAggregator(trait_registry).contributions(["Sturdy", "Ghost"])
        assert breakdown == {"Sturdy": {"defenseBonus": 0.1}}


class TestDerivedStats:
    """Tests for compute_derived_stats."""

    def test_neutral_modifiers_keep_base(self) -> None:
        """Test neutral modifiers leave stats unchanged."""
        derived = compute_derived_stats(PlayerBaseStats(attack=10, defense=5), ModifierRecord.neutral())
        assert (derived.attack, derived.defense) == (10, 5)

    def test_bonus_floors(self) -> None:
        """Test a 15% bonus on 10 attack floors to 11."""
        modifiers = ModifierRecord.from_mapping({"attackBonus": 0.15, "defenseBonus": 0.1})
        derived = compute_derived_stats(PlayerBaseStats(attack=10, defense=5), modifiers)

        assert derived.attack == 11
        assert derived.defense == 5
        assert derived.max_health == 100

    def test_large_penalty_bottoms_out(self) -> None:
        """Test stats never go negative."""
        modifiers = ModifierRecord.from_mapping({"attackBonus": -2.0})
        assert compute_derived_stats(PlayerBaseStats(attack=10), modifiers).attack == 0
