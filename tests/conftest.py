"""Pytest configuration and shared fixtures.

This module provides common fixtures for the essence engine test suite.
Combat fixtures use scripted random sources so every roll is explicit.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator


class ScriptedRandom(random.Random):
    """Random source that replays fixed values.

    ``random()`` returns the queued floats in order (0.99 once exhausted,
    so unscripted checks fail); ``randint`` returns the queued integers
    (0 once exhausted).
    """

    def __init__(self, floats: Iterable[float] = (), ints: Iterable[int] = ()) -> None:
        super().__init__(0)
        self.floats = list(floats)
        self.ints = list(ints)

    def random(self) -> float:
        return self.floats.pop(0) if self.floats else 0.99

    def randint(self, a: int, b: int) -> int:
        value = self.ints.pop(0) if self.ints else 0
        assert a <= value <= b, f"scripted {value} outside [{a}, {b}]"
        return value


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from essence_engine.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up engine environment variables.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "ESSENCE_ENGINE_DEBUG": "true",
        "ESSENCE_ENGINE_LOG_LEVEL": "DEBUG",
        "ESSENCE_ENGINE_COMBAT_FLEE_CHANCE": "0.75",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Content Fixtures
# =============================================================================


@pytest.fixture
def sample_trait_content() -> dict[str, Any]:
    """Provide a small trait catalog covering both effect shapes.

    Returns:
        Mapping of trait id to raw definition.
    """
    return {
        "Sturdy": {
            "name": "Sturdy",
            "type": "Combat",
            "essenceCost": 10,
            "effects": {"defenseBonus": 0.1},
        },
        "Fierce": {
            "name": "Fierce",
            "category": "Combat",
            "rarity": "Uncommon",
            "essenceCost": 20,
            "effects": [{"type": "attackBonus", "magnitude": 0.15}],
        },
        "Lucky": {
            "name": "Lucky",
            "essenceCost": 30,
            "effects": {"goldMultiplier": 1.5, "xpMultiplier": 2.0},
        },
        "Scholar": {
            "name": "Scholar",
            "type": "Knowledge",
            "essenceCost": 15,
            "effects": {"xpMultiplier": 1.5, "learningSpeed": 0.2},
        },
        "Mentored": {
            "name": "Mentored",
            "essenceCost": 5,
            "sourceNpc": "npc1",
            "requiredRelationship": 50,
            "effects": {"learningSpeed": 0.1},
        },
        "Veteran": {
            "name": "Veteran",
            "essenceCost": 25,
            "requirements": {"minLevel": 3, "prerequisiteTraitIds": ["Fierce"]},
            "effects": {"criticalChance": 0.1},
        },
    }


@pytest.fixture
def trait_registry(sample_trait_content: dict[str, Any]) -> Any:
    """Create a TraitRegistry from the sample catalog."""
    from essence_engine.engine.registry import TraitRegistry

    return TraitRegistry.load(sample_trait_content, source="tests")


@pytest.fixture
def trait_settings() -> Any:
    """Slot layout: two free slots, one at level 5, one at 100 essence earned."""
    from essence_engine.core.config import SlotUnlockRule, TraitSettings

    return TraitSettings(
        slot_unlocks=[
            SlotUnlockRule(type="default"),
            SlotUnlockRule(type="default"),
            SlotUnlockRule(type="level", threshold=5),
            SlotUnlockRule(type="essence_earned", threshold=100),
        ],
        max_presets=2,
    )


@pytest.fixture
def player_state(trait_settings: Any) -> Any:
    """Fresh player trait state with 200 spendable essence."""
    from essence_engine.models.traits import create_player_trait_state

    return create_player_trait_state(trait_settings, essence=200)


@pytest.fixture
def slot_manager(player_state: Any, trait_registry: Any) -> Any:
    """TraitSlotManager over the sample registry and fresh state."""
    from essence_engine.engine.slots import TraitSlotManager

    return TraitSlotManager(player_state, trait_registry, max_presets=2)


@pytest.fixture
def owned_manager(slot_manager: Any) -> Any:
    """Slot manager whose player already owns Sturdy, Fierce and Lucky."""
    for trait_id in ("Sturdy", "Fierce", "Lucky"):
        slot_manager.acquire(trait_id)
    return slot_manager


@pytest.fixture
def trait_store(trait_registry: Any, player_state: Any) -> Any:
    """TraitStore over the sample registry."""
    from essence_engine.engine.store import TraitStore

    return TraitStore(trait_registry, player_state, max_presets=2)


# =============================================================================
# Combat Fixtures
# =============================================================================


@pytest.fixture
def combat_settings() -> Any:
    """Default combat settings, non-strict."""
    from essence_engine.core.config import CombatSettings

    return CombatSettings()


@pytest.fixture
def scripted_random() -> ScriptedRandom:
    """Scripted random source; tests queue values on it before acting."""
    return ScriptedRandom()


@pytest.fixture
def resolver(combat_settings: Any, scripted_random: ScriptedRandom) -> Any:
    """CombatResolver driven by the scripted random source."""
    from essence_engine.engine.chance import ChanceRoller
    from essence_engine.engine.combat import CombatResolver

    return CombatResolver(combat_settings, roller=ChanceRoller(rng=scripted_random))


@pytest.fixture
def base_stats() -> Any:
    """Player with attack 10, defense 5, 100 health."""
    from essence_engine.models.modifiers import PlayerBaseStats

    return PlayerBaseStats(attack=10, defense=5, max_health=100, max_mana=50)


@pytest.fixture
def enemy_template() -> Any:
    """Enemy with health 50, attack 4, defense 3, 20 xp, 10 gold."""
    from essence_engine.models.combat import EnemyTemplate

    return EnemyTemplate(
        id="brute",
        name="Brute",
        base_health=50,
        base_attack=4,
        base_defense=3,
        base_experience=20,
        base_gold=10,
    )


@pytest.fixture
def encounter(resolver: Any, base_stats: Any, enemy_template: Any) -> Any:
    """Freshly started encounter at level 1, normal difficulty."""
    return resolver.start_encounter(base_stats, enemy_template, 1.0, 1.0)


@pytest.fixture
def neutral_modifiers() -> Any:
    """ModifierRecord with every key neutral."""
    from essence_engine.models.modifiers import ModifierRecord

    return ModifierRecord.neutral()
