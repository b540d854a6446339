"""Engine-wide constants.

Modifier keys are content keys, so they keep the camelCase spelling used
in trait data files.
"""

from __future__ import annotations

# =============================================================================
# Modifier Keys
# =============================================================================

ATTACK_BONUS = "attackBonus"
DEFENSE_BONUS = "defenseBonus"
DODGE_CHANCE = "dodgeChance"
CRITICAL_CHANCE = "criticalChance"
CRITICAL_DAMAGE = "criticalDamage"
ESSENCE_SIPHON_CHANCE = "essenceSiphonChance"

XP_MULTIPLIER = "xpMultiplier"
GOLD_MULTIPLIER = "goldMultiplier"
ESSENCE_GAIN_MULTIPLIER = "essenceGainMultiplier"
ESSENCE_GENERATION_MULTIPLIER = "essenceGenerationMultiplier"
RELATIONSHIP_GAIN_MULTIPLIER = "relationshipGainMultiplier"

ADDITIVE_KEYS: frozenset[str] = frozenset(
    {
        ATTACK_BONUS,
        DEFENSE_BONUS,
        DODGE_CHANCE,
        CRITICAL_CHANCE,
        CRITICAL_DAMAGE,
        ESSENCE_SIPHON_CHANCE,
    }
)
"""Keys that start at 0 and sum across traits."""

MULTIPLICATIVE_KEYS: frozenset[str] = frozenset(
    {
        XP_MULTIPLIER,
        GOLD_MULTIPLIER,
        ESSENCE_GAIN_MULTIPLIER,
        ESSENCE_GENERATION_MULTIPLIER,
        RELATIONSHIP_GAIN_MULTIPLIER,
    }
)
"""Keys that start at 1 and multiply across traits."""

# =============================================================================
# Content Defaults
# =============================================================================

DEFAULT_RARITY = "Common"
"""Rarity assigned to trait definitions that omit one."""

DEFAULT_CATEGORY = "General"
"""Category assigned when neither ``category`` nor legacy ``type`` is given."""

TRAIT_COLLECTION_KEYS = ("traits", "copyableTraits")
"""Wrapper keys accepted around a trait id -> definition map."""

# =============================================================================
# Combat Constants
# =============================================================================

STARTING_ROUND = 1.0
"""Round counter value when an encounter begins."""

ROUND_STEP = 0.5
"""Round advance per individual action, so one exchange is one round."""

MIN_DAMAGE = 1
"""Every landed hit deals at least this much damage."""

# =============================================================================
# Trait Progression
# =============================================================================

AFFINITY_POINTS_PER_LEVEL = 10
"""Affinity points per category level; level 1 starts at 0 points."""
