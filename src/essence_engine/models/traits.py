"""Trait, slot and player trait-ownership models.

Definitions are immutable content loaded once per registry. Slots and the
player's trait state are mutable and are changed only through the slot
manager, which keeps the ownership invariants listed on PlayerTraitState.

Example:
    >>> trait = TraitDefinition.model_validate(
    ...     {"id": "battle_hardened", "name": "Battle Hardened",
    ...      "effects": [{"type": "attackBonus", "magnitude": 0.1}]}
    ... )
    >>> trait.effects
    {'attackBonus': 0.1}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from essence_engine.core.constants import AFFINITY_POINTS_PER_LEVEL, DEFAULT_CATEGORY
from essence_engine.core.exceptions import InsufficientEssenceError, ValidationError
from essence_engine.models.enums import Rarity, SlotUnlockType


if TYPE_CHECKING:
    from essence_engine.core.config import TraitSettings


# =============================================================================
# Effect Normalization
# =============================================================================


class TraitEffect(BaseModel):
    """One record of a list-shaped effects block.

    Attributes:
        type: Modifier key, e.g. ``attackBonus``.
        magnitude: Numeric contribution.
        duration: Duration in turns; ignored for passive traits.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = Field(min_length=1)
    magnitude: float
    duration: int | None = None


def _as_magnitude(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"Effect {key!r} must be numeric, got {value!r}"
        raise ValueError(msg)
    return float(value)


def normalize_effects(raw: Any) -> dict[str, float]:
    """Collapse either effect representation into a flat key -> magnitude map.

    List records are applied in order, so a later record for the same key
    replaces an earlier one.

    Args:
        raw: ``None``, a mapping of key to number, or a list of
            ``{type, magnitude, duration?}`` records.

    Returns:
        The canonical flat effect map.

    Raises:
        ValueError: If the shape or a magnitude is invalid.

    Example:
        >>> normalize_effects([{"type": "dodgeChance", "magnitude": 0.1}])
        {'dodgeChance': 0.1}
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return {str(key): _as_magnitude(str(key), value) for key, value in raw.items()}
    if isinstance(raw, list):
        effects: dict[str, float] = {}
        for record in raw:
            effect = record if isinstance(record, TraitEffect) else TraitEffect.model_validate(record)
            effects[effect.type] = effect.magnitude
        return effects
    msg = f"Effects must be a mapping or a list of records, got {type(raw).__name__}"
    raise ValueError(msg)


# =============================================================================
# Trait Definition
# =============================================================================


class TraitRequirements(BaseModel):
    """Conditions checked before a trait can be acquired.

    Attributes:
        min_level: Minimum player level.
        npc_id: NPC whose relationship gates the trait.
        min_relationship: Relationship value needed with ``npc_id``.
        prerequisite_trait_ids: Traits that must already be acquired.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    min_level: int | None = Field(default=None, ge=1)
    npc_id: str | None = None
    min_relationship: int | None = None
    prerequisite_trait_ids: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return (
            self.min_level is None
            and self.min_relationship is None
            and not self.prerequisite_trait_ids
        )


class TraitDefinition(BaseModel):
    """Immutable trait content keyed by ``id``.

    Raw content may use the legacy ``type`` key for the category and may
    express effects as a list of records; both are normalized on load.

    Attributes:
        id: Unique trait identifier.
        name: Display name.
        description: Flavor and rules text.
        category: Grouping such as Combat or Social.
        rarity: Rarity tier, Common when omitted.
        tier: Power tier, starting at 1.
        effects: Flat modifier key -> magnitude map.
        essence_cost: Essence spent to acquire the trait.
        requirements: Acquisition requirements.
        source_npc: NPC the trait is learned from, if any.
        evolution_path: Traits this one can evolve into.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(min_length=1, description="Unique trait identifier")
    name: str = Field(min_length=1, description="Display name")
    description: str = Field(default="", description="Flavor and rules text")
    category: str = Field(default=DEFAULT_CATEGORY, description="Trait grouping")
    rarity: Rarity = Field(default=Rarity.COMMON, description="Rarity tier")
    tier: int = Field(default=1, ge=1, description="Power tier")
    effects: dict[str, float] = Field(default_factory=dict, description="Flat effect map")
    essence_cost: int = Field(default=0, ge=0, description="Acquisition cost in essence")
    requirements: TraitRequirements = Field(default_factory=TraitRequirements)
    source_npc: str | None = Field(default=None, description="Teaching NPC")
    evolution_path: tuple[str, ...] = Field(default=(), description="Possible evolutions")

    @model_validator(mode="before")
    @classmethod
    def normalize_raw_content(cls, data: Any) -> Any:
        """Map legacy content shapes onto the canonical fields."""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)

        legacy_type = data.pop("type", None)
        if "category" not in data and legacy_type is not None:
            data["category"] = legacy_type

        rarity = data.get("rarity")
        if rarity is None:
            data.pop("rarity", None)
        elif isinstance(rarity, str):
            data["rarity"] = Rarity(rarity)

        if "effects" in data:
            data["effects"] = normalize_effects(data["effects"])

        relationship = data.pop("requiredRelationship", data.pop("required_relationship", None))
        if "requirements" not in data and relationship is not None:
            data["requirements"] = {
                "npcId": data.get("sourceNpc", data.get("source_npc")),
                "minRelationship": relationship,
            }
        return data

    @model_validator(mode="after")
    def validate_relationship_requirement(self) -> TraitDefinition:
        """A relationship threshold needs an NPC to measure it against."""
        requirements = self.requirements
        if requirements.min_relationship is not None and not requirements.npc_id:
            msg = f"Trait {self.id!r} has a relationship requirement without an NPC"
            raise ValueError(msg)
        return self


# =============================================================================
# Slots
# =============================================================================


class SlotUnlockRequirement(BaseModel):
    """Condition that unlocks a slot.

    Attributes:
        type: Unlock trigger.
        threshold: Player level or cumulative essence earned.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: SlotUnlockType = SlotUnlockType.DEFAULT
    threshold: int = Field(default=0, ge=0)

    def is_met(self, *, level: int, essence_earned: int) -> bool:
        """Check the requirement against player progress.

        Args:
            level: Current player level.
            essence_earned: Cumulative essence earned.

        Returns:
            True if the slot may be unlocked.
        """
        if self.type == SlotUnlockType.LEVEL:
            return level >= self.threshold
        if self.type == SlotUnlockType.ESSENCE_EARNED:
            return essence_earned >= self.threshold
        return True


class TraitSlot(BaseModel):
    """A position that can hold one equipped trait.

    Lower indices have higher priority for automatic placement. A locked
    slot never has an occupant.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str = Field(min_length=1)
    index: int = Field(ge=0)
    is_unlocked: bool = False
    unlock_requirement: SlotUnlockRequirement = Field(default_factory=SlotUnlockRequirement)
    occupant_trait_id: str | None = None

    @model_validator(mode="after")
    def validate_locked_slot_empty(self) -> TraitSlot:
        if not self.is_unlocked and self.occupant_trait_id is not None:
            msg = f"Locked slot {self.index} cannot hold trait {self.occupant_trait_id!r}"
            raise ValueError(msg)
        return self

    @property
    def is_empty(self) -> bool:
        return self.occupant_trait_id is None

    @property
    def is_available(self) -> bool:
        """True if a trait can be placed here right now."""
        return self.is_unlocked and self.occupant_trait_id is None


# =============================================================================
# Player Trait State
# =============================================================================


def affinity_level_for(points: int) -> int:
    return points // AFFINITY_POINTS_PER_LEVEL + 1


class PlayerTraitState(BaseModel):
    """Everything the engine tracks about a player's traits.

    Invariants:
        * slot ``index`` equals its list position;
        * no trait occupies more than one slot;
        * permanent traits are acquired and never occupy a slot;
        * acquired traits are discovered.

    Attributes:
        slots: Ordered trait slots.
        discovered_trait_ids: Traits the player has seen.
        acquired_trait_ids: Traits the player owns.
        permanent_trait_ids: Traits always active without a slot.
        essence: Spendable essence.
        essence_earned: Cumulative essence ever gained.
        level: Player level.
        relationships: NPC id -> relationship value.
        presets: Saved loadouts, name -> ordered trait ids.
        affinities: Trait category -> affinity points.
    """

    model_config = ConfigDict(extra="forbid")

    slots: list[TraitSlot] = Field(default_factory=list)
    discovered_trait_ids: set[str] = Field(default_factory=set)
    acquired_trait_ids: set[str] = Field(default_factory=set)
    permanent_trait_ids: set[str] = Field(default_factory=set)
    essence: int = Field(default=0, ge=0)
    essence_earned: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    relationships: dict[str, int] = Field(default_factory=dict)
    presets: dict[str, list[str]] = Field(default_factory=dict)
    affinities: dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_ownership(self) -> PlayerTraitState:
        violations = self.invariant_violations()
        if violations:
            raise ValueError("; ".join(violations))
        return self

    def invariant_violations(self) -> list[str]:
        """List every broken ownership invariant.

        Returns:
            Human-readable descriptions; empty when the state is consistent.
        """
        violations: list[str] = []
        seen: dict[str, int] = {}
        for position, slot in enumerate(self.slots):
            if slot.index != position:
                violations.append(f"slot at position {position} has index {slot.index}")
            if not slot.is_unlocked and slot.occupant_trait_id is not None:
                violations.append(f"locked slot {slot.index} is occupied")
            occupant = slot.occupant_trait_id
            if occupant is None:
                continue
            if occupant in seen:
                violations.append(f"trait {occupant!r} occupies slots {seen[occupant]} and {slot.index}")
            seen[occupant] = slot.index
            if occupant in self.permanent_trait_ids:
                violations.append(f"permanent trait {occupant!r} occupies slot {slot.index}")
        missing = self.permanent_trait_ids - self.acquired_trait_ids
        if missing:
            violations.append(f"permanent traits not acquired: {sorted(missing)}")
        undiscovered = self.acquired_trait_ids - self.discovered_trait_ids
        if undiscovered:
            violations.append(f"acquired traits not discovered: {sorted(undiscovered)}")
        return violations

    @property
    def equipped_trait_ids(self) -> list[str]:
        """Slotted trait ids in slot order."""
        return [slot.occupant_trait_id for slot in self.slots if slot.occupant_trait_id is not None]

    @property
    def active_trait_ids(self) -> frozenset[str]:
        """Equipped plus permanent trait ids."""
        return frozenset(self.equipped_trait_ids) | frozenset(self.permanent_trait_ids)

    @property
    def unlocked_slot_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_unlocked)

    def affinity_level(self, category: str) -> int:
        """Affinity level for a category, 1 until the first threshold is reached."""
        return affinity_level_for(self.affinities.get(category, 0))

    def slot_of(self, trait_id: str) -> TraitSlot | None:
        """Return the slot holding ``trait_id``, if any."""
        for slot in self.slots:
            if slot.occupant_trait_id == trait_id:
                return slot
        return None

    def gain_essence(self, amount: int) -> int:
        """Add essence and count it toward the cumulative total.

        Args:
            amount: Essence gained, must not be negative.

        Returns:
            The new essence balance.

        Raises:
            ValidationError: If ``amount`` is negative.
        """
        if amount < 0:
            raise ValidationError(
                "Essence gain cannot be negative",
                field_name="amount",
                invalid_value=amount,
            )
        self.essence += amount
        self.essence_earned += amount
        return self.essence

    def spend_essence(self, amount: int, *, trait_id: str | None = None) -> int:
        """Deduct essence for a purchase.

        Args:
            amount: Essence to spend.
            trait_id: Trait being paid for, for error context.

        Returns:
            The remaining essence balance.

        Raises:
            InsufficientEssenceError: If the balance is too low.
        """
        if amount > self.essence:
            raise InsufficientEssenceError(
                f"Not enough essence: need {amount}, have {self.essence}",
                trait_id=trait_id,
                required=amount,
                available=self.essence,
            )
        self.essence -= amount
        return self.essence


def get_active_trait_ids(player_state: PlayerTraitState) -> frozenset[str]:
    """Return the trait ids whose effects currently apply.

    Args:
        player_state: The player's trait state.

    Returns:
        Union of equipped and permanent trait ids.
    """
    return player_state.active_trait_ids


def create_player_trait_state(
    settings: TraitSettings | None = None,
    *,
    level: int = 1,
    essence: int = 0,
) -> PlayerTraitState:
    """Build a fresh player state with the configured slot layout.

    Slots whose requirement is already met by ``level`` start unlocked.

    Args:
        settings: Trait settings; the global settings when omitted.
        level: Starting player level.
        essence: Starting essence balance (not counted as earned).

    Returns:
        A new PlayerTraitState.
    """
    if settings is None:
        from essence_engine.core.config import get_settings

        settings = get_settings().traits

    slots: list[TraitSlot] = []
    for index, rule in enumerate(settings.slot_unlocks):
        requirement = SlotUnlockRequirement(type=SlotUnlockType(rule.type), threshold=rule.threshold)
        slots.append(
            TraitSlot(
                id=f"slot-{index}",
                index=index,
                is_unlocked=requirement.is_met(level=level, essence_earned=0),
                unlock_requirement=requirement,
            )
        )
    return PlayerTraitState(slots=slots, level=level, essence=essence)


__all__ = [
    "TraitEffect",
    "normalize_effects",
    "TraitRequirements",
    "TraitDefinition",
    "SlotUnlockRequirement",
    "TraitSlot",
    "affinity_level_for",
    "PlayerTraitState",
    "get_active_trait_ids",
    "create_player_trait_state",
]
