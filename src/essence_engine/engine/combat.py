"""Turn-based resolution of single-enemy encounters.

The resolver is stateless apart from its random source: every action takes
an EncounterState and returns a new one inside a CombatTurnResult, leaving
the input untouched. Trait modifiers are passed per action so equipment
changes between turns take effect immediately.

State machine:
    start_encounter -> PLAYER turn
    PLAYER --player_attack--> ENEMY, or resolved (victory)
    PLAYER --flee-----------> resolved (retreat), or the enemy strikes and
                              the turn stays with the PLAYER (or defeat)
    ENEMY  --enemy_attack---> PLAYER, or resolved (defeat)

Actions on an encounter that is already decided are rejected, even when the
state was built by hand with ``active`` still set.

Example:
    >>> resolver = CombatResolver(CombatSettings(seed=1))
    >>> goblin = EnemyTemplate(id="goblin", name="Goblin", health=35, attack=4, defense=2)
    >>> encounter = resolver.start_encounter(PlayerBaseStats(attack=10), goblin)
    >>> resolver.player_attack(encounter, ModifierRecord.neutral()).damage_dealt
    8
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

from essence_engine.core.config import CombatSettings
from essence_engine.core.constants import MIN_DAMAGE, ROUND_STEP, STARTING_ROUND
from essence_engine.core.exceptions import IllegalActionError, ValidationError
from essence_engine.core.logging import get_logger
from essence_engine.engine.aggregator import floor_scaled
from essence_engine.engine.chance import ChanceRoller
from essence_engine.models.combat import (
    CombatEvent,
    CombatLogEntry,
    CombatTurnResult,
    EncounterState,
    EnemyState,
    EnemyTemplate,
    PlayerCombatState,
    Rewards,
)
from essence_engine.models.commands import CombatCommand
from essence_engine.models.enums import (
    CombatEventType,
    CombatOutcome,
    CombatTurn,
    Importance,
    LogEntryType,
)
from essence_engine.models.modifiers import ModifierRecord, PlayerBaseStats


logger = get_logger(__name__)


def level_multiplier_for(level: int, scaling: float = 0.2) -> float:
    """Enemy stat multiplier for a level, linear from 1.0 at level 1.

    Example:
        >>> level_multiplier_for(3)
        1.4
    """
    if level < 1:
        raise ValidationError("Enemy level must be at least 1", field_name="level", invalid_value=level)
    return round(1 + (level - 1) * scaling, 6)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


class CombatResolver:
    """Resolves encounter setup, attacks, flight and outcomes.

    Args:
        settings: Combat tuning; the global settings when omitted.
        roller: Random source; seeded from ``settings.seed`` when omitted.
    """

    def __init__(
        self,
        settings: CombatSettings | None = None,
        *,
        roller: ChanceRoller | None = None,
    ) -> None:
        if settings is None:
            from essence_engine.core.config import get_settings

            settings = get_settings().combat
        self._settings = settings
        self._roller = roller if roller is not None else ChanceRoller(seed=settings.seed)

    @property
    def settings(self) -> CombatSettings:
        return self._settings

    # =========================================================================
    # Setup
    # =========================================================================

    def start_encounter(
        self,
        player_base_stats: PlayerBaseStats,
        enemy_template: EnemyTemplate,
        level_multiplier: float = 1.0,
        difficulty_multiplier: float = 1.0,
        *,
        level: int = 1,
    ) -> EncounterState:
        """Create an encounter with a scaled enemy.

        Each enemy stat is ``floor(base * level_multiplier *
        difficulty_multiplier)``; health is at least 1.

        Args:
            player_base_stats: Player stats before trait modifiers.
            enemy_template: Unscaled enemy.
            level_multiplier: Scaling for enemy level.
            difficulty_multiplier: Scaling for chosen difficulty.
            level: Enemy level shown to the player.

        Returns:
            A new encounter waiting on the player.

        Raises:
            ValidationError: If a multiplier is not positive or the player
                has no health left.
        """
        if player_base_stats.current_health < 1:
            raise ValidationError(
                "Cannot start an encounter with a defeated player",
                field_name="current_health",
                invalid_value=player_base_stats.current_health,
            )
        for name, value in (("level_multiplier", level_multiplier), ("difficulty_multiplier", difficulty_multiplier)):
            if value <= 0:
                raise ValidationError(f"{name} must be positive", field_name=name, invalid_value=value)

        factor = level_multiplier * difficulty_multiplier
        max_health = max(1, floor_scaled(enemy_template.base_health, factor))
        enemy = EnemyState(
            template_id=enemy_template.id,
            name=enemy_template.name,
            level=level,
            current_health=max_health,
            max_health=max_health,
            attack=floor_scaled(enemy_template.base_attack, factor),
            defense=floor_scaled(enemy_template.base_defense, factor),
            experience_reward=floor_scaled(enemy_template.base_experience, factor),
            gold_reward=floor_scaled(enemy_template.base_gold, factor),
        )
        player = PlayerCombatState(
            current_health=player_base_stats.current_health,
            max_health=player_base_stats.max_health,
            current_mana=player_base_stats.current_mana,
            max_mana=player_base_stats.max_mana,
            base_attack=player_base_stats.attack,
            base_defense=player_base_stats.defense,
        )
        encounter = EncounterState(
            round=STARTING_ROUND,
            turn=CombatTurn.PLAYER,
            player=player,
            enemy=enemy,
            log=[
                CombatLogEntry(
                    message=f"A level {level} {enemy.name} appears!",
                    type=LogEntryType.INFO,
                )
            ],
        )
        logger.info(
            "Encounter started",
            encounter_id=str(encounter.id),
            enemy=enemy.name,
            level=level,
            enemy_health=enemy.max_health,
        )
        return encounter

    def start_scaled_encounter(
        self,
        player_base_stats: PlayerBaseStats,
        enemy_template: EnemyTemplate,
        *,
        level: int = 1,
        difficulty_multiplier: float = 1.0,
    ) -> EncounterState:
        """Start an encounter with the level multiplier derived from ``level``."""
        multiplier = level_multiplier_for(level, self._settings.level_scaling_factor)
        return self.start_encounter(
            player_base_stats,
            enemy_template,
            multiplier,
            difficulty_multiplier,
            level=level,
        )

    # =========================================================================
    # Actions
    # =========================================================================

    def player_attack(self, encounter: EncounterState, modifiers: ModifierRecord) -> CombatTurnResult:
        """Resolve the player's basic attack.

        Order: the ``dodgeChance`` roll, base damage, critical, rounding,
        health, essence siphon, victory check. A successful dodge roll
        means no damage this turn and passes the turn to the enemy.

        Args:
            encounter: Current encounter; not modified.
            modifiers: Aggregated trait modifiers.

        Returns:
            The updated encounter and its events.

        Raises:
            IllegalActionError: In strict mode, if it is not the player's turn.
        """
        if not encounter.player_turn or is_terminal(encounter) is not None:
            return self._reject(encounter, "player_attack")

        state = encounter.model_copy(deep=True)
        enemy = state.enemy
        events: list[CombatEvent] = []
        state.round += ROUND_STEP

        if self._roller.check(modifiers.dodge_chance, label="dodge").success:
            self._log(state, f"{enemy.name} evades your attack!", LogEntryType.DODGE)
            events.append(CombatEvent(type=CombatEventType.DODGED, actor=CombatTurn.PLAYER))
            state.turn = CombatTurn.ENEMY
            logger.info("Player attack dodged", encounter_id=str(state.id), round=state.round)
            return CombatTurnResult(encounter=state, events=events)

        final_attack = max(0, floor_scaled(state.player.base_attack, 1 + modifiers.attack_bonus))
        raw_damage: float = max(MIN_DAMAGE, final_attack - enemy.defense)

        critical_chance = self._settings.base_critical_chance + modifiers.critical_chance
        is_critical = self._roller.check(critical_chance, label="critical").success
        if is_critical:
            raw_damage *= 1 + self._settings.base_critical_damage + modifiers.critical_damage

        damage = max(MIN_DAMAGE, round_half_up(raw_damage))
        enemy.current_health = max(0, enemy.current_health - damage)

        if is_critical:
            self._log(
                state,
                f"Critical hit! You deal {damage} damage to {enemy.name}.",
                LogEntryType.CRITICAL,
                Importance.HIGH,
            )
            events.append(CombatEvent(type=CombatEventType.CRITICAL_HIT, actor=CombatTurn.PLAYER, amount=damage))
        else:
            self._log(state, f"You attack {enemy.name} for {damage} damage.", LogEntryType.ATTACK)
            events.append(CombatEvent(type=CombatEventType.HIT, actor=CombatTurn.PLAYER, amount=damage))

        if self._roller.check(modifiers.essence_siphon_chance, label="essence_siphon").success:
            essence = math.ceil(damage * self._settings.essence_siphon_ratio)
            state.essence_siphoned += essence
            self._log(state, f"You siphon {essence} essence from {enemy.name}.", LogEntryType.ESSENCE)
            events.append(CombatEvent(type=CombatEventType.ESSENCE_SIPHONED, actor=CombatTurn.PLAYER, amount=essence))

        logger.info(
            "Player attack resolved",
            encounter_id=str(state.id),
            round=state.round,
            damage=damage,
            critical=is_critical,
            enemy_health=enemy.current_health,
        )

        if enemy.is_defeated:
            rewards = Rewards(
                experience=floor_scaled(enemy.experience_reward, modifiers.xp_multiplier),
                gold=floor_scaled(enemy.gold_reward, modifiers.gold_multiplier),
            )
            state.rewards = rewards
            self._resolve(state, CombatOutcome.VICTORY)
            self._log(
                state,
                f"You defeated {enemy.name}! Gained {rewards.experience} experience and {rewards.gold} gold.",
                LogEntryType.VICTORY,
                Importance.HIGH,
            )
            events.append(CombatEvent(type=CombatEventType.VICTORY, actor=CombatTurn.PLAYER))
        else:
            state.turn = CombatTurn.ENEMY

        return CombatTurnResult(encounter=state, events=events)

    def enemy_attack(self, encounter: EncounterState, modifiers: ModifierRecord) -> CombatTurnResult:
        """Resolve the enemy's attack against the player.

        Damage is ``max(1, enemy.attack - finalDefense)`` plus a uniform
        integer variance, floored at 1. There is no dodge roll here; the
        ``dodgeChance`` modifier only applies to the player's own attack.

        Raises:
            IllegalActionError: In strict mode, if it is not the enemy's turn.
        """
        if not encounter.active or encounter.turn != CombatTurn.ENEMY or is_terminal(encounter) is not None:
            return self._reject(encounter, "enemy_attack")

        state = encounter.model_copy(deep=True)
        events: list[CombatEvent] = []
        state.round += ROUND_STEP

        final_defense = max(0, floor_scaled(state.player.base_defense, 1 + modifiers.defense_bonus))
        base_damage = max(MIN_DAMAGE, state.enemy.attack - final_defense)
        damage = max(MIN_DAMAGE, base_damage + self._roller.variance(self._settings.enemy_damage_variance))
        self._enemy_strike(state, damage, events)

        if state.active:
            state.turn = CombatTurn.PLAYER
        return CombatTurnResult(encounter=state, events=events)

    def flee(self, encounter: EncounterState, modifiers: ModifierRecord | None = None) -> CombatTurnResult:
        """Try to escape on the player's turn.

        Success ends the encounter as a retreat with no rewards. On failure
        the enemy gets a free hit for its full attack, unreduced by defense
        and without variance; the turn stays with the player unless the hit
        is fatal.

        Raises:
            IllegalActionError: In strict mode, if it is not the player's turn.
        """
        if not encounter.player_turn or is_terminal(encounter) is not None:
            return self._reject(encounter, "flee")

        state = encounter.model_copy(deep=True)
        state.round += ROUND_STEP

        if self._roller.check(self._settings.flee_chance, label="flee").success:
            self._resolve(state, CombatOutcome.RETREAT)
            self._log(state, f"You fled from {state.enemy.name}.", LogEntryType.FLEE, Importance.HIGH)
            logger.info("Flee attempted", encounter_id=str(state.id), success=True)
            event = CombatEvent(type=CombatEventType.FLED, actor=CombatTurn.PLAYER)
            return CombatTurnResult(encounter=state, events=[event])

        self._log(state, f"You failed to escape from {state.enemy.name}!", LogEntryType.FLEE)
        events = [CombatEvent(type=CombatEventType.FLEE_FAILED, actor=CombatTurn.PLAYER)]
        logger.info("Flee attempted", encounter_id=str(state.id), success=False)
        self._enemy_strike(state, max(MIN_DAMAGE, state.enemy.attack), events)
        return CombatTurnResult(encounter=state, events=events)

    def is_terminal(self, encounter: EncounterState) -> CombatOutcome | None:
        """Return the encounter's outcome, or None while it is ongoing."""
        return is_terminal(encounter)

    def apply(
        self,
        encounter: EncounterState,
        command: CombatCommand,
        modifiers: ModifierRecord,
    ) -> CombatTurnResult:
        """Single entry point for combat commands."""
        command_type = command.type

        if command_type == "player_attack":
            return self.player_attack(encounter, modifiers)
        elif command_type == "enemy_attack":
            return self.enemy_attack(encounter, modifiers)
        elif command_type == "flee":
            return self.flee(encounter, modifiers)
        raise ValidationError(f"Unsupported combat command: {command_type}", field_name="type", invalid_value=command_type)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _reject(self, encounter: EncounterState, action: str) -> CombatTurnResult:
        if self._settings.strict_actions:
            over = not encounter.active or is_terminal(encounter) is not None
            reason = "encounter is over" if over else f"it is the {encounter.turn}'s turn"
            raise IllegalActionError(
                f"Cannot {action.replace('_', ' ')}: {reason}",
                round_number=encounter.round,
                details={"action": action, "turn": str(encounter.turn), "active": encounter.active},
            )
        logger.debug("Combat action ignored", action=action, turn=encounter.turn, active=encounter.active)
        return CombatTurnResult(encounter=encounter, events=[], applied=False)

    def _enemy_strike(self, state: EncounterState, damage: int, events: list[CombatEvent]) -> None:
        enemy = state.enemy
        player = state.player
        player.current_health = max(0, player.current_health - damage)

        self._log(state, f"{enemy.name} hits you for {damage} damage.", LogEntryType.DAMAGE)
        events.append(CombatEvent(type=CombatEventType.HIT, actor=CombatTurn.ENEMY, amount=damage))
        logger.info(
            "Enemy attack resolved",
            encounter_id=str(state.id),
            round=state.round,
            damage=damage,
            player_health=player.current_health,
        )

        if player.is_defeated:
            self._resolve(state, CombatOutcome.DEFEAT)
            self._log(state, f"You were defeated by {enemy.name}.", LogEntryType.DEFEAT, Importance.HIGH)
            events.append(CombatEvent(type=CombatEventType.DEFEAT, actor=CombatTurn.ENEMY))

    @staticmethod
    def _resolve(state: EncounterState, outcome: CombatOutcome) -> None:
        state.active = False
        state.outcome = outcome
        state.ended_at = datetime.now(UTC)
        logger.info("Encounter resolved", encounter_id=str(state.id), outcome=outcome, round=state.round)

    @staticmethod
    def _log(
        state: EncounterState,
        message: str,
        entry_type: LogEntryType,
        importance: Importance = Importance.NORMAL,
    ) -> None:
        state.log.append(CombatLogEntry(message=message, type=entry_type, importance=importance))


# =============================================================================
# Functional Interface
# =============================================================================


def start_encounter(
    player_base_stats: PlayerBaseStats,
    enemy_template: EnemyTemplate,
    level_multiplier: float = 1.0,
    difficulty_multiplier: float = 1.0,
    *,
    level: int = 1,
    resolver: CombatResolver | None = None,
) -> EncounterState:
    """Start an encounter with ``resolver`` or a settings-driven one."""
    resolver = resolver or CombatResolver()
    return resolver.start_encounter(
        player_base_stats,
        enemy_template,
        level_multiplier,
        difficulty_multiplier,
        level=level,
    )


def player_attack(
    encounter: EncounterState,
    modifiers: ModifierRecord,
    *,
    resolver: CombatResolver | None = None,
) -> CombatTurnResult:
    return (resolver or CombatResolver()).player_attack(encounter, modifiers)


def enemy_attack(
    encounter: EncounterState,
    modifiers: ModifierRecord,
    *,
    resolver: CombatResolver | None = None,
) -> CombatTurnResult:
    return (resolver or CombatResolver()).enemy_attack(encounter, modifiers)


def is_terminal(encounter: EncounterState) -> CombatOutcome | None:
    """Outcome of ``encounter`` if it has ended; see CombatResolver.is_terminal."""
    if encounter.outcome is not None:
        return encounter.outcome
    if encounter.enemy.is_defeated:
        return CombatOutcome.VICTORY
    if encounter.player.is_defeated:
        return CombatOutcome.DEFEAT
    return None


__all__ = [
    "level_multiplier_for",
    "round_half_up",
    "CombatResolver",
    "start_encounter",
    "player_attack",
    "enemy_attack",
    "is_terminal",
]
