"""Exception hierarchy for the essence trait and combat engine.

Every engine failure derives from EssenceEngineError. Command dispatch turns
these into failed results using the class-level ``code``, so the codes are
part of the public contract and must stay stable.

Keyword context given to a subclass (``trait_id``, ``slot_index`` and so on)
is folded into ``details``; ``None`` values are left out.

Example:
    >>> from essence_engine.core.exceptions import NotAcquiredError
    >>> raise NotAcquiredError("Trait not owned", trait_id="BattleHardened")
"""

from __future__ import annotations

from typing import Any


def _with_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
    merged = dict(details or {})
    merged.update({key: value for key, value in context.items() if value is not None})
    return merged


class EssenceEngineError(Exception):
    """Root of the engine's errors.

    Attributes:
        message: What went wrong, without the context.
        details: Structured context for logs and command results.
        code: Machine-readable identifier shared by every instance of the class.
    """

    code: str = "engine_error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{context}]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Trait Exceptions
# =============================================================================


class TraitError(EssenceEngineError):
    """A trait command could not be carried out."""

    code = "trait_error"

    def __init__(
        self,
        message: str,
        *,
        trait_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.trait_id = trait_id
        super().__init__(message, details=_with_context(details, trait_id=trait_id))


class NotFoundError(TraitError):
    """The trait id is not in the registry."""

    code = "not_found"


class NotAcquiredError(TraitError):
    code = "not_acquired"


class AlreadyEquippedError(TraitError):
    """The trait is already active, in a slot or as a permanent trait."""

    code = "already_equipped"

    def __init__(
        self,
        message: str,
        *,
        trait_id: str | None = None,
        slot_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, trait_id=trait_id, details=_with_context(details, slot_index=slot_index))


class NoAvailableSlotError(TraitError):
    """Every unlocked slot is occupied."""

    code = "no_available_slot"


class InvalidSlotError(TraitError):
    code = "invalid_slot"

    def __init__(
        self,
        message: str,
        *,
        slot_index: int | None = None,
        slot_count: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, slot_index=slot_index, slot_count=slot_count),
        )


class InsufficientEssenceError(TraitError):
    """The player's balance is below the cost.

    ``required`` and ``available`` are recorded so a client can show how much
    is missing.
    """

    code = "insufficient_essence"

    def __init__(
        self,
        message: str,
        *,
        trait_id: str | None = None,
        required: int | None = None,
        available: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            trait_id=trait_id,
            details=_with_context(details, required=required, available=available),
        )


class RequirementNotMetError(TraitError):
    """A level, prerequisite or relationship requirement failed.

    ``requirement`` names which one (``min_level``, ``prerequisites`` or
    ``min_relationship``).
    """

    code = "requirement_not_met"

    def __init__(
        self,
        message: str,
        *,
        trait_id: str | None = None,
        requirement: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, trait_id=trait_id, details=_with_context(details, requirement=requirement))


class PresetNotFoundError(TraitError):
    code = "preset_not_found"


class InvalidEvolutionError(TraitError):
    """The chosen trait is not on the evolution path, or is already owned."""

    code = "invalid_evolution"

    def __init__(
        self,
        message: str,
        *,
        trait_id: str | None = None,
        evolution_choice: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            trait_id=trait_id,
            details=_with_context(details, evolution_choice=evolution_choice),
        )


# =============================================================================
# Registry Exceptions
# =============================================================================


class RegistryLoadError(EssenceEngineError):
    """Trait or enemy content failed to parse.

    One bad entry fails the whole load; nothing is skipped.
    """

    code = "registry_load_failed"

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        entry_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, source=source, entry_id=entry_id))


# =============================================================================
# Combat Exceptions
# =============================================================================


class CombatError(EssenceEngineError):
    code = "combat_error"

    def __init__(
        self,
        message: str,
        *,
        round_number: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, round_number=round_number))


class IllegalActionError(CombatError):
    """An action arrived out of turn or after the encounter ended (strict mode only)."""

    code = "illegal_action"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(EssenceEngineError):
    """Settings failed to load or hold inconsistent values."""

    code = "configuration_error"

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, config_key=config_key))


class ValidationError(EssenceEngineError):
    """An argument passed to an engine call is out of range or unsupported."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, field_name=field_name, invalid_value=invalid_value),
        )


__all__ = [
    "EssenceEngineError",
    # Traits
    "TraitError",
    "NotFoundError",
    "NotAcquiredError",
    "AlreadyEquippedError",
    "NoAvailableSlotError",
    "InvalidSlotError",
    "InsufficientEssenceError",
    "RequirementNotMetError",
    "PresetNotFoundError",
    "InvalidEvolutionError",
    # Registry
    "RegistryLoadError",
    # Combat
    "CombatError",
    "IllegalActionError",
    # Configuration
    "ConfigurationError",
    "ValidationError",
]
