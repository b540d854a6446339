"""Core infrastructure for the essence engine.

Exports:
    Exceptions:
        EssenceEngineError: Base exception for all engine errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Data validation errors.

    Configuration:
        Settings: Main engine settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up engine logging.
        get_logger: Get a configured logger instance.
"""

from __future__ import annotations

from essence_engine.core.config import (
    CombatSettings,
    Settings,
    SlotUnlockRule,
    TraitSettings,
    clear_settings_cache,
    get_settings,
)
from essence_engine.core.exceptions import (
    AlreadyEquippedError,
    CombatError,
    ConfigurationError,
    EssenceEngineError,
    IllegalActionError,
    InsufficientEssenceError,
    InvalidEvolutionError,
    InvalidSlotError,
    NoAvailableSlotError,
    NotAcquiredError,
    NotFoundError,
    PresetNotFoundError,
    RegistryLoadError,
    RequirementNotMetError,
    TraitError,
    ValidationError,
)
from essence_engine.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)


__all__ = [
    # Base exception
    "EssenceEngineError",
    # Trait exceptions
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
    # Registry / combat exceptions
    "RegistryLoadError",
    "CombatError",
    "IllegalActionError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Configuration
    "Settings",
    "TraitSettings",
    "CombatSettings",
    "SlotUnlockRule",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
