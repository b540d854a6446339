"""Random checks for combat resolution.

All combat randomness flows through a ChanceRoller so a seeded roller makes
an entire encounter reproducible.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from essence_engine.core.exceptions import ValidationError
from essence_engine.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class ChanceRoll:
    """Outcome of a percentage check.

    Attributes:
        label: What the check was for, e.g. ``critical``.
        chance: Probability of success, clamped to [0, 1].
        roll: Uniform value in [0, 1) that was drawn.
        success: True if ``roll < chance``.
    """

    label: str
    chance: float
    roll: float
    success: bool


class ChanceRoller:
    """Seedable source of percentage checks and damage variance.

    Example:
        >>> roller = ChanceRoller(seed=7)
        >>> roller.check(1.0, label="always").success
        True
    """

    def __init__(self, *, seed: int | None = None, rng: random.Random | None = None) -> None:
        """Initialize the roller.

        Args:
            seed: Seed for a private random source.
            rng: Random source to use instead of creating one.
        """
        self._seed = seed
        self._rng = rng if rng is not None else random.Random(seed)
        logger.debug("ChanceRoller initialized", seed=seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def check(self, chance: float, *, label: str = "check") -> ChanceRoll:
        """Roll against a probability.

        A chance of 0 or less never succeeds and 1 or more always does;
        in both cases a value is still drawn so the sequence of draws does
        not depend on the chances involved.

        Args:
            chance: Success probability.
            label: Name recorded on the result.

        Returns:
            The ChanceRoll.
        """
        clamped = min(1.0, max(0.0, chance))
        roll = self._rng.random()
        result = ChanceRoll(label=label, chance=clamped, roll=roll, success=roll < clamped)
        logger.debug("Chance check", label=label, chance=clamped, roll=round(roll, 4), success=result.success)
        return result

    def variance(self, spread: int) -> int:
        """Draw a uniform integer in ``[-spread, spread]``.

        Raises:
            ValidationError: If ``spread`` is negative.
        """
        if spread < 0:
            raise ValidationError(
                "Variance spread cannot be negative",
                field_name="spread",
                invalid_value=spread,
            )
        return self._rng.randint(-spread, spread)


__all__ = [
    "ChanceRoll",
    "ChanceRoller",
]
