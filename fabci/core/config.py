"""
fabci.core.config
=================

Solver configuration shared by the interval engines.

Examples
--------
>>> from fabci.core.config import SolverConfig
>>> cfg = SolverConfig(max_bracket_expansions=10)
>>> cfg.absolute_tolerance(scale=2.0)
2e-10
"""

from __future__ import annotations
import math
import sys
from dataclasses import dataclass
from typing import Optional

from fabci.core.errors import InvalidInputError

ROOT_METHODS = ("brentq", "bisect", "ridder")

# smallest normal float; scipy rejects a zero xtol
MIN_TOLERANCE = sys.float_info.min


@dataclass(frozen=True, kw_only=True)
class SolverConfig:
    """
    Tolerances and iteration caps for the endpoint solver.

    Attributes:
        tolerance: Absolute tolerance on θ. ``None`` derives it from the
            scale of the estimate via ``relative_tolerance``.
        relative_tolerance: Multiplier of the scale used when ``tolerance`` is
            None, floored at `MIN_TOLERANCE`
        max_bracket_expansions: Cap on geometric bracket doublings
        max_bisection_iterations: Cap on iterations of the refining root finder
        spending_epsilon: Spending values are clamped to [ε, 1 − ε]
        method: scipy bracketing root finder ("brentq", "bisect", "ridder")
    """

    tolerance: Optional[float] = None
    relative_tolerance: float = 1e-10
    max_bracket_expansions: int = 64
    max_bisection_iterations: int = 200
    spending_epsilon: float = 1e-12
    method: str = "brentq"

    def __post_init__(self) -> None:
        if self.tolerance is not None and not (
            math.isfinite(self.tolerance) and self.tolerance > 0
        ):
            raise InvalidInputError(f"tolerance must be positive, got {self.tolerance}")
        if not (self.relative_tolerance > 0):
            raise InvalidInputError(
                f"relative_tolerance must be positive, got {self.relative_tolerance}"
            )
        if self.max_bracket_expansions < 1:
            raise InvalidInputError("max_bracket_expansions must be at least 1")
        if self.max_bisection_iterations < 1:
            raise InvalidInputError("max_bisection_iterations must be at least 1")
        if not (0.0 < self.spending_epsilon < 0.5):
            raise InvalidInputError(
                f"spending_epsilon must be in (0, 0.5), got {self.spending_epsilon}"
            )
        if self.method not in ROOT_METHODS:
            raise InvalidInputError(
                f"Unknown root finding method: {self.method}. Use one of {ROOT_METHODS}."
            )

    def absolute_tolerance(self, scale: float) -> float:
        """Tolerance on θ for an estimate with the given scale."""
        if self.tolerance is not None:
            return self.tolerance
        return max(self.relative_tolerance * scale, MIN_TOLERANCE)


DEFAULT_SOLVER_CONFIG = SolverConfig()


def validate_alpha(alpha: float) -> float:
    """Return ``alpha`` as float, raising `InvalidInputError` unless it is in (0, 1)."""
    alpha = float(alpha)
    if not (0.0 < alpha < 1.0):
        raise InvalidInputError(f"alpha must be in (0, 1), got {alpha}")
    return alpha
