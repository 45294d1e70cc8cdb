"""
fabci.core.errors
=================

Exception hierarchy for interval construction.

All errors raised by the core derive from `FabError`, so batch callers can
isolate one area's failure without catching unrelated exceptions.

- `InvalidInputError`: rejected before any computation is attempted.
- `SpendingFunctionContractViolation`: the supplied spending function is not
  monotone, leaves [0, 1], or the endpoint cannot be bracketed.
- `RootFindingNonConvergence`: the bracketed refinement ran out of iterations.

Examples
--------
>>> from fabci.core.errors import InvalidInputError, FabError
>>> issubclass(InvalidInputError, ValueError)
True
>>> try:
...     raise InvalidInputError("alpha must be in (0, 1), got 1.5")
... except FabError as exc:
...     exc.kind
'invalid_input'
"""

from __future__ import annotations
from typing import Optional, Tuple


class FabError(Exception):
    """Base class for all fabci errors."""

    kind: str = "fab_error"


class InvalidInputError(FabError, ValueError):
    """Non-positive alpha, variance, scale or degrees of freedom, or malformed records."""

    kind = "invalid_input"


class SpendingFunctionContractViolation(FabError):
    """A spending function broke monotonicity or its [0, 1] range.

    Attributes:
        theta_range: The θ-range in which the violation was detected, if known.
    """

    kind = "spending_contract_violation"

    def __init__(
        self, message: str, theta_range: Optional[Tuple[float, float]] = None
    ) -> None:
        if theta_range is not None:
            message = f"{message} (theta range [{theta_range[0]:.6g}, {theta_range[1]:.6g}])"
        super().__init__(message)
        self.theta_range = theta_range


class RootFindingNonConvergence(FabError):
    """The root finder exhausted its iteration budget.

    Attributes:
        bracket: The last bracket known to contain the root.
        iterations: Iterations performed before giving up.
    """

    kind = "root_finding_non_convergence"

    def __init__(
        self,
        message: str,
        bracket: Tuple[float, float],
        iterations: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"{message} (last bracket [{bracket[0]:.12g}, {bracket[1]:.12g}])"
        )
        self.bracket = bracket
        self.iterations = iterations
