"""
fabci.stats.common.root_finding
===============================

Endpoint solver for spending-function confidence intervals.

Given an estimate ``y`` with scale ``σ``, an error rate ``α``, a spending
function ``s`` and a quantile provider ``Q``, the interval endpoints solve
the implicit equations

    θ_low  = y + σ · Q( α · (1 − s(θ_low)) )
    θ_high = y + σ · Q( 1 − α · s(θ_high) )

Because ``s`` is non-decreasing and ``Q`` strictly increasing, both

    f_low(θ)  = y + σ·Q(α(1 − s(θ))) − θ
    f_high(θ) = y + σ·Q(1 − α·s(θ)) − θ

are strictly decreasing in θ, so each has at most one root. The solver
starts at the closed-form direct endpoint (s ≡ 1/2), expands a bracket
geometrically outward until ``f`` changes sign, and refines it with a
scipy bracketing root finder.

Spending values are clamped to [ε, 1 − ε] before reaching ``Q``. The clamped
function is itself non-decreasing with values in (0, 1), so the interval it
produces keeps exact coverage.

Examples
--------
>>> from fabci.stats.common.root_finding import EndpointSolver
>>> from fabci.stats.common.spending import ConstantSpending
>>> solver = EndpointSolver()
>>> lo, hi = solver.solve(estimate=0.0, scale=1.0, alpha=0.05, spending=ConstantSpending())
>>> round(lo, 4), round(hi, 4)
(-1.96, 1.96)
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Tuple

from scipy.optimize import bisect, brentq, ridder

from fabci.core.config import DEFAULT_SOLVER_CONFIG, SolverConfig, validate_alpha
from fabci.core.errors import (
    InvalidInputError,
    RootFindingNonConvergence,
    SpendingFunctionContractViolation,
)
from fabci.stats.common.quantiles import NormalQuantiles, QuantileProvider
from fabci.stats.common.spending import SpendingFunction

LOG = logging.getLogger(__name__)

_ROOT_FINDERS = {"brentq": brentq, "bisect": bisect, "ridder": ridder}


def direct_endpoints(
    estimate: float, scale: float, alpha: float, quantiles: QuantileProvider
) -> Tuple[float, float]:
    """Equal-tailed interval ``y ± σ·Q(1 − α/2)``."""
    half = scale * quantiles.two_sided(alpha)
    return estimate - half, estimate + half


def bracket_decreasing(
    f: Callable[[float], float],
    start: float,
    step: float,
    max_expansions: int,
) -> Tuple[float, float]:
    """
    Bracket the root of a decreasing function by geometric expansion.

    Walks away from ``start`` in the direction in which ``f`` decreases
    toward zero, doubling the step each time, until the sign changes.

    Args:
        f: Strictly decreasing function
        start: Initial point (a good guess of the root)
        step: Initial step, doubled after every expansion
        max_expansions: Maximum number of doublings

    Returns:
        ``(a, b)`` with ``a < b``, ``f(a) >= 0`` and ``f(b) <= 0``

    Raises:
        SpendingFunctionContractViolation: if no sign change is found
    """
    f_start = f(start)
    if math.isnan(f_start):
        raise SpendingFunctionContractViolation(
            "endpoint equation is NaN", (start, start)
        )
    if f_start == 0.0:
        return start, start

    direction = 1.0 if f_start > 0 else -1.0
    inner, f_inner = start, f_start
    for k in range(max_expansions):
        outer = start + direction * step * (2.0**k)
        f_outer = f(outer)
        LOG.debug(
            "bracket expansion %d: theta=%.12g f=%.6g", k + 1, outer, f_outer
        )
        if math.isnan(f_outer):
            raise SpendingFunctionContractViolation(
                "endpoint equation is NaN", tuple(sorted((inner, outer)))
            )
        if f_outer == 0.0 or (f_outer > 0) != (f_inner > 0):
            return (inner, outer) if direction > 0 else (outer, inner)
        if direction * (f_outer - f_inner) > 0:
            # f must decrease along the walk toward its root
            raise SpendingFunctionContractViolation(
                "endpoint equation is not monotone; spending function decreases",
                tuple(sorted((inner, outer))),
            )
        inner, f_inner = outer, f_outer

    raise SpendingFunctionContractViolation(
        f"no sign change within {max_expansions} bracket expansions",
        tuple(sorted((start, inner))),
    )


class _BracketTracker:
    """
    Wraps a decreasing ``f`` and keeps the tightest evaluated pair that
    still straddles its root, so a failed refinement can report it.
    """

    def __init__(self, f: Callable[[float], float], a: float, b: float):
        self.f = f
        self.lo = a
        self.hi = b

    def __call__(self, theta: float) -> float:
        value = self.f(theta)
        if self.lo < theta < self.hi:
            if value > 0:
                self.lo = theta
            elif value < 0:
                self.hi = theta
            elif value == 0:
                self.lo = self.hi = theta
        return value

    @property
    def bracket(self) -> Tuple[float, float]:
        return self.lo, self.hi


@dataclass(frozen=True)
class EndpointSolver:
    """
    Stateless solver for the two implicit endpoint equations.

    Attributes:
        quantiles: Quantile provider ``Q`` of the pivot
        config: Tolerances and iteration caps
    """

    quantiles: QuantileProvider = field(default_factory=NormalQuantiles)
    config: SolverConfig = DEFAULT_SOLVER_CONFIG

    def _clamped(self, spending: SpendingFunction, theta: float) -> float:
        value = spending(theta)
        if not (0.0 <= value <= 1.0):
            raise SpendingFunctionContractViolation(
                f"spending value {value} outside [0, 1]", (theta, theta)
            )
        eps = self.config.spending_epsilon
        return min(max(value, eps), 1.0 - eps)

    def lower_equation(
        self, estimate: float, scale: float, alpha: float, spending: SpendingFunction
    ) -> Callable[[float], float]:
        """``f_low(θ) = y + σ·Q(α(1 − s(θ))) − θ``."""

        def f_low(theta: float) -> float:
            w = self._clamped(spending, theta)
            return estimate + scale * self.quantiles.ppf(alpha * (1.0 - w)) - theta

        return f_low

    def upper_equation(
        self, estimate: float, scale: float, alpha: float, spending: SpendingFunction
    ) -> Callable[[float], float]:
        """``f_high(θ) = y + σ·Q(1 − α·s(θ)) − θ``."""

        def f_high(theta: float) -> float:
            w = self._clamped(spending, theta)
            return estimate + scale * self.quantiles.ppf(1.0 - alpha * w) - theta

        return f_high

    def find_root(
        self, f: Callable[[float], float], start: float, scale: float
    ) -> float:
        """Bracket from ``start`` and refine the root of decreasing ``f``."""
        a, b = bracket_decreasing(
            f, start, step=scale, max_expansions=self.config.max_bracket_expansions
        )
        if a == b:
            return a

        root_finder = _ROOT_FINDERS[self.config.method]
        tracked = _BracketTracker(f, a, b)
        try:
            root, result = root_finder(
                tracked,
                a,
                b,
                xtol=self.config.absolute_tolerance(scale),
                maxiter=self.config.max_bisection_iterations,
                full_output=True,
                disp=False,
            )
        except ValueError as exc:
            # scipy rejects brackets whose endpoints share a sign
            raise SpendingFunctionContractViolation(str(exc), (a, b)) from exc
        if not result.converged:
            raise RootFindingNonConvergence(
                f"{self.config.method} did not converge in "
                f"{self.config.max_bisection_iterations} iterations",
                bracket=tracked.bracket,
                iterations=result.iterations,
            )
        LOG.debug(
            "root %.12g refined in %d iterations from [%.12g, %.12g]",
            root,
            result.iterations,
            a,
            b,
        )
        return float(root)

    def solve(
        self,
        estimate: float,
        scale: float,
        alpha: float,
        spending: SpendingFunction,
    ) -> Tuple[float, float]:
        """
        Solve for ``(θ_low, θ_high)``.

        Args:
            estimate: Observed estimate ``y``
            scale: Scale ``σ`` of the estimate (standard error)
            alpha: Error rate in (0, 1)
            spending: Spending function fixed independently of ``estimate``

        Returns:
            Tuple ``(lower, upper)`` with ``lower <= upper``; each endpoint is
            within the configured absolute tolerance of the exact root

        Raises:
            InvalidInputError: non-finite estimate, non-positive scale or invalid alpha
            SpendingFunctionContractViolation: spending function out of contract
            RootFindingNonConvergence: iteration budget exhausted
        """
        alpha = validate_alpha(alpha)
        if not math.isfinite(estimate):
            raise InvalidInputError(f"estimate must be finite, got {estimate}")
        if not (math.isfinite(scale) and scale > 0):
            raise InvalidInputError(f"scale must be positive and finite, got {scale}")

        direct_lo, direct_hi = direct_endpoints(estimate, scale, alpha, self.quantiles)
        lower = self.find_root(
            self.lower_equation(estimate, scale, alpha, spending), direct_lo, scale
        )
        upper = self.find_root(
            self.upper_equation(estimate, scale, alpha, spending), direct_hi, scale
        )

        if lower > upper:
            tol = self.config.absolute_tolerance(scale)
            if lower - upper > 2.0 * tol:
                raise SpendingFunctionContractViolation(
                    "lower endpoint exceeds upper endpoint", (upper, lower)
                )
            lower = upper = 0.5 * (lower + upper)
        return lower, upper
