"""
fabci.stats.common.spending
===========================

Spending functions: how much of the error rate ``alpha`` each tail receives
as a function of the candidate true value θ.

A spending function ``s`` is any total map ℝ → [0, 1] that is
non-decreasing with limits 0 at −∞ and 1 at +∞; the constant 1/2 is also
admissible and reproduces the direct interval. Coverage of the resulting
interval is exactly ``1 - alpha`` for *any* such ``s`` chosen before the
target area's estimate is seen; the choice of ``s`` only affects width.

Provides:

- `ConstantSpending`: the direct-interval reference (s ≡ 1/2 by default).
- `NormalPriorSpending`: the width-optimal function for a normal prior
  ``θ ~ N(μ, τ²)`` and known sampling variance σ².
- `StudentTPriorSpending`: the same construction with Student-t quantiles.
- `SpendingRegistry`: named spending families ("fab", "direct"), resolved
  by the engines much like named alpha-spending styles.
- `check_spending_contract`, `spending_curve`: contract checks and
  evaluation on a grid (e.g. for plotting spending vs. θ).

Mathematical Background
-----------------------
By Pratt's identity the expected width of a confidence procedure equals
∫ P(θ ∈ C(Y)) dθ. With ``Y ~ N(μ, σ² + τ²)`` marginally, minimizing the
integrand pointwise over ``w = s(θ)`` gives the stationarity condition

    g(w) = Q(α·w) − Q(α·(1 − w)) = 2σ(θ − μ) / τ²,

and ``g`` increases from −∞ to +∞ on (0, 1) with ``g(1/2) = 0``. Hence
``s(θ) = g⁻¹(2σ(θ − μ)/τ²)``: symmetric about μ, increasing, and steeper
as τ² shrinks relative to σ².

References:
    Pratt, J.W. (1963). Shorter confidence intervals for the mean of a normal
    distribution with known variance. Ann. Math. Statist. 34(2), 574-586.
    Yu, C. and Hoff, P.D. (2018). Adaptive multigroup confidence intervals
    with constant coverage. Biometrika 105(2), 319-335.

Examples
--------
>>> from fabci.stats.common.spending import NormalPriorSpending, ConstantSpending
>>> s = NormalPriorSpending(prior_mean=0.0, prior_variance=1.0, sampling_variance=1.0)
>>> s(0.0)
0.5
>>> s(-1.0) < 0.5 < s(1.0)
True
>>> ConstantSpending()(123.0)
0.5
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Union

import numpy as np
from scipy.optimize import brentq

from fabci.core.errors import InvalidInputError, SpendingFunctionContractViolation
from fabci.stats.common.quantiles import (
    NormalQuantiles,
    QuantileProvider,
    quantile_provider,
)

# Below this tail fraction the optimal spending is reported as exactly 0 or 1.
_LOG_V_MIN = math.log(1e-100)


class SpendingFunction(Protocol):
    """Pure, non-decreasing map θ ↦ s(θ) ∈ [0, 1]."""

    def __call__(self, theta: float) -> float: ...


@dataclass(frozen=True)
class ConstantSpending:
    """
    Spend a fixed fraction of ``alpha`` on the upper tail regardless of θ.

    With ``value=0.5`` (the default) the FAB equations reduce to the
    equal-tailed direct interval.
    """

    value: float = 0.5

    def __post_init__(self) -> None:
        if not (0.0 < self.value < 1.0):
            raise InvalidInputError(f"constant spending must be in (0, 1), got {self.value}")

    def __call__(self, theta: float) -> float:
        return self.value


def inverse_width_gradient(x: float, alpha: float, quantiles: QuantileProvider) -> float:
    """
    Solve ``Q(α·w) − Q(α·(1 − w)) = x`` for ``w`` in [0, 1].

    Uses the symmetry of ``Q`` to search the small tail fraction
    ``v = min(w, 1 − w)`` on a log scale, which keeps relative precision for
    values far below machine epsilon.

    Args:
        x: Target value of the width gradient
        alpha: Total error rate
        quantiles: Symmetric quantile provider

    Returns:
        ``w``; exactly 0 or 1 once ``|x|`` exceeds the representable range

    Examples:
        >>> from fabci.stats.common.quantiles import NormalQuantiles
        >>> inverse_width_gradient(0.0, 0.05, NormalQuantiles())
        0.5
    """
    if x == 0.0:
        return 0.5
    if math.isnan(x):
        raise SpendingFunctionContractViolation("spending argument is NaN")
    target = abs(x)

    def gap(log_v: float) -> float:
        v = math.exp(log_v)
        return quantiles.ppf(alpha * (1.0 - v)) - quantiles.ppf(alpha * v) - target

    log_lo = _LOG_V_MIN
    top = gap(log_lo)
    # heavy-tailed quantiles can overflow (or fail) this far out
    while not (top < math.inf) and log_lo < -10.0:
        log_lo /= 2.0
        top = gap(log_lo)
    if not math.isfinite(top) or top <= 0.0:
        v = 0.0
    else:
        log_v = brentq(gap, log_lo, math.log(0.5), xtol=1e-13)
        v = math.exp(log_v)
    return v if x < 0 else 1.0 - v


@dataclass(frozen=True)
class NormalPriorSpending:
    """
    Width-optimal spending for a normal prior and known sampling variance.

    Attributes:
        prior_mean: Prior mean μ of the area's true value
        prior_variance: Prior variance τ² (``math.inf`` gives constant 1/2)
        sampling_variance: Known variance σ² of the area's estimate
        alpha: Error rate the function is optimized for
    """

    prior_mean: float
    prior_variance: float
    sampling_variance: float
    alpha: float = 0.05
    quantiles: QuantileProvider = field(default_factory=NormalQuantiles)

    def __post_init__(self) -> None:
        if not (self.prior_variance > 0):
            raise InvalidInputError(
                f"prior_variance must be positive, got {self.prior_variance}"
            )
        if not (self.sampling_variance > 0 and math.isfinite(self.sampling_variance)):
            raise InvalidInputError(
                f"sampling_variance must be positive and finite, got {self.sampling_variance}"
            )
        if not (0.0 < self.alpha < 1.0):
            raise InvalidInputError(f"alpha must be in (0, 1), got {self.alpha}")

    @property
    def slope(self) -> float:
        """Coefficient of (θ − μ) in the width-gradient argument."""
        if math.isinf(self.prior_variance):
            return 0.0
        return 2.0 * math.sqrt(self.sampling_variance) / self.prior_variance

    def __call__(self, theta: float) -> float:
        return inverse_width_gradient(
            self.slope * (theta - self.prior_mean), self.alpha, self.quantiles
        )


@dataclass(frozen=True)
class StudentTPriorSpending(NormalPriorSpending):
    """
    Spending for the estimated-variance case.

    Same construction as `NormalPriorSpending` with Student-t quantiles on
    ``df`` degrees of freedom; ``sampling_variance`` is the prior point
    estimate of the sampling variance (s0²), never the target area's own
    sample variance.

    Attributes:
        df: Degrees of freedom of the t pivot
    """

    df: float = math.inf
    quantiles: QuantileProvider = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "quantiles", quantile_provider(self.df))


# --- Registry of spending families ---


@dataclass(frozen=True)
class SpendingContext:
    """
    Inputs available to a spending factory, none of them the target estimate.

    Attributes:
        prior_mean: Linking-model prior mean
        prior_variance: Linking-model prior variance
        sampling_variance: Sampling variance (known, or its prior point estimate)
        alpha: Error rate
        df: Degrees of freedom of the pivot, None for a known variance
    """

    prior_mean: float
    prior_variance: float
    sampling_variance: float
    alpha: float
    df: Optional[float] = None


SpendingFactory = Callable[[SpendingContext], SpendingFunction]
SpendingLike = Union[str, SpendingFactory]


def _fab_factory(ctx: SpendingContext) -> SpendingFunction:
    if ctx.df is None:
        return NormalPriorSpending(
            prior_mean=ctx.prior_mean,
            prior_variance=ctx.prior_variance,
            sampling_variance=ctx.sampling_variance,
            alpha=ctx.alpha,
        )
    return StudentTPriorSpending(
        prior_mean=ctx.prior_mean,
        prior_variance=ctx.prior_variance,
        sampling_variance=ctx.sampling_variance,
        alpha=ctx.alpha,
        df=ctx.df,
    )


def _direct_factory(ctx: SpendingContext) -> SpendingFunction:
    return ConstantSpending()


class SpendingRegistry:
    """Registry of named spending families."""

    _factories: Dict[str, SpendingFactory] = {
        "fab": _fab_factory,
        "direct": _direct_factory,
    }

    @classmethod
    def register(cls, name: str, factory: SpendingFactory) -> None:
        """Register a spending family under ``name``."""
        cls._factories[name.lower()] = factory

    @classmethod
    def names(cls) -> List[str]:
        return sorted(cls._factories)

    @classmethod
    def get(cls, name: str) -> SpendingFactory:
        try:
            return cls._factories[name.lower()]
        except KeyError:
            raise InvalidInputError(
                f"Unknown spending family: {name}. Use one of {cls.names()}."
            ) from None

    @classmethod
    def create(cls, spending: SpendingLike, ctx: SpendingContext) -> SpendingFunction:
        """Instantiate a spending function from a family name or factory."""
        factory = cls.get(spending) if isinstance(spending, str) else spending
        # a non-informative prior always spends evenly
        if math.isinf(ctx.prior_variance):
            return ConstantSpending()
        return factory(ctx)


# --- Contract checks and evaluation ---


def spending_curve(s: SpendingFunction, thetas: Iterable[float]) -> np.ndarray:
    """Evaluate ``s`` at each θ, e.g. to plot spending against θ."""
    return np.array([s(float(t)) for t in thetas], dtype=float)


def check_spending_contract(
    s: SpendingFunction,
    center: float = 0.0,
    scale: float = 1.0,
    n_grid: int = 201,
    tail_tolerance: float = 1e-2,
    check_limits: bool = True,
) -> None:
    """
    Verify the spending-function contract on a grid around ``center``.

    Checks that every value is finite and in [0, 1], that values never
    decrease along the grid, and (unless ``s`` is the constant 1/2) that the
    far tails approach 0 and 1.

    Args:
        s: Spending function under test
        center: Grid center, typically the prior mean
        scale: Grid half-width unit, typically the sampling standard deviation
        n_grid: Number of grid points spanning ``center ± 50·scale``
        tail_tolerance: Allowed distance from 0/1 at ``center ± 1e150·scale``
        check_limits: Whether to check the tail limits at all

    Raises:
        SpendingFunctionContractViolation: on the first violation found
    """
    grid = center + scale * np.linspace(-50.0, 50.0, n_grid)
    values = spending_curve(s, grid)

    for i, v in enumerate(values):
        if not (math.isfinite(v) and 0.0 <= v <= 1.0):
            raise SpendingFunctionContractViolation(
                f"spending value {v} outside [0, 1]", (float(grid[i]), float(grid[i]))
            )
    drops = np.nonzero(np.diff(values) < 0.0)[0]
    if drops.size:
        i = int(drops[0])
        raise SpendingFunctionContractViolation(
            "spending function decreases", (float(grid[i]), float(grid[i + 1]))
        )

    if not check_limits or np.all(values == 0.5):
        return
    lo_theta, hi_theta = center - 1e150 * scale, center + 1e150 * scale
    lo, hi = s(lo_theta), s(hi_theta)
    if not (lo <= tail_tolerance and hi >= 1.0 - tail_tolerance):
        raise SpendingFunctionContractViolation(
            f"spending tails do not approach 0 and 1 (got {lo:.3g}, {hi:.3g})",
            (lo_theta, hi_theta),
        )
