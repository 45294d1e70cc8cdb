"""
fabci.stats.common.quantiles
============================

Quantile providers for the endpoint equations.

The endpoint solver only needs a strictly increasing inverse CDF ``Q``.
Two providers are supplied:

- `NormalQuantiles`: the standard normal, for known sampling variance.
- `StudentTQuantiles`: Student's t with (possibly fractional) degrees of
  freedom, for an estimated sampling variance.

Both wrap `scipy.special` ufuncs rather than `scipy.stats` frozen
distributions; the solver evaluates ``Q`` thousands of times per interval
and the ufuncs avoid the per-call distribution overhead.

Examples
--------
>>> from fabci.stats.common.quantiles import NormalQuantiles, StudentTQuantiles
>>> round(NormalQuantiles().ppf(0.975), 4)
1.96
>>> round(StudentTQuantiles(df=10).ppf(0.975), 4)
2.2281
"""

from __future__ import annotations
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from scipy.special import ndtr, ndtri, stdtr, stdtrit

from fabci.core.errors import InvalidInputError


class QuantileProvider(ABC):
    """Strictly increasing inverse CDF of a continuous, symmetric pivot."""

    name: str = "quantile"

    @abstractmethod
    def ppf(self, p: float) -> float:
        """Quantile at probability ``p`` in (0, 1)."""

    @abstractmethod
    def cdf(self, x: float) -> float:
        """Distribution function at ``x``."""

    def two_sided(self, alpha: float) -> float:
        """Critical value of the equal-tailed (direct) interval."""
        return self.ppf(1.0 - alpha / 2.0)


@dataclass(frozen=True)
class NormalQuantiles(QuantileProvider):
    """Standard normal quantiles."""

    name: str = "z"

    def ppf(self, p: float) -> float:
        return float(ndtri(p))

    def cdf(self, x: float) -> float:
        return float(ndtr(x))


@dataclass(frozen=True)
class StudentTQuantiles(QuantileProvider):
    """
    Student-t quantiles with ``df`` degrees of freedom.

    Attributes:
        df: Degrees of freedom (> 0, fractional values allowed)
    """

    df: float
    name: str = "t"

    def __post_init__(self) -> None:
        if not (self.df > 0):
            raise InvalidInputError(f"degrees of freedom must be positive, got {self.df}")

    def ppf(self, p: float) -> float:
        return float(stdtrit(self.df, p))

    def cdf(self, x: float) -> float:
        return float(stdtr(self.df, x))


def quantile_provider(df: Optional[float] = None) -> QuantileProvider:
    """
    Pick the provider for a scale with ``df`` degrees of freedom.

    Args:
        df: Degrees of freedom, or None/inf for a known scale

    Returns:
        `NormalQuantiles` for a known scale, else `StudentTQuantiles`

    Examples:
        >>> quantile_provider(None).name
        'z'
        >>> quantile_provider(12.5).name
        't'
    """
    if df is None or math.isinf(df):
        return NormalQuantiles()
    return StudentTQuantiles(df=float(df))
