"""
fabci.stats.schemes.area_means.model
====================================

Typed inputs and outputs for the *area means* scheme.

- `AreaObservation`: one area's estimate and its scale information
- `LinkingPrior`: externally fit prior for the area's true mean
- `ConfidenceInterval`: immutable interval result
- TypedDict payload contracts for ledger events (mypy-friendly)

Precondition (not verifiable here): each `LinkingPrior` must be fit from
the *other* areas' data only. Reusing the target area's own estimate in its
prior silently destroys area-specific coverage.

Examples
--------
>>> from fabci.stats.schemes.area_means.model import AreaObservation, LinkingPrior
>>> obs = AreaObservation.known(estimate=100.0, variance=25.0)
>>> obs.variance_known, obs.scale
(True, 5.0)
>>> LinkingPrior(prior_mean=90.0, prior_variance=4.0).has_variance_prior
False
"""

from __future__ import annotations
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, TypedDict

from fabci.core.errors import InvalidInputError
from fabci.core.names import IntervalMethod


def _check_positive(name: str, value: float, allow_inf: bool = False) -> None:
    if value is None or not (value > 0):
        raise InvalidInputError(f"{name} must be positive, got {value}")
    if not allow_inf and math.isinf(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")


# --- Typed payloads used in ledger records (mypy-friendly) ---


class ObservationPayload(TypedDict):
    estimate: float
    known_variance: Optional[float]
    sample_variance: Optional[float]
    sample_df: Optional[float]


class PriorPayload(TypedDict):
    prior_mean: float
    prior_variance: float
    variance_shape: Optional[float]
    variance_scale: Optional[float]


class IntervalPayload(TypedDict):
    lower: float
    upper: float
    alpha: float
    method: str
    width: float


class FailurePayload(TypedDict):
    error_kind: str
    message: str


# --- Typed objects ---


@dataclass(frozen=True)
class AreaObservation:
    """
    One sampled area.

    Exactly one scale description is given: either ``known_variance``, or
    ``sample_variance`` together with ``sample_df``.

    Attributes:
        estimate: Direct estimate of the area mean
        known_variance: Known sampling variance of ``estimate``
        sample_variance: Estimated sampling variance of ``estimate``
        sample_df: Degrees of freedom of ``sample_variance``
    """

    estimate: float
    known_variance: Optional[float] = None
    sample_variance: Optional[float] = None
    sample_df: Optional[float] = None

    def __post_init__(self) -> None:
        if self.estimate is None or not math.isfinite(self.estimate):
            raise InvalidInputError(f"estimate must be finite, got {self.estimate}")
        has_known = self.known_variance is not None
        has_sample = self.sample_variance is not None or self.sample_df is not None
        if has_known == has_sample:
            raise InvalidInputError(
                "give either known_variance or (sample_variance, sample_df), not both"
            )
        if has_known:
            _check_positive("known_variance", self.known_variance)
        else:
            _check_positive("sample_variance", self.sample_variance)
            _check_positive("sample_df", self.sample_df)

    @classmethod
    def known(cls, estimate: float, variance: float) -> "AreaObservation":
        return cls(estimate=float(estimate), known_variance=float(variance))

    @classmethod
    def estimated(
        cls, estimate: float, sample_variance: float, sample_df: float
    ) -> "AreaObservation":
        return cls(
            estimate=float(estimate),
            sample_variance=float(sample_variance),
            sample_df=float(sample_df),
        )

    @property
    def variance_known(self) -> bool:
        return self.known_variance is not None

    @property
    def variance(self) -> float:
        """Known variance, or the sample variance estimate."""
        if self.known_variance is not None:
            return self.known_variance
        return float(self.sample_variance)  # type: ignore[arg-type]

    @property
    def scale(self) -> float:
        return math.sqrt(self.variance)

    def payload(self) -> ObservationPayload:
        return {
            "estimate": self.estimate,
            "known_variance": self.known_variance,
            "sample_variance": self.sample_variance,
            "sample_df": self.sample_df,
        }


@dataclass(frozen=True)
class LinkingPrior:
    """
    Prior belief about an area's true mean, fit by an external linking model.

    Attributes:
        prior_mean: Prior mean μ
        prior_variance: Prior variance τ²; ``math.inf`` means non-informative
        variance_shape: Inverse-gamma shape ν0 for the sampling variance
            (None or 0 means no variance prior)
        variance_scale: Inverse-gamma scale s0² (required when ν0 > 0). Without
            ν0 it is a plug-in sampling variance that only shapes the
            spending function.
    """

    prior_mean: float
    prior_variance: float
    variance_shape: Optional[float] = None
    variance_scale: Optional[float] = None

    def __post_init__(self) -> None:
        if self.prior_mean is None or not math.isfinite(self.prior_mean):
            raise InvalidInputError(f"prior_mean must be finite, got {self.prior_mean}")
        _check_positive("prior_variance", self.prior_variance, allow_inf=True)
        if self.variance_shape is not None:
            if not (self.variance_shape >= 0) or math.isinf(self.variance_shape):
                raise InvalidInputError(
                    f"variance_shape must be non-negative and finite, got {self.variance_shape}"
                )
            if self.variance_shape > 0:
                _check_positive("variance_scale", self.variance_scale)
        if self.variance_scale is not None:
            _check_positive("variance_scale", self.variance_scale)

    @classmethod
    def non_informative(cls, prior_mean: float = 0.0) -> "LinkingPrior":
        """A prior that reproduces the direct interval."""
        return cls(prior_mean=prior_mean, prior_variance=math.inf)

    @property
    def is_informative(self) -> bool:
        return not math.isinf(self.prior_variance)

    @property
    def has_variance_prior(self) -> bool:
        return bool(self.variance_shape)

    def payload(self) -> PriorPayload:
        return {
            "prior_mean": self.prior_mean,
            "prior_variance": self.prior_variance,
            "variance_shape": self.variance_shape,
            "variance_scale": self.variance_scale,
        }


@dataclass(frozen=True)
class ConfidenceInterval:
    """
    Interval ``(lower, upper)`` at level ``1 - alpha``.

    Attributes:
        lower: Lower endpoint
        upper: Upper endpoint (``>= lower``)
        alpha: Error rate in (0, 1)
        method: How the interval was built ("fab-z", "fab-t", "direct-z", "direct-t")
    """

    lower: float
    upper: float
    alpha: float
    method: IntervalMethod = "fab-z"

    def __post_init__(self) -> None:
        if not (0.0 < self.alpha < 1.0):
            raise InvalidInputError(f"alpha must be in (0, 1), got {self.alpha}")
        if not (self.lower <= self.upper):
            raise InvalidInputError(
                f"lower endpoint {self.lower} exceeds upper endpoint {self.upper}"
            )

    @property
    def width(self) -> float:
        return self.upper - self.lower

    @property
    def midpoint(self) -> float:
        return 0.5 * (self.lower + self.upper)

    def contains(self, theta: float) -> bool:
        """Whether ``theta`` lies strictly inside the interval."""
        return self.lower < theta < self.upper

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def payload(self) -> IntervalPayload:
        return {
            "lower": self.lower,
            "upper": self.upper,
            "alpha": self.alpha,
            "method": self.method,
            "width": self.width,
        }
