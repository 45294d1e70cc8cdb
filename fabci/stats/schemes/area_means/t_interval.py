"""
fabci.stats.schemes.area_means.t_interval
=========================================

FAB t-intervals for area means with estimated sampling variance.

Each area reports an estimate ``y``, a variance estimate ``s²`` on ``df``
degrees of freedom, and (optionally) shares an inverse-gamma belief
``σ² ~ IG(ν0/2, ν0·s0²/2)`` about its sampling variance. The sample
variance is combined with that belief by the usual conjugate update:

    s²_post = (ν0·s0² + df·s²) / (ν0 + df),    df_post = df + ν0,

and ``(y − θ) / s_post`` is referred to a Student-t on ``df_post`` degrees
of freedom. The spending function is built from the prior alone (``s0²``
in place of σ²) and never reads the area's own ``y`` or ``s²``: ``s²`` is
independent of ``y`` but not of the pivot ``(y − θ)/s``, so a spending
function scaled by ``s²`` loses coverage away from the prior mean.

Fallbacks:

- ``prior_variance = inf``: constant spending 1/2
- no ``variance_scale`` at all: constant spending 1/2, i.e. the ordinary
  t-interval, since nothing outside the area's data fixes the scale
- ``variance_scale`` without ν0: a plug-in s0² shapes the spending
  function; the pivot keeps the area's own ``s`` and ``df``
- no variance prior (ν0 absent or 0), or ``pool_variance=False``:
  pivot scale ``s`` and ``df`` from the area's own data

Examples
--------
>>> from fabci.stats.schemes.area_means.model import AreaObservation, LinkingPrior
>>> from fabci.stats.schemes.area_means.t_interval import TIntervalEngine
>>> engine = TIntervalEngine(alpha=0.05)
>>> obs = AreaObservation.estimated(estimate=10.0, sample_variance=4.0, sample_df=8)
>>> prior = LinkingPrior(prior_mean=10.0, prior_variance=0.5, variance_shape=4, variance_scale=4.0)
>>> engine.pooled_scale(obs, prior)
(4.0, 12.0)
>>> engine.interval(obs, prior).width < engine.direct_interval(obs, prior).width
True
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from fabci.core.errors import InvalidInputError
from fabci.stats.common.quantiles import StudentTQuantiles
from fabci.stats.common.spending import ConstantSpending, SpendingFunction
from fabci.stats.schemes.area_means.base import IntervalEngine
from fabci.stats.schemes.area_means.model import (
    AreaObservation,
    ConfidenceInterval,
    LinkingPrior,
)


@dataclass(kw_only=True)
class TIntervalEngine(IntervalEngine):
    """
    Engine for the estimated-variance case.

    Precondition: ``prior`` must be fit without the target area's estimate.

    Attributes:
        pool_variance: Combine the sample variance with the inverse-gamma
            prior. With False the pivot uses the area's own ``s²`` and ``df``,
            which keeps exact coverage for every σ² rather than on average
            over the variance prior.
    """

    pool_variance: bool = True

    fab_method: ClassVar[str] = "fab-t"
    direct_method: ClassVar[str] = "direct-t"

    @staticmethod
    def _require_estimated(observation: AreaObservation) -> None:
        if observation.variance_known:
            raise InvalidInputError(
                "TIntervalEngine needs a sample variance and df; use ZIntervalEngine"
            )

    def _pools(self, prior: Optional[LinkingPrior]) -> bool:
        return self.pool_variance and prior is not None and prior.has_variance_prior

    def pooled_scale(
        self, observation: AreaObservation, prior: Optional[LinkingPrior] = None
    ) -> Tuple[float, float]:
        """
        Variance and degrees of freedom of the t pivot.

        Returns:
            ``(s²_post, df_post)``, or ``(s², df)`` when not pooling
        """
        self._require_estimated(observation)
        s2 = float(observation.sample_variance)  # type: ignore[arg-type]
        df = float(observation.sample_df)  # type: ignore[arg-type]
        if not self._pools(prior):
            return s2, df
        nu0 = float(prior.variance_shape)  # type: ignore[union-attr,arg-type]
        s02 = float(prior.variance_scale)  # type: ignore[union-attr,arg-type]
        df_post = df + nu0
        return (nu0 * s02 + df * s2) / df_post, df_post

    def spending_function(
        self, observation: AreaObservation, prior: LinkingPrior
    ) -> SpendingFunction:
        _, df_post = self.pooled_scale(observation, prior)
        if prior.variance_scale is None:
            return ConstantSpending()
        return self._create_spending(prior, float(prior.variance_scale), df=df_post)

    def interval(
        self, observation: AreaObservation, prior: LinkingPrior
    ) -> ConfidenceInterval:
        variance, df = self.pooled_scale(observation, prior)
        spending = self.spending_function(observation, prior)
        return self._solve(
            observation.estimate, math.sqrt(variance), StudentTQuantiles(df=df), spending
        )

    def direct_interval(
        self, observation: AreaObservation, prior: Optional[LinkingPrior] = None
    ) -> ConfidenceInterval:
        """Equal-tailed t-interval; pooled with ``prior``'s variance belief if given."""
        variance, df = self.pooled_scale(observation, prior)
        return self._direct(
            observation.estimate, math.sqrt(variance), StudentTQuantiles(df=df)
        )

    def compute(
        self,
        estimate: float,
        sample_variance: float,
        sample_df: float,
        prior_mean: float,
        prior_variance: float,
        variance_shape: Optional[float] = None,
        variance_scale: Optional[float] = None,
    ) -> ConfidenceInterval:
        """Scalar convenience wrapper around `interval`."""
        return self.interval(
            AreaObservation.estimated(estimate, sample_variance, sample_df),
            LinkingPrior(
                prior_mean=prior_mean,
                prior_variance=prior_variance,
                variance_shape=variance_shape,
                variance_scale=variance_scale,
            ),
        )
