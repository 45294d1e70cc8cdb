"""
fabci.stats.schemes.area_means.base
===================================

Shared plumbing of the z- and t-interval engines: configuration, spending
function instantiation and delegation to the endpoint solver.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Optional

from fabci.core.config import DEFAULT_SOLVER_CONFIG, SolverConfig, validate_alpha
from fabci.stats.common.quantiles import QuantileProvider
from fabci.stats.common.root_finding import EndpointSolver, direct_endpoints
from fabci.stats.common.spending import (
    SpendingContext,
    SpendingFunction,
    SpendingLike,
    SpendingRegistry,
)
from fabci.stats.schemes.area_means.model import (
    AreaObservation,
    ConfidenceInterval,
    LinkingPrior,
)


@dataclass(kw_only=True)
class IntervalEngine(ABC):
    """
    Base class for interval engines.

    Attributes:
        alpha: Error rate; intervals have coverage ``1 - alpha``
        spending: Spending family name (see `SpendingRegistry`) or a factory
            taking a `SpendingContext`
        config: Solver tolerances and iteration caps
    """

    alpha: float = 0.05
    spending: SpendingLike = "fab"
    config: SolverConfig = DEFAULT_SOLVER_CONFIG

    fab_method: ClassVar[str] = "fab"
    direct_method: ClassVar[str] = "direct"

    def __post_init__(self) -> None:
        self.alpha = validate_alpha(self.alpha)

    @abstractmethod
    def spending_function(
        self, observation: AreaObservation, prior: LinkingPrior
    ) -> SpendingFunction:
        """Spending function for this area; never depends on the estimate."""

    @abstractmethod
    def interval(
        self, observation: AreaObservation, prior: LinkingPrior
    ) -> ConfidenceInterval:
        """FAB interval for one area."""

    @abstractmethod
    def direct_interval(
        self, observation: AreaObservation, prior: Optional[LinkingPrior] = None
    ) -> ConfidenceInterval:
        """Equal-tailed interval on the same pivot."""

    def _create_spending(
        self,
        prior: LinkingPrior,
        sampling_variance: float,
        df: Optional[float],
    ) -> SpendingFunction:
        ctx = SpendingContext(
            prior_mean=prior.prior_mean,
            prior_variance=prior.prior_variance,
            sampling_variance=sampling_variance,
            alpha=self.alpha,
            df=df,
        )
        return SpendingRegistry.create(self.spending, ctx)

    def _solve(
        self,
        estimate: float,
        scale: float,
        quantiles: QuantileProvider,
        spending: SpendingFunction,
    ) -> ConfidenceInterval:
        solver = EndpointSolver(quantiles=quantiles, config=self.config)
        lower, upper = solver.solve(estimate, scale, self.alpha, spending)
        return ConfidenceInterval(
            lower=lower, upper=upper, alpha=self.alpha, method=self.fab_method
        )

    def _direct(
        self, estimate: float, scale: float, quantiles: QuantileProvider
    ) -> ConfidenceInterval:
        lower, upper = direct_endpoints(estimate, scale, self.alpha, quantiles)
        return ConfidenceInterval(
            lower=lower, upper=upper, alpha=self.alpha, method=self.direct_method
        )
