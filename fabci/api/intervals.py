"""
fabci.api.intervals
===================

Plain-function facade for FAB and direct intervals.

Each function takes scalars and returns a `ConfidenceInterval`; the frame
helper takes a Polars frame and returns one.

Examples
--------
>>> from fabci.api.intervals import fab_z_interval, direct_z_interval
>>> fab = fab_z_interval(estimate=100.0, variance=25.0,
...                      prior_mean=100.0, prior_variance=1.0)
>>> direct = direct_z_interval(estimate=100.0, variance=25.0)
>>> fab.width < direct.width
True
"""

from __future__ import annotations
from typing import Mapping, Optional

import polars as pl

from fabci.backends.polars.frames import intervals_from_frame
from fabci.core.config import DEFAULT_SOLVER_CONFIG, SolverConfig
from fabci.core.ledger import Ledger
from fabci.runtime.runners import BatchRunner
from fabci.stats.schemes.area_means.model import AreaObservation, ConfidenceInterval
from fabci.stats.schemes.area_means.t_interval import TIntervalEngine
from fabci.stats.schemes.area_means.z_interval import ZIntervalEngine


def fab_z_interval(
    estimate: float,
    variance: float,
    prior_mean: float,
    prior_variance: float,
    alpha: float = 0.05,
    config: SolverConfig = DEFAULT_SOLVER_CONFIG,
) -> ConfidenceInterval:
    """
    FAB z-interval for an estimate with known sampling variance.

    Parameters
    ----------
    estimate : float
        Direct estimate of the area mean
    variance : float
        Known sampling variance of ``estimate``
    prior_mean, prior_variance : float
        Normal prior fit on the other areas; ``prior_variance=inf`` gives
        the direct interval
    alpha : float, default=0.05
        Error rate
    config : SolverConfig
        Solver tolerances and caps

    Returns
    -------
    ConfidenceInterval
    """
    return ZIntervalEngine(alpha=alpha, config=config).compute(
        estimate, variance, prior_mean, prior_variance
    )


def fab_t_interval(
    estimate: float,
    sample_variance: float,
    sample_df: float,
    prior_mean: float,
    prior_variance: float,
    variance_shape: Optional[float] = None,
    variance_scale: Optional[float] = None,
    alpha: float = 0.05,
    pool_variance: bool = True,
    config: SolverConfig = DEFAULT_SOLVER_CONFIG,
) -> ConfidenceInterval:
    """
    FAB t-interval for an estimate with estimated sampling variance.

    Parameters
    ----------
    estimate : float
        Direct estimate of the area mean
    sample_variance, sample_df : float
        Variance estimate and its degrees of freedom
    prior_mean, prior_variance : float
        Normal prior fit on the other areas
    variance_shape, variance_scale : float, optional
        Inverse-gamma prior ``(ν0, s0²)`` on the sampling variance; a
        ``variance_scale`` alone only scales the spending function, and with
        neither the interval is the ordinary t-interval
    alpha : float, default=0.05
        Error rate
    pool_variance : bool, default=True
        Combine ``sample_variance`` with the variance prior
    config : SolverConfig
        Solver tolerances and caps

    Returns
    -------
    ConfidenceInterval
    """
    engine = TIntervalEngine(alpha=alpha, pool_variance=pool_variance, config=config)
    return engine.compute(
        estimate,
        sample_variance,
        sample_df,
        prior_mean,
        prior_variance,
        variance_shape=variance_shape,
        variance_scale=variance_scale,
    )


def direct_z_interval(
    estimate: float, variance: float, alpha: float = 0.05
) -> ConfidenceInterval:
    """Equal-tailed ``estimate ± σ·Φ⁻¹(1 − α/2)``."""
    return ZIntervalEngine(alpha=alpha).direct_interval(
        AreaObservation.known(estimate, variance)
    )


def direct_t_interval(
    estimate: float, sample_variance: float, sample_df: float, alpha: float = 0.05
) -> ConfidenceInterval:
    """Equal-tailed ``estimate ± s·t⁻¹_df(1 − α/2)``."""
    return TIntervalEngine(alpha=alpha).direct_interval(
        AreaObservation.estimated(estimate, sample_variance, sample_df)
    )


def fab_intervals(
    df: pl.DataFrame,
    alpha: float = 0.05,
    columns: Optional[Mapping[str, str]] = None,
    pool_variance: bool = True,
    ledger: Optional[Ledger] = None,
) -> pl.DataFrame:
    """
    FAB and direct intervals for every row of a Polars frame.

    See `fabci.backends.polars.frames` for the expected columns.
    """
    runner = BatchRunner(
        z_engine=ZIntervalEngine(alpha=alpha),
        t_engine=TIntervalEngine(alpha=alpha, pool_variance=pool_variance),
        ledger=ledger,
    )
    return intervals_from_frame(df, runner=runner, columns=columns)
