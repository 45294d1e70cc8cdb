"""Monte Carlo checks of area-specific coverage at fixed true means."""

import math

import numpy as np
import pytest
from scipy.integrate import quad
from scipy.special import ndtr
from scipy.stats import chi2

from fabci.core.errors import InvalidInputError
from fabci.stats.common.quantiles import StudentTQuantiles
from fabci.stats.common.root_finding import EndpointSolver
from fabci.stats.schemes.area_means import (
    AreaObservation,
    LinkingPrior,
    TIntervalEngine,
    ZIntervalEngine,
)
from fabci.stats.schemes.area_means.simulation import (
    CoverageResult,
    simulate_t_coverage,
    simulate_z_coverage,
)


@pytest.mark.parametrize("theta", [-3.0, 0.0, 2.0, 6.0])
def test_any_monotone_spending_has_exact_coverage(theta, rng):
    # cheap spending function keeps many replicates affordable
    spending = lambda t: float(ndtr(0.8 * (t - 2.0)))  # noqa: E731
    solver = EndpointSolver()
    ys = rng.normal(theta, 1.0, size=2000)
    hits = 0
    for y in ys:
        lo, hi = solver.solve(float(y), 1.0, 0.05, spending)
        hits += lo < theta < hi
    cov = hits / ys.size
    assert abs(cov - 0.95) < 4 * np.sqrt(0.95 * 0.05 / ys.size)


@pytest.mark.parametrize("theta", [0.0, 2.5])
def test_z_engine_coverage(theta, rng):
    res = simulate_z_coverage(
        ZIntervalEngine(alpha=0.1),
        LinkingPrior(prior_mean=0.0, prior_variance=1.0),
        theta=theta,
        variance=1.0,
        n_reps=400,
        rng=rng,
    )
    assert isinstance(res, CoverageResult)
    assert res.n_reps == 400
    assert res.within(0.9)


def test_z_engine_coverage_with_badly_wrong_prior(rng):
    res = simulate_z_coverage(
        ZIntervalEngine(),
        LinkingPrior(prior_mean=1000.0, prior_variance=1.0),
        theta=100.0,
        variance=25.0,
        n_reps=400,
        rng=rng,
    )
    assert res.within(0.95)
    assert res.mean_width > res.mean_direct_width


def test_z_engine_narrower_on_average_near_prior(rng):
    res = simulate_z_coverage(
        ZIntervalEngine(),
        LinkingPrior(prior_mean=0.0, prior_variance=1.0),
        theta=0.0,
        variance=1.0,
        n_reps=300,
        rng=rng,
    )
    assert res.mean_width < res.mean_direct_width


@pytest.mark.parametrize("theta", [-2.0, 1.0, 5.0])
def test_t_engine_coverage_without_pooling(theta, rng):
    prior = LinkingPrior(prior_mean=0.0, prior_variance=1.0, variance_shape=3, variance_scale=2.0)
    res = simulate_t_coverage(
        TIntervalEngine(alpha=0.1, pool_variance=False),
        prior,
        theta=theta,
        variance=1.0,
        sample_df=5,
        n_reps=400,
        rng=rng,
    )
    assert res.within(0.9)


@pytest.mark.parametrize("theta", [0.0, 0.3, 1.0, 4.0])
@pytest.mark.parametrize(
    "prior",
    [LinkingPrior(0.0, 0.1), LinkingPrior(0.0, 0.1, variance_scale=1.0)],
    ids=["no-variance-scale", "plug-in-scale"],
)
def test_t_engine_exact_coverage_without_variance_prior(prior, theta):
    # integrate P(theta covered | s²) over s² ~ χ²_df / df with σ² = 1
    engine = TIntervalEngine()
    alpha, df = engine.alpha, 2
    q = StudentTQuantiles(df=df)

    def covered(s2: float) -> float:
        obs = AreaObservation.estimated(0.0, s2, df)
        w = engine.spending_function(obs, prior)(theta)
        s = math.sqrt(s2)
        return float(ndtr(s * q.ppf(1.0 - alpha * (1.0 - w))) - ndtr(s * q.ppf(alpha * w)))

    cov, _ = quad(lambda x: chi2.pdf(x, df) * covered(x / df), 0.0, np.inf)
    assert cov == pytest.approx(1.0 - alpha, abs=1e-6)


@pytest.mark.parametrize("theta", [0.0, 2.0, 5.0])
def test_t_engine_coverage_with_plug_in_scale(theta, rng):
    res = simulate_t_coverage(
        TIntervalEngine(alpha=0.1),
        LinkingPrior(prior_mean=0.0, prior_variance=0.5, variance_scale=1.0),
        theta=theta,
        variance=1.0,
        sample_df=3,
        n_reps=300,
        rng=rng,
    )
    assert res.within(0.9)


@pytest.mark.parametrize("theta", [0.0, 1.5, 4.0])
def test_t_engine_pooled_coverage_over_variance_prior(theta, rng):
    prior = LinkingPrior(prior_mean=0.0, prior_variance=1.0, variance_shape=6, variance_scale=1.0)
    res = simulate_t_coverage(
        TIntervalEngine(alpha=0.1),
        prior,
        theta=theta,
        variance=None,
        sample_df=4,
        n_reps=300,
        rng=rng,
    )
    assert res.within(0.9)


def test_drawing_variance_needs_a_variance_prior():
    with pytest.raises(InvalidInputError, match="variance_shape"):
        simulate_t_coverage(
            TIntervalEngine(), LinkingPrior(0.0, 1.0), theta=0.0, variance=None,
            sample_df=4, n_reps=10,
        )


def test_simulation_rejects_empty_runs():
    with pytest.raises(InvalidInputError):
        simulate_z_coverage(
            ZIntervalEngine(), LinkingPrior(0.0, 1.0), theta=0.0, variance=1.0, n_reps=0
        )


def test_coverage_result_within():
    res = CoverageResult(
        theta=0.0, coverage=0.93, n_reps=1000, std_error=0.008,
        mean_width=1.0, mean_direct_width=1.2,
    )
    assert res.within(0.95, n_se=4)
    assert not res.within(0.99, n_se=4)
