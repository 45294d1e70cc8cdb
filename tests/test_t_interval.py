import math

import pytest
from scipy.special import stdtrit

from fabci.core.errors import InvalidInputError
from fabci.stats.common.spending import ConstantSpending, StudentTPriorSpending
from fabci.stats.schemes.area_means import (
    AreaObservation,
    LinkingPrior,
    TIntervalEngine,
)


@pytest.fixture
def engine() -> TIntervalEngine:
    return TIntervalEngine(alpha=0.05)


def _obs(estimate=10.0, s2=4.0, df=8):
    return AreaObservation.estimated(estimate, s2, df)


def test_pooled_scale_combines_variance_prior(engine):
    prior = LinkingPrior(prior_mean=0.0, prior_variance=1.0, variance_shape=4, variance_scale=1.0)
    assert engine.pooled_scale(_obs(), prior) == pytest.approx((3.0, 12.0))


def test_pooled_scale_without_variance_prior(engine):
    assert engine.pooled_scale(_obs()) == (4.0, 8.0)
    assert engine.pooled_scale(_obs(), LinkingPrior(0.0, 1.0)) == (4.0, 8.0)
    assert engine.pooled_scale(_obs(), LinkingPrior(0.0, 1.0, variance_shape=0)) == (4.0, 8.0)


def test_pool_variance_off_uses_own_data():
    prior = LinkingPrior(prior_mean=0.0, prior_variance=1.0, variance_shape=4, variance_scale=1.0)
    engine = TIntervalEngine(pool_variance=False)
    assert engine.pooled_scale(_obs(), prior) == (4.0, 8.0)


def test_direct_t_interval(engine):
    ci = engine.direct_interval(_obs())
    half = 2.0 * stdtrit(8, 0.975)
    assert ci.method == "direct-t"
    assert (ci.lower, ci.upper) == pytest.approx((10.0 - half, 10.0 + half), abs=1e-10)


def test_non_informative_prior_gives_pooled_direct(engine):
    prior = LinkingPrior(
        prior_mean=0.0, prior_variance=math.inf, variance_shape=4, variance_scale=1.0
    )
    ci = engine.interval(_obs(), prior)
    direct = engine.direct_interval(_obs(), prior)
    half = math.sqrt(3.0) * stdtrit(12, 0.975)
    assert (ci.lower, ci.upper) == pytest.approx((10.0 - half, 10.0 + half), abs=1e-8)
    assert (direct.lower, direct.upper) == pytest.approx((ci.lower, ci.upper), abs=1e-8)


def test_prior_at_estimate_narrows_interval(engine):
    prior = LinkingPrior(prior_mean=10.0, prior_variance=0.5, variance_shape=4, variance_scale=4.0)
    ci = engine.interval(_obs(), prior)
    assert ci.method == "fab-t"
    assert ci.width < engine.direct_interval(_obs(), prior).width
    assert ci.midpoint == pytest.approx(10.0, abs=1e-7)


def test_spending_built_from_prior_not_data(engine):
    prior = LinkingPrior(prior_mean=0.0, prior_variance=1.0, variance_shape=4, variance_scale=2.5)
    s = engine.spending_function(_obs(s2=9.0), prior)
    assert isinstance(s, StudentTPriorSpending)
    assert s.sampling_variance == 2.5
    assert s.df == 12.0
    # same prior, different data: only df could change, and here it does not
    assert s == engine.spending_function(_obs(estimate=-3.0, s2=1.0), prior)


def test_no_variance_scale_gives_ordinary_t_interval(engine):
    prior = LinkingPrior(0.0, 1.0)
    s = engine.spending_function(_obs(estimate=3.0, s2=9.0), prior)
    assert isinstance(s, ConstantSpending)
    assert s(-50.0) == s(0.0) == s(50.0) == 0.5
    ci = engine.interval(_obs(estimate=3.0, s2=9.0), prior)
    direct = engine.direct_interval(_obs(estimate=3.0, s2=9.0), prior)
    assert (ci.lower, ci.upper) == pytest.approx((direct.lower, direct.upper), abs=1e-8)


def test_plug_in_variance_scale_ignores_sample_variance(engine):
    prior = LinkingPrior(prior_mean=0.0, prior_variance=1.0, variance_scale=2.0)
    s = engine.spending_function(_obs(s2=9.0), prior)
    assert isinstance(s, StudentTPriorSpending)
    assert s.sampling_variance == 2.0
    assert s.df == 8.0
    assert s == engine.spending_function(_obs(estimate=-3.0, s2=0.25), prior)
    # the pivot still uses the area's own s² and df
    assert engine.pooled_scale(_obs(s2=9.0), prior) == (9.0, 8.0)


def test_compute_wrapper_matches_interval(engine):
    prior = LinkingPrior(prior_mean=8.0, prior_variance=2.0, variance_shape=2, variance_scale=3.0)
    a = engine.interval(_obs(), prior)
    b = engine.compute(10.0, 4.0, 8, 8.0, 2.0, variance_shape=2, variance_scale=3.0)
    assert a == b


def test_rejects_known_variance(engine):
    with pytest.raises(InvalidInputError, match="ZIntervalEngine"):
        engine.interval(AreaObservation.known(1.0, 1.0), LinkingPrior(0.0, 1.0))


def test_endpoints_increase_with_estimate(engine):
    prior = LinkingPrior(prior_mean=0.0, prior_variance=1.0, variance_scale=1.0)
    previous = None
    for y in (-4.0, -1.0, 0.0, 0.5, 3.0, 8.0):
        ci = engine.interval(_obs(estimate=y, s2=1.0, df=5), prior)
        if previous is not None:
            assert ci.lower > previous.lower
            assert ci.upper > previous.upper
        previous = ci


def test_large_finite_prior_variance_approaches_direct(engine):
    obs = _obs(estimate=1.0, s2=1.0, df=8)
    gaps = []
    for tau2 in (1e2, 1e4, 1e6, 1e8):
        prior = LinkingPrior(
            prior_mean=0.0, prior_variance=tau2, variance_shape=4, variance_scale=1.0
        )
        assert isinstance(engine.spending_function(obs, prior), StudentTPriorSpending)
        ci = engine.interval(obs, prior)
        direct = engine.direct_interval(obs, prior)
        gaps.append(max(abs(ci.lower - direct.lower), abs(ci.upper - direct.upper)))
    assert all(later < earlier for earlier, later in zip(gaps, gaps[1:]))
    assert gaps[-1] < 1e-6
