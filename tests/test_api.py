import math

import polars as pl
import pytest
from scipy.special import stdtrit

from fabci.api import (
    direct_t_interval,
    direct_z_interval,
    fab_intervals,
    fab_t_interval,
    fab_z_interval,
)
from fabci.reporting.generic import LedgerReporter
from fabci.stats.schemes.area_means import ZIntervalEngine

Z975 = 1.959963984540054


def test_fab_z_interval_matches_engine():
    ci = fab_z_interval(100.0, 25.0, prior_mean=100.0, prior_variance=1.0)
    assert ci == ZIntervalEngine().compute(100.0, 25.0, 100.0, 1.0)
    assert ci.width < direct_z_interval(100.0, 25.0).width


def test_direct_z_interval():
    ci = direct_z_interval(100.0, 25.0)
    assert (ci.lower, ci.upper) == pytest.approx((100.0 - 5 * Z975, 100.0 + 5 * Z975))


def test_direct_t_interval():
    ci = direct_t_interval(2.0, 9.0, 4, alpha=0.1)
    half = 3.0 * stdtrit(4, 0.95)
    assert (ci.lower, ci.upper) == pytest.approx((2.0 - half, 2.0 + half))


def test_fab_t_interval_pooling_switch():
    pooled = fab_t_interval(
        1.0, 4.0, 3, prior_mean=1.0, prior_variance=0.5,
        variance_shape=10, variance_scale=1.0,
    )
    unpooled = fab_t_interval(
        1.0, 4.0, 3, prior_mean=1.0, prior_variance=0.5,
        variance_shape=10, variance_scale=1.0, pool_variance=False,
    )
    assert pooled.method == unpooled.method == "fab-t"
    # pooling with a small prior variance shrinks the scale and raises df
    assert pooled.width < unpooled.width


def test_fab_t_interval_non_informative_is_direct():
    ci = fab_t_interval(0.0, 1.0, 10, prior_mean=5.0, prior_variance=math.inf)
    assert ci.width == pytest.approx(direct_t_interval(0.0, 1.0, 10).width, abs=1e-8)


def test_fab_intervals_with_ledger(ledger):
    df = pl.DataFrame(
        {
            "area_id": ["a", "b"],
            "estimate": [1.0, 2.0],
            "variance": [1.0, 1.0],
            "prior_mean": [1.0, 0.0],
            "prior_variance": [1.0, 1.0],
        }
    )
    out = fab_intervals(df, alpha=0.1, ledger=ledger)
    assert out["method"].to_list() == ["fab-z", "fab-z"]
    assert LedgerReporter(ledger).summary()["n_intervals"] == 2
