import math

import pytest
from scipy import stats

from fabci.core.errors import InvalidInputError
from fabci.stats.common.quantiles import (
    NormalQuantiles,
    StudentTQuantiles,
    quantile_provider,
)


def test_normal_quantiles_match_scipy_stats():
    q = NormalQuantiles()
    for p in (1e-12, 0.025, 0.5, 0.975):
        assert q.ppf(p) == pytest.approx(stats.norm.ppf(p), rel=1e-12)
    assert q.cdf(q.ppf(0.3)) == pytest.approx(0.3, abs=1e-14)
    assert q.two_sided(0.05) == pytest.approx(1.959963984540054)


def test_student_t_quantiles_fractional_df():
    q = StudentTQuantiles(df=7.5)
    assert q.ppf(0.975) == pytest.approx(stats.t.ppf(0.975, 7.5), rel=1e-10)
    assert q.cdf(q.ppf(0.1)) == pytest.approx(0.1, abs=1e-12)


def test_student_t_approaches_normal():
    assert StudentTQuantiles(df=1e7).two_sided(0.05) == pytest.approx(
        NormalQuantiles().two_sided(0.05), abs=1e-5
    )


@pytest.mark.parametrize("df", [0.0, -2.0, float("nan")])
def test_student_t_rejects_bad_df(df):
    with pytest.raises(InvalidInputError):
        StudentTQuantiles(df=df)


def test_quantile_provider_dispatch():
    assert isinstance(quantile_provider(None), NormalQuantiles)
    assert isinstance(quantile_provider(math.inf), NormalQuantiles)
    t = quantile_provider(12)
    assert isinstance(t, StudentTQuantiles) and t.df == 12.0
