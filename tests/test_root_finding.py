import math

import pytest
from scipy.special import ndtr, ndtri

from fabci.core.config import SolverConfig
from fabci.core.errors import (
    InvalidInputError,
    RootFindingNonConvergence,
    SpendingFunctionContractViolation,
)
from fabci.stats.common.quantiles import NormalQuantiles, StudentTQuantiles
from fabci.stats.common.root_finding import (
    EndpointSolver,
    bracket_decreasing,
    direct_endpoints,
)
from fabci.stats.common.spending import ConstantSpending, NormalPriorSpending

Z975 = 1.959963984540054


def test_constant_half_reduces_to_direct_interval():
    lo, hi = EndpointSolver().solve(10.0, 2.0, 0.05, ConstantSpending())
    assert lo == pytest.approx(10.0 - 2.0 * Z975, abs=1e-8)
    assert hi == pytest.approx(10.0 + 2.0 * Z975, abs=1e-8)


def test_constant_spending_closed_form():
    alpha, w = 0.1, 0.3
    lo, hi = EndpointSolver().solve(0.0, 1.0, alpha, ConstantSpending(w))
    assert lo == pytest.approx(ndtri(alpha * (1 - w)), abs=1e-8)
    assert hi == pytest.approx(ndtri(1 - alpha * w), abs=1e-8)


def test_endpoints_solve_their_equations():
    spending = lambda theta: float(ndtr(theta - 2.0))  # noqa: E731
    solver = EndpointSolver()
    y, scale, alpha = 0.5, 1.3, 0.05
    lo, hi = solver.solve(y, scale, alpha, spending)
    assert lo < hi
    assert solver.lower_equation(y, scale, alpha, spending)(lo) == pytest.approx(0.0, abs=1e-8)
    assert solver.upper_equation(y, scale, alpha, spending)(hi) == pytest.approx(0.0, abs=1e-8)


@pytest.mark.parametrize("method", ["brentq", "bisect", "ridder"])
def test_root_methods_agree(method):
    s = NormalPriorSpending(prior_mean=3.0, prior_variance=1.0, sampling_variance=1.0)
    ref = EndpointSolver().solve(0.0, 1.0, 0.05, s)
    got = EndpointSolver(config=SolverConfig(method=method)).solve(0.0, 1.0, 0.05, s)
    assert got == pytest.approx(ref, abs=1e-8)


def test_student_t_pivot_with_constant_half():
    q = StudentTQuantiles(df=6)
    lo, hi = EndpointSolver(quantiles=q).solve(1.0, 1.0, 0.05, ConstantSpending())
    assert (lo, hi) == pytest.approx(direct_endpoints(1.0, 1.0, 0.05, q), abs=1e-8)


def test_direct_endpoints():
    assert direct_endpoints(0.0, 1.0, 0.05, NormalQuantiles()) == pytest.approx((-Z975, Z975))


# ---------------------------------------------------------------------------
# Bracketing


def test_bracket_contains_root():
    a, b = bracket_decreasing(lambda t: 37.0 - t, start=0.0, step=1.0, max_expansions=10)
    assert a <= 37.0 <= b
    a, b = bracket_decreasing(lambda t: -37.0 - t, start=0.0, step=1.0, max_expansions=10)
    assert a <= -37.0 <= b


def test_bracket_exact_start():
    assert bracket_decreasing(lambda t: 1.0 - t, 1.0, 1.0, 5) == (1.0, 1.0)


def test_bracket_detects_increasing_function():
    with pytest.raises(SpendingFunctionContractViolation, match="not monotone"):
        bracket_decreasing(lambda t: t - 3.0, start=0.0, step=1.0, max_expansions=10)


def test_bracket_gives_up_after_cap():
    with pytest.raises(SpendingFunctionContractViolation, match="no sign change") as info:
        bracket_decreasing(lambda t: 1.0, start=0.0, step=1.0, max_expansions=4)
    assert info.value.theta_range == (0.0, 8.0)


def test_bracket_nan():
    with pytest.raises(SpendingFunctionContractViolation, match="NaN"):
        bracket_decreasing(lambda t: math.nan, 0.0, 1.0, 4)


# ---------------------------------------------------------------------------
# Failure modes


def test_solver_caps_bracket_expansions():
    # a far-off prior pushes the upper endpoint more than 5 scales past the direct one
    s = NormalPriorSpending(prior_mean=1000.0, prior_variance=1.0, sampling_variance=25.0)
    solver = EndpointSolver(config=SolverConfig(max_bracket_expansions=1))
    with pytest.raises(SpendingFunctionContractViolation):
        solver.solve(100.0, 5.0, 0.05, s)


def test_solver_reports_last_bracket_on_non_convergence():
    solver = EndpointSolver(
        config=SolverConfig(method="bisect", max_bisection_iterations=1)
    )
    with pytest.raises(RootFindingNonConvergence) as info:
        solver.solve(0.0, 1.0, 0.05, ConstantSpending(0.3))
    a, b = info.value.bracket
    root = ndtri(0.05 * 0.7)
    # the expansion bracket from the direct endpoint is one scale wide
    assert 0.0 < b - a < 1.0
    assert a < root < b


def test_subnormal_scale_keeps_a_positive_tolerance():
    lo, hi = EndpointSolver().solve(0.0, 1e-320, 0.05, ConstantSpending())
    assert lo <= 0.0 <= hi
    assert hi - lo < 1e-310


@pytest.mark.parametrize("bad", [math.nan, 1.5, -0.1])
def test_solver_rejects_malformed_spending(bad):
    with pytest.raises(SpendingFunctionContractViolation):
        EndpointSolver().solve(0.0, 1.0, 0.05, lambda theta: bad)


@pytest.mark.parametrize(
    "estimate,scale,alpha",
    [
        (math.nan, 1.0, 0.05),
        (math.inf, 1.0, 0.05),
        (0.0, 0.0, 0.05),
        (0.0, -1.0, 0.05),
        (0.0, math.inf, 0.05),
        (0.0, 1.0, 0.0),
        (0.0, 1.0, 1.0),
    ],
)
def test_solver_rejects_invalid_inputs(estimate, scale, alpha):
    with pytest.raises(InvalidInputError):
        EndpointSolver().solve(estimate, scale, alpha, ConstantSpending())


def test_spending_clamped_before_quantile():
    # s jumps to exactly 0 and 1; the clamp keeps both endpoints finite
    step = lambda theta: 0.0 if theta < 0 else 1.0  # noqa: E731
    lo, hi = EndpointSolver().solve(0.0, 1.0, 0.05, step)
    assert math.isfinite(lo) and math.isfinite(hi)
    assert lo < 0.0 < hi
