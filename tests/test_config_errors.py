import pytest

from fabci.core.config import MIN_TOLERANCE, SolverConfig, validate_alpha
from fabci.core.errors import (
    FabError,
    InvalidInputError,
    RootFindingNonConvergence,
    SpendingFunctionContractViolation,
)


def test_absolute_tolerance_scales_unless_fixed():
    assert SolverConfig().absolute_tolerance(5.0) == pytest.approx(5e-10)
    assert SolverConfig(tolerance=1e-6).absolute_tolerance(5.0) == 1e-6


def test_absolute_tolerance_never_underflows():
    assert SolverConfig().absolute_tolerance(1e-320) == MIN_TOLERANCE
    assert SolverConfig().absolute_tolerance(1e-320) > 0.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tolerance": 0.0},
        {"relative_tolerance": -1.0},
        {"max_bracket_expansions": 0},
        {"max_bisection_iterations": 0},
        {"spending_epsilon": 0.5},
        {"method": "newton"},
    ],
)
def test_solver_config_rejects_invalid(kwargs):
    with pytest.raises(InvalidInputError):
        SolverConfig(**kwargs)


def test_solver_config_is_keyword_only():
    with pytest.raises(TypeError):
        SolverConfig(1e-8)  # type: ignore[misc]


@pytest.mark.parametrize("alpha", [0.0, 1.0, -0.1, 1.5, float("nan")])
def test_validate_alpha_rejects(alpha):
    with pytest.raises(InvalidInputError):
        validate_alpha(alpha)


def test_error_kinds_and_messages():
    err = SpendingFunctionContractViolation("decreases", (1.0, 2.0))
    assert isinstance(err, FabError)
    assert err.kind == "spending_contract_violation"
    assert err.theta_range == (1.0, 2.0)
    assert "[1, 2]" in str(err)

    nc = RootFindingNonConvergence("gave up", bracket=(0.5, 0.75), iterations=3)
    assert nc.kind == "root_finding_non_convergence"
    assert nc.bracket == (0.5, 0.75)
    assert nc.iterations == 3
    assert "0.75" in str(nc)

    assert issubclass(InvalidInputError, ValueError)
