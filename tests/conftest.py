import numpy as np
import pytest

from fabci.core.ledger import Ledger, create_test_connection


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240617)


@pytest.fixture
def ledger() -> Ledger:
    return Ledger(create_test_connection("duckdb"), "test")
