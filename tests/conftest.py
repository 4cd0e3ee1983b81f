# tests/conftest.py
import pytest

from qbc.lattice import build_registry

FIXED_TIMESTAMP = "2024-01-01T00:00:00Z"


@pytest.fixture(scope="session")
def registry():
    """Built-in registry, independent of QBC_* environment settings."""
    return build_registry()


@pytest.fixture(scope="session")
def g1(registry):
    return registry.get("G1")


@pytest.fixture(scope="session")
def g2(registry):
    return registry.get("G2")


@pytest.fixture(scope="session")
def c7(registry):
    return registry.get("C7")


@pytest.fixture(scope="session")
def m3(registry):
    return registry.get("M3")


@pytest.fixture
def created_at():
    return FIXED_TIMESTAMP
