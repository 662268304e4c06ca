"""
Shared test fixtures and helpers for the trapline test suite.
"""

import os

import pytest

from trapline import Fault, clear_match_cache, reset_config
from trapline import engine


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_runtime(monkeypatch):
    """Give every test defaults, an empty match cache and no listeners."""
    for key in list(os.environ):
        if key.startswith("TRAPLINE_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    clear_match_cache()
    with engine._listeners_lock:
        saved = list(engine._listeners)
        engine._listeners.clear()
    yield
    with engine._listeners_lock:
        engine._listeners[:] = saved
    reset_config()
    clear_match_cache()


# ============================================================================
# Custom kinds used across tests
# ============================================================================


class QuotaFault(Fault):
    kind_name = "QuotaExceeded"

    def __init__(self, tenant: str, limit: int):
        super().__init__("quota exceeded", tenant=tenant, limit=limit)

    def render(self) -> str:
        return f"QuotaExceeded: {self.tenant} over {self.limit}"


class OtherQuotaFault(Fault):
    """Same label as QuotaFault, unrelated class."""

    kind_name = "QuotaExceeded"


class TimeoutFault(Fault):
    pass


@pytest.fixture
def quota_fault():
    return QuotaFault("acme", 10)
