"""Shared fixtures for hybrid-router tests."""

import pytest


class FixedSpendLedger:
    """Ledger stand-in that reports a fixed monthly spend."""

    def __init__(self, spend: float = 0.0):
        self.spend = spend
        self.reads = 0

    def get_monthly_spend(self) -> float:
        self.reads += 1
        return self.spend


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.hybrid-router."""
    home = tmp_path / "home"
    monkeypatch.setenv("HYBRID_ROUTER_HOME", str(home))
    return home


@pytest.fixture
def ledger(tmp_path):
    """Fresh CostLedger in a temp directory."""
    from hybrid_router.ledger import CostLedger
    return CostLedger(data_dir=tmp_path / "ledger")


@pytest.fixture
def spend_ledger():
    """Factory for ledgers with a fixed spend."""
    return FixedSpendLedger
