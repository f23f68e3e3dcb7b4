"""Tests for the SQLite spend ledger."""

import csv
import json
import sqlite3
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest


def _previous_month(now: datetime) -> tuple[int, int]:
    if now.month == 1:
        return now.year - 1, 12
    return now.year, now.month - 1


# ═══════════════════════════════════════════════════════════════
# 1. RECORDING & MONTHLY SPEND
# ═══════════════════════════════════════════════════════════════

class TestMonthlySpend:
    """Recording costs and reading the current month back."""

    def test_empty_ledger_has_zero_spend(self, ledger):
        assert ledger.get_monthly_spend() == 0.0

    def test_initialize_is_idempotent(self, ledger):
        ledger.initialize()
        ledger.initialize()
        assert ledger.file_path.exists()

    def test_record_cost_returns_entry(self, ledger):
        entry = ledger.record_cost("anthropic", "claude-opus-4", 0.42, tokens=12_000)

        assert entry.provider == "anthropic"
        assert entry.model == "claude-opus-4"
        assert entry.cost == 0.42
        assert entry.tokens == 12_000
        assert entry.timestamp <= time.time()

    def test_spend_sums_current_month(self, ledger):
        ledger.record_cost("anthropic", "claude-opus-4", 1.5)
        ledger.record_cost("openai", "gpt-5", 2.25, tokens=400)

        assert ledger.get_monthly_spend() == pytest.approx(3.75)

    def test_previous_month_excluded(self, ledger, monkeypatch):
        now = datetime.now()
        year, month = _previous_month(now)
        old = datetime(year, month, 15, 12).timestamp()

        with monkeypatch.context() as m:
            m.setattr(time, "time", lambda: old)
            ledger.record_cost("openai", "gpt-5", 9.0)
        ledger.record_cost("openai", "gpt-5", 1.0)

        assert ledger.get_monthly_spend() == pytest.approx(1.0)
        assert ledger.get_monthly_spend(year, month) == pytest.approx(9.0)

    def test_negative_cost_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.record_cost("openai", "gpt-5", -0.01)

    def test_negative_tokens_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.record_cost("openai", "gpt-5", 0.01, tokens=-1)

    def test_invalid_month_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.get_monthly_spend(2025, 13)

    def test_metadata_round_trips(self, ledger):
        ledger.record_cost("anthropic", "claude-sonnet-4", 0.1, metadata={"task": "review"})

        [entry] = ledger.get_entries()
        assert entry.metadata == {"task": "review"}


# ═══════════════════════════════════════════════════════════════
# 2. DURABILITY & CORRUPTION
# ═══════════════════════════════════════════════════════════════

class TestDurability:
    """What was recorded survives a new instance; bad stores fail loudly."""

    def test_entries_visible_to_new_instance(self, tmp_path):
        from hybrid_router.ledger import CostLedger

        recorded = CostLedger(data_dir=tmp_path).record_cost(
            "anthropic", "claude-opus-4", 0.75, tokens=4321)

        reopened = CostLedger(data_dir=tmp_path)
        [entry] = reopened.get_entries()

        assert entry.provider == recorded.provider == "anthropic"
        assert entry.model == recorded.model == "claude-opus-4"
        assert entry.cost == recorded.cost == 0.75
        assert entry.tokens == recorded.tokens == 4321
        assert entry.timestamp == recorded.timestamp
        assert reopened.get_monthly_spend() == pytest.approx(0.75)

    def test_corrupted_file_raises(self, tmp_path):
        from hybrid_router.errors import LedgerError
        from hybrid_router.ledger import LEDGER_FILENAME, CostLedger

        (tmp_path / LEDGER_FILENAME).write_bytes(b"this is not a database\n" * 100)

        with pytest.raises(LedgerError):
            CostLedger(data_dir=tmp_path).get_monthly_spend()

    def test_unexpected_schema_raises(self, tmp_path):
        from hybrid_router.errors import LedgerError
        from hybrid_router.ledger import LEDGER_FILENAME, CostLedger

        conn = sqlite3.connect(str(tmp_path / LEDGER_FILENAME))
        conn.execute("CREATE TABLE cost_entries (id INTEGER PRIMARY KEY, amount REAL)")
        conn.commit()
        conn.close()

        with pytest.raises(LedgerError, match="unexpected schema") as exc:
            CostLedger(data_dir=tmp_path).initialize()

        assert "timestamp" in str(exc.value)
        assert "provider" in str(exc.value)

    def test_ledger_error_is_not_empty_spend(self, tmp_path):
        """An unreadable ledger never reports 0.0."""
        from hybrid_router.errors import HybridRouterError
        from hybrid_router.ledger import LEDGER_FILENAME, CostLedger

        (tmp_path / LEDGER_FILENAME).write_bytes(b"\x00garbage" * 512)

        with pytest.raises(HybridRouterError):
            CostLedger(data_dir=tmp_path).get_monthly_summary()

    def test_concurrent_appends_all_land(self, ledger):
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(
                lambda i: ledger.record_cost("openai", "gpt-5", 0.5, tokens=i),
                range(20),
            ))

        entries = ledger.get_entries()
        assert len(entries) == 20
        assert sorted(e.tokens for e in entries) == list(range(20))
        assert ledger.get_monthly_spend() == pytest.approx(10.0)


# ═══════════════════════════════════════════════════════════════
# 3. SUMMARY, RANGES, EXPORT, CLEAR
# ═══════════════════════════════════════════════════════════════

class TestReporting:
    """Summaries, range queries and export."""

    def test_monthly_summary_breakdowns(self, ledger):
        ledger.record_cost("anthropic", "claude-opus-4", 1.0, tokens=1000)
        ledger.record_cost("anthropic", "claude-sonnet-4", 0.5, tokens=3000)
        ledger.record_cost("openai", "gpt-5", 2.0, tokens=2000)

        summary = ledger.get_monthly_summary()

        assert summary.request_count == 3
        assert summary.total_tokens == 6000
        assert summary.total_spend == pytest.approx(3.5)
        assert summary.by_provider["anthropic"] == pytest.approx(1.5)
        assert summary.by_provider["openai"] == pytest.approx(2.0)
        assert summary.by_model["claude-sonnet-4"] == pytest.approx(0.5)
        assert summary.average_cost == pytest.approx(3.5 / 3)
        assert summary.average_tokens == pytest.approx(2000)

    def test_empty_summary(self, ledger):
        summary = ledger.get_monthly_summary(2024, 2)

        assert summary.request_count == 0
        assert summary.average_cost == 0.0
        assert summary.to_dict()["month"] == 2

    def test_get_entries_range(self, ledger, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr(time, "time", lambda: now[0])

        for stamp in (1000.0, 2000.0, 3000.0):
            now[0] = stamp
            ledger.record_cost("openai", "gpt-5", 0.1)

        assert [e.timestamp for e in ledger.get_entries(start=1500.0, end=2500.0)] == [2000.0]
        assert [e.timestamp for e in ledger.get_entries(start=2000.0, end=3000.0)] == [2000.0, 3000.0]
        assert len(ledger.get_entries()) == 3

    def test_export_json(self, ledger, tmp_path):
        ledger.record_cost("anthropic", "claude-opus-4", 0.25, tokens=500)
        ledger.record_cost("openai", "gpt-5", 0.75, tokens=700)

        out = ledger.export(tmp_path / "spend.json")
        data = json.loads(out.read_text())

        assert [row["model"] for row in data] == ["claude-opus-4", "gpt-5"]
        assert data[1]["tokens"] == 700

    def test_export_csv(self, ledger, tmp_path):
        ledger.record_cost("anthropic", "claude-opus-4", 0.25, tokens=500)

        out = ledger.export(tmp_path / "spend.csv")
        with out.open(newline="") as f:
            rows = list(csv.DictReader(f))

        assert len(rows) == 1
        assert rows[0]["provider"] == "anthropic"
        assert float(rows[0]["cost"]) == pytest.approx(0.25)

    def test_export_to_missing_directory_raises(self, ledger, tmp_path):
        from hybrid_router.errors import LedgerError

        with pytest.raises(LedgerError):
            ledger.export(tmp_path / "nope" / "spend.json")

    def test_clear_empties_ledger(self, ledger):
        ledger.record_cost("openai", "gpt-5", 5.0)
        ledger.clear()

        assert ledger.get_monthly_spend() == 0.0
        assert ledger.get_entries() == []
