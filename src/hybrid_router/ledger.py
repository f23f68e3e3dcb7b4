"""Spend ledger.

Append-only record of what API calls actually cost, backed by SQLite.
The cost-aware router reads the current month's total from here to decide
whether a paid API is still affordable.

Features:
- One INSERT per recorded cost, committed before ``record_cost`` returns
- Calendar-month aggregation (local time) by provider and model
- Range queries, JSON/CSV export, explicit clear
- A store that cannot be read raises ``LedgerError`` instead of
  looking like an empty month
"""

import csv
import json
import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager, suppress
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from hybrid_router.errors import LedgerError

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "cost-ledger.db"
HOME_ENV_VAR = "HYBRID_ROUTER_HOME"

_COLUMNS = ("timestamp", "provider", "model", "cost", "tokens", "metadata")


def default_data_dir() -> Path:
    """``$HYBRID_ROUTER_HOME`` or ``~/.hybrid-router``."""
    env = os.environ.get(HOME_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".hybrid-router"


@dataclass(frozen=True)
class CostEntry:
    """One recorded API charge."""
    timestamp: float  # epoch seconds
    provider: str
    model: str
    cost: float       # USD
    tokens: int
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def recorded_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "provider": self.provider,
            "model": self.model,
            "cost": self.cost,
            "tokens": self.tokens,
            "metadata": dict(self.metadata),
        }


@dataclass
class MonthlySummary:
    """Spend aggregated over one calendar month."""
    year: int
    month: int
    total_spend: float = 0.0
    request_count: int = 0
    total_tokens: int = 0
    by_provider: dict[str, float] = field(default_factory=dict)
    by_model: dict[str, float] = field(default_factory=dict)

    @property
    def average_cost(self) -> float:
        return self.total_spend / self.request_count if self.request_count else 0.0

    @property
    def average_tokens(self) -> float:
        return self.total_tokens / self.request_count if self.request_count else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "total_spend": round(self.total_spend, 6),
            "request_count": self.request_count,
            "total_tokens": self.total_tokens,
            "by_provider": self.by_provider,
            "by_model": self.by_model,
            "average_cost": round(self.average_cost, 6),
            "average_tokens": round(self.average_tokens, 1),
        }


def month_bounds(year: int, month: int) -> tuple[float, float]:
    """[start, end) epoch bounds of a local calendar month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start.timestamp(), end.timestamp()


def _as_epoch(value: datetime | float | None, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, datetime):
        return value.timestamp()
    return float(value)


class CostLedger:
    """Persistent spend ledger backed by SQLite.

    Usage:
        ledger = CostLedger(data_dir=tmp_path)
        ledger.record_cost("anthropic", "claude-opus-4", cost=0.42, tokens=12_000)
        ledger.get_monthly_spend()  # 0.42
    """

    def __init__(self, data_dir: Path | str | None = None):
        base = Path(data_dir).expanduser() if data_dir else default_data_dir()
        self.db_path = base / LEDGER_FILENAME
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def file_path(self) -> Path:
        return self.db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=30)
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to open cost ledger {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            with suppress(sqlite3.Error):
                conn.rollback()
            raise LedgerError(f"Cost ledger error ({self.db_path}): {e}") from e
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create or validate the store. Safe to call repeatedly."""
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise LedgerError(f"Cannot create ledger directory {self.db_path.parent}: {e}") from e

            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS cost_entries (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp REAL NOT NULL,
                        provider TEXT NOT NULL,
                        model TEXT NOT NULL,
                        cost REAL NOT NULL DEFAULT 0.0,
                        tokens INTEGER NOT NULL DEFAULT 0,
                        metadata TEXT
                    )
                """)
                columns = {row[1] for row in conn.execute("PRAGMA table_info(cost_entries)")}
                missing = set(_COLUMNS) - columns
                if missing:
                    raise LedgerError(
                        f"Cost ledger {self.db_path} has an unexpected schema "
                        f"(missing columns: {', '.join(sorted(missing))})"
                    )
                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_cost_entries_timestamp
                    ON cost_entries(timestamp)
                """)

            self._initialized = True
            logger.debug(f"Cost ledger ready at {self.db_path}")

    def record_cost(
        self,
        provider: str,
        model: str,
        cost: float,
        tokens: int = 0,
        metadata: dict[str, Any] | None = None,
    ) -> CostEntry:
        """Append a charge, stamped with the current time.

        The entry is committed before this returns.
        """
        if cost < 0:
            raise ValueError(f"cost must be non-negative, got {cost}")
        if tokens < 0:
            raise ValueError(f"tokens must be non-negative, got {tokens}")

        self.initialize()
        entry = CostEntry(
            timestamp=time.time(),
            provider=provider,
            model=model,
            cost=float(cost),
            tokens=int(tokens),
            metadata=dict(metadata or {}),
        )

        with self._lock, self._connect() as conn:
            conn.execute(
                """INSERT INTO cost_entries
                   (timestamp, provider, model, cost, tokens, metadata)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    entry.timestamp, entry.provider, entry.model,
                    entry.cost, entry.tokens,
                    json.dumps(entry.metadata) if entry.metadata else None,
                ),
            )

        logger.debug(f"Recorded ${entry.cost:.6f} for {provider}/{model} ({tokens} tokens)")
        return entry

    def get_monthly_spend(self, year: int | None = None, month: int | None = None) -> float:
        """Total spend for a calendar month (default: the current one)."""
        start, end = self._resolve_month(year, month)
        self.initialize()
        with self._connect() as conn:
            row = conn.execute(
                """SELECT COALESCE(SUM(cost), 0.0) FROM cost_entries
                   WHERE timestamp >= ? AND timestamp < ?""",
                (start, end),
            ).fetchone()
        return float(row[0])

    def get_monthly_summary(
        self,
        year: int | None = None,
        month: int | None = None,
    ) -> MonthlySummary:
        """Spend, request and token totals for a month, with breakdowns."""
        now = datetime.now()
        year = year if year is not None else now.year
        month = month if month is not None else now.month
        start, end = self._resolve_month(year, month)
        self.initialize()

        with self._connect() as conn:
            row = conn.execute(
                """SELECT
                    COUNT(*),
                    COALESCE(SUM(cost), 0.0),
                    COALESCE(SUM(tokens), 0)
                FROM cost_entries
                WHERE timestamp >= ? AND timestamp < ?""",
                (start, end),
            ).fetchone()

            by_provider = {
                prow[0]: prow[1]
                for prow in conn.execute(
                    """SELECT provider, SUM(cost) FROM cost_entries
                    WHERE timestamp >= ? AND timestamp < ?
                    GROUP BY provider ORDER BY SUM(cost) DESC""",
                    (start, end),
                )
            }
            by_model = {
                mrow[0]: mrow[1]
                for mrow in conn.execute(
                    """SELECT model, SUM(cost) FROM cost_entries
                    WHERE timestamp >= ? AND timestamp < ?
                    GROUP BY model ORDER BY SUM(cost) DESC""",
                    (start, end),
                )
            }

        return MonthlySummary(
            year=year,
            month=month,
            request_count=row[0],
            total_spend=float(row[1]),
            total_tokens=int(row[2]),
            by_provider=by_provider,
            by_model=by_model,
        )

    def get_entries(
        self,
        start: datetime | float | None = None,
        end: datetime | float | None = None,
    ) -> list[CostEntry]:
        """Entries in recording order, optionally limited to ``start <= t <= end``."""
        self.initialize()
        query = f"SELECT {', '.join(_COLUMNS)} FROM cost_entries"
        params: tuple[float, ...] = ()
        if start is not None or end is not None:
            query += " WHERE timestamp >= ? AND timestamp <= ?"
            params = (_as_epoch(start, 0.0), _as_epoch(end, time.time()))
        query += " ORDER BY timestamp, id"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        return [self._row_to_entry(row) for row in rows]

    def clear(self) -> None:
        """Delete every entry. Destructive."""
        self.initialize()
        with self._lock, self._connect() as conn:
            deleted = conn.execute("DELETE FROM cost_entries").rowcount
        logger.info(f"Cleared {deleted} cost ledger entries")

    def export(self, path: Path | str) -> Path:
        """Write every entry to ``path``: CSV for ``.csv``, JSON otherwise."""
        path = Path(path)
        entries = self.get_entries()

        try:
            if path.suffix.lower() == ".csv":
                with path.open("w", newline="") as f:
                    writer = csv.writer(f)
                    writer.writerow(_COLUMNS)
                    for entry in entries:
                        writer.writerow([
                            entry.timestamp, entry.provider, entry.model,
                            entry.cost, entry.tokens,
                            json.dumps(entry.metadata) if entry.metadata else "",
                        ])
            else:
                path.write_text(json.dumps([e.to_dict() for e in entries], indent=2))
        except OSError as e:
            raise LedgerError(f"Failed to export cost ledger to {path}: {e}") from e

        logger.info(f"Exported {len(entries)} cost entries to {path}")
        return path

    @staticmethod
    def _resolve_month(year: int | None, month: int | None) -> tuple[float, float]:
        now = datetime.now()
        return month_bounds(
            year if year is not None else now.year,
            month if month is not None else now.month,
        )

    @staticmethod
    def _row_to_entry(row: tuple[Any, ...]) -> CostEntry:
        try:
            metadata = json.loads(row[5]) if row[5] else {}
        except json.JSONDecodeError as e:
            raise LedgerError(f"Corrupted metadata in cost ledger entry: {e}") from e
        return CostEntry(
            timestamp=row[0],
            provider=row[1],
            model=row[2],
            cost=row[3],
            tokens=row[4],
            metadata=metadata,
        )
