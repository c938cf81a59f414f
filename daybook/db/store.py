"""SQLite snapshot store for Daybook."""

import json
import logging
import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from daybook.db.base import SnapshotStore
from daybook.exceptions import PersistenceError
from daybook.models import (
    Brokerage,
    DailyRecord,
    Goal,
    Snapshot,
    Trade,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


class DataStore(SnapshotStore):
    """SQLite-based snapshot store.

    Settings (brokerages, goals, deposits/withdrawals) live in one JSON
    document per user. Trades are stored flat, one row per trade, tagged
    with the day key of their record.
    """

    REQUIRED_TABLES = [
        "user_settings",
        "trades",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_settings (
                    user_id INTEGER PRIMARY KEY,
                    settings_json TEXT NOT NULL
                )
            """)

            # Decimal columns are TEXT so amounts round-trip exactly
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT NOT NULL,
                    user_id INTEGER NOT NULL,
                    record_id TEXT NOT NULL,
                    brokerage_id TEXT NOT NULL,
                    result TEXT NOT NULL CHECK (result IN ('win', 'loss')),
                    entry_value TEXT NOT NULL,
                    payout_percentage TEXT NOT NULL,
                    profit TEXT NOT NULL,
                    traded_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, id)
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_trades_user_record
                ON trades (user_id, record_id)
            """)

            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not initialize {self.db_path}: {e}") from e
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Snapshot ====================

    def load(self, user_id: int) -> Snapshot:
        """Load a user's snapshot.

        Args:
            user_id: User identifier.

        Returns:
            Snapshot with day records grouped from the trade rows.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT settings_json FROM user_settings WHERE user_id = ?",
                (user_id,),
            )
            row = cursor.fetchone()
            settings = json.loads(row["settings_json"]) if row else {}

            cursor.execute(
                """
                SELECT id, record_id, brokerage_id, result, entry_value,
                       payout_percentage, traded_at
                FROM trades
                WHERE user_id = ?
                ORDER BY record_id, rowid
                """,
                (user_id,),
            )
            trade_rows = cursor.fetchall()
        except (sqlite3.Error, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not load data for user {user_id}: {e}") from e
        finally:
            conn.close()

        try:
            brokerages = [Brokerage.model_validate(b) for b in settings.get("brokerages", [])]
            goals = [Goal.model_validate(g) for g in settings.get("goals", [])]
            transactions = [
                TransactionRecord.model_validate(t) for t in settings.get("transactions", [])
            ]

            # One day record per (brokerage, day) pair
            grouped: dict[tuple[str, str], list[Trade]] = {}
            for trade_row in trade_rows:
                key = (trade_row["brokerage_id"], trade_row["record_id"])
                grouped.setdefault(key, []).append(
                    Trade(
                        id=trade_row["id"],
                        result=trade_row["result"],
                        entry_value=Decimal(trade_row["entry_value"]),
                        payout_percentage=Decimal(trade_row["payout_percentage"]),
                        timestamp=datetime.fromisoformat(trade_row["traded_at"]),
                    )
                )
            day_records = [
                DailyRecord(id=record_id, brokerage_id=brokerage_id, trades=trades)
                for (brokerage_id, record_id), trades in grouped.items()
            ]
        except PydanticValidationError as e:
            raise PersistenceError(f"Stored data for user {user_id} is invalid: {e}") from e

        logger.debug(
            "Loaded %d trade(s) in %d day(s) for user %s",
            len(trade_rows), len(day_records), user_id,
        )
        return Snapshot(
            brokerages=brokerages,
            records=day_records + transactions,
            goals=goals,
        )

    def save(self, user_id: int, snapshot: Snapshot) -> None:
        """Replace a user's stored snapshot in a single transaction.

        Day records without trades are not stored.

        Args:
            user_id: User identifier.
            snapshot: Full snapshot.
        """
        settings = {
            "brokerages": [b.model_dump(mode="json") for b in snapshot.brokerages],
            "goals": [g.model_dump(mode="json") for g in snapshot.goals],
            "transactions": [
                r.model_dump(mode="json")
                for r in snapshot.records
                if isinstance(r, TransactionRecord)
            ],
        }
        trade_rows = [
            (
                trade.id,
                user_id,
                record.id,
                record.brokerage_id,
                trade.result,
                str(trade.entry_value),
                str(trade.payout_percentage),
                str(trade.profit),
                trade.timestamp.isoformat(),
            )
            for record in snapshot.day_records
            for trade in record.trades
        ]

        conn = self._get_connection()
        try:
            # Commits on success, rolls everything back on any error
            with conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO user_settings (user_id, settings_json) VALUES (?, ?)
                    ON CONFLICT (user_id) DO UPDATE SET settings_json = excluded.settings_json
                    """,
                    (user_id, json.dumps(settings)),
                )
                cursor.execute("DELETE FROM trades WHERE user_id = ?", (user_id,))
                cursor.executemany(
                    """
                    INSERT INTO trades
                    (id, user_id, record_id, brokerage_id, result, entry_value,
                     payout_percentage, profit, traded_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    trade_rows,
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not save data for user {user_id}: {e}") from e
        finally:
            conn.close()

        logger.debug("Stored %d trade(s) for user %s", len(trade_rows), user_id)
