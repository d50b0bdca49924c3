"""SQLite persistence for subscribers and their signal inboxes."""

import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from ..errors import StoreUnavailableError


@dataclass
class SubscriberRecord:
    """Stored subscriber."""
    user_id: str
    risk: float
    ref: str
    created_at: str
    updated_at: str


@dataclass
class InboxEntry:
    """Stored per-subscriber copy of a broadcast signal."""
    id: int
    signal_id: str
    user_id: str
    signal: str
    created_at: str


class RelayStore:
    """SQLite-based subscriber and signal inbox store.

    Every public method opens its own connection, so the store can be used
    from worker threads. Database failures surface as StoreUnavailableError.
    """

    def __init__(self, db_path: str = "relay.db", timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.logger = structlog.get_logger("relay.store")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection("init") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS subscribers (
                    user_id TEXT PRIMARY KEY,
                    risk REAL NOT NULL,
                    ref TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS signals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    signal_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    signal TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE(signal_id, user_id)
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_signals_user_id ON signals(user_id)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_subscribers_ref ON subscribers(ref)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self, operation: str):
        """Get database connection, translating driver errors."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", operation=operation, error=str(e))
            raise StoreUnavailableError(
                f"Database error during {operation}: {e}",
                operation=operation,
                target=str(self.db_path)
            ) from e
        finally:
            if conn:
                conn.close()

    # Subscribers

    def upsert_subscriber(self, user_id: str, ref: str, risk: float) -> None:
        """Insert a subscriber or reset an existing one's referral and risk."""
        now = datetime.now(timezone.utc).isoformat()

        with self._lock:
            with self._get_connection("upsert_subscriber") as conn:
                conn.execute("""
                    INSERT INTO subscribers (user_id, risk, ref, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        risk = excluded.risk,
                        ref = excluded.ref,
                        updated_at = excluded.updated_at
                """, (user_id, risk, ref, now, now))
                conn.commit()

        self.logger.info("Subscriber stored", user_id=user_id, ref=ref)

    def delete_subscriber(self, user_id: str) -> bool:
        """
        Remove a subscriber and every inbox entry they own.

        Returns:
            True if a subscriber record existed
        """
        with self._lock:
            with self._get_connection("delete_subscriber") as conn:
                cursor = conn.execute(
                    "DELETE FROM subscribers WHERE user_id = ?", (user_id,)
                )
                existed = cursor.rowcount > 0

                cleared = 0
                if existed:
                    cleared = conn.execute(
                        "DELETE FROM signals WHERE user_id = ?", (user_id,)
                    ).rowcount

                conn.commit()

        if existed:
            self.logger.info("Subscriber removed", user_id=user_id, signals_cleared=cleared)
        return existed

    def update_risk(self, user_id: str, risk: float) -> bool:
        """
        Set an existing subscriber's risk multiplier.

        Returns:
            True if the subscriber exists
        """
        now = datetime.now(timezone.utc).isoformat()

        with self._lock:
            with self._get_connection("update_risk") as conn:
                cursor = conn.execute("""
                    UPDATE subscribers SET risk = ?, updated_at = ? WHERE user_id = ?
                """, (risk, now, user_id))
                conn.commit()
                return cursor.rowcount > 0

    def get_subscriber(self, user_id: str) -> Optional[SubscriberRecord]:
        """Get a subscriber by identity."""
        with self._get_connection("get_subscriber") as conn:
            row = conn.execute(
                "SELECT * FROM subscribers WHERE user_id = ?", (user_id,)
            ).fetchone()

            if row:
                return self._row_to_subscriber(row)
            return None

    def list_subscribers(self, refs: tuple[str, ...]) -> list[SubscriberRecord]:
        """Get every subscriber whose referral code is in ``refs``."""
        if not refs:
            return []

        placeholders = ", ".join("?" for _ in refs)
        with self._get_connection("list_subscribers") as conn:
            rows = conn.execute(f"""
                SELECT * FROM subscribers WHERE ref IN ({placeholders})
                ORDER BY created_at
            """, tuple(refs)).fetchall()

            return [self._row_to_subscriber(row) for row in rows]

    # Signal inbox

    def insert_signal(self, signal_id: str, user_id: str, signal: str) -> bool:
        """
        Store one recipient's copy of a signal.

        The row is only written while ``user_id`` is still subscribed, so a
        broadcast racing an unsubscribe cannot leave an orphaned entry.

        Returns:
            True if a new row was written, False if the copy already existed
            or the subscriber is gone
        """
        now = datetime.now(timezone.utc).isoformat()

        with self._lock:
            with self._get_connection("insert_signal") as conn:
                cursor = conn.execute("""
                    INSERT OR IGNORE INTO signals (signal_id, user_id, signal, created_at)
                    SELECT ?, ?, ?, ?
                    WHERE EXISTS (SELECT 1 FROM subscribers WHERE user_id = ?)
                """, (signal_id, user_id, signal, now, user_id))
                conn.commit()
                return cursor.rowcount > 0

    def list_signals(self, user_id: str, limit: int = 10) -> list[InboxEntry]:
        """Get a subscriber's newest inbox entries, newest first."""
        with self._get_connection("list_signals") as conn:
            rows = conn.execute("""
                SELECT * FROM signals WHERE user_id = ?
                ORDER BY id DESC LIMIT ?
            """, (user_id, limit)).fetchall()

            return [self._row_to_entry(row) for row in rows]

    def delete_signal(self, signal_id: str, user_id: str) -> int:
        """
        Delete the entry matching both signal id and owner.

        Returns:
            Number of rows removed (0 or 1)
        """
        with self._lock:
            with self._get_connection("delete_signal") as conn:
                cursor = conn.execute("""
                    DELETE FROM signals WHERE signal_id = ? AND user_id = ?
                """, (signal_id, user_id))
                conn.commit()
                return cursor.rowcount

    def get_stats(self) -> dict[str, int]:
        """Get database statistics."""
        with self._get_connection("get_stats") as conn:
            subscribers = conn.execute("SELECT COUNT(*) FROM subscribers").fetchone()[0]
            pending = conn.execute("SELECT COUNT(*) FROM signals").fetchone()[0]
            broadcasts = conn.execute(
                "SELECT COUNT(DISTINCT signal_id) FROM signals"
            ).fetchone()[0]

            return {
                "subscribers": subscribers,
                "pending_signals": pending,
                "pending_broadcasts": broadcasts,
            }

    def _row_to_subscriber(self, row: sqlite3.Row) -> SubscriberRecord:
        return SubscriberRecord(
            user_id=row["user_id"],
            risk=row["risk"],
            ref=row["ref"],
            created_at=row["created_at"],
            updated_at=row["updated_at"]
        )

    def _row_to_entry(self, row: sqlite3.Row) -> InboxEntry:
        return InboxEntry(
            id=row["id"],
            signal_id=row["signal_id"],
            user_id=row["user_id"],
            signal=row["signal"],
            created_at=row["created_at"]
        )
