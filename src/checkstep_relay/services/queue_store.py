"""SQLite-backed moderation queue.

Every state change is a single statement or an immediate transaction on one
row set, so concurrent enqueues, sweeps and claims never overwrite each
other's updates.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

from ..models.content import ContentType
from ..models.queue import MAX_RETRIES, QueueEntry, QueueStats, QueueStatus

logger = logging.getLogger(__name__)

LAST_PROCESSED_KEY = "last_queue_process"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ModerationQueue:
    """Durable at-least-once queue of content awaiting review."""

    def __init__(
        self,
        db_path: Path,
        max_retries: int = MAX_RETRIES,
        stale_claim_seconds: int = 600,
    ):
        self.db_path = Path(db_path)
        self.max_retries = max_retries
        self.stale_claim_seconds = stale_claim_seconds

    def init_db(self) -> None:
        """Initialize the database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS moderation_queue (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    content_type TEXT NOT NULL,
                    content_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    retries INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    claimed_at TEXT,
                    claim_token TEXT,
                    processed_at TEXT,
                    last_error TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_queue_status_created
                ON moderation_queue(status, created_at)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_queue_content
                ON moderation_queue(content_type, content_id)
            """)

            # Small key-value table for sweep bookkeeping
            conn.execute("""
                CREATE TABLE IF NOT EXISTS relay_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection in autocommit mode."""
        conn = sqlite3.connect(str(self.db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Immediate (write-locked) transaction."""
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def enqueue(self, content_type: ContentType | str, content_id: str) -> QueueEntry:
        """Append a pending entry. Duplicate content produces duplicate entries."""
        content_type = ContentType(content_type)
        created_at = _now()
        with self.get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO moderation_queue (content_type, content_id, status, retries, created_at)
                VALUES (?, ?, ?, 0, ?)
                """,
                (content_type.value, str(content_id), QueueStatus.PENDING.value, created_at.isoformat()),
            )
            entry_id = cursor.lastrowid

        logger.info(f"Queued {content_type.value} {content_id} as entry {entry_id}")
        return QueueEntry(
            id=entry_id,
            content_type=content_type,
            content_id=str(content_id),
            created_at=created_at,
        )

    def claim_batch(self, limit: int) -> list[QueueEntry]:
        """Claim up to ``limit`` of the oldest pending entries.

        Selected entries are switched to ``processing`` inside the same write
        transaction, so concurrent callers never receive the same entry.
        Entries whose claim is older than the stale-claim timeout are
        eligible again. Each claim gets a fresh ``claim_token``; only the
        holder of the current token can record the outcome.
        """
        if limit <= 0:
            return []

        now = _now()
        stale_before = (now - timedelta(seconds=self.stale_claim_seconds)).isoformat()
        token = uuid.uuid4().hex

        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT id FROM moderation_queue
                WHERE status = ?
                   OR (status = ? AND (claimed_at IS NULL OR claimed_at <= ?))
                ORDER BY created_at ASC, id ASC
                LIMIT ?
                """,
                (QueueStatus.PENDING.value, QueueStatus.PROCESSING.value, stale_before, limit),
            ).fetchall()
            ids = [row["id"] for row in rows]
            if not ids:
                return []

            placeholders = ",".join("?" for _ in ids)
            conn.execute(
                f"""
                UPDATE moderation_queue SET status = ?, claimed_at = ?, claim_token = ?
                WHERE id IN ({placeholders})
                """,
                (QueueStatus.PROCESSING.value, now.isoformat(), token, *ids),
            )
            claimed = conn.execute(
                f"""
                SELECT * FROM moderation_queue WHERE id IN ({placeholders})
                ORDER BY created_at ASC, id ASC
                """,
                ids,
            ).fetchall()

        logger.debug(f"Claimed {len(claimed)} queue entries")
        return [_row_to_entry(row) for row in claimed]

    def mark_completed(self, entry: QueueEntry) -> QueueEntry | None:
        """Mark a claimed entry as submitted.

        Returns None if the claim is no longer current (the entry was
        reclaimed after going stale, or is not processing).
        """
        with self._transaction() as conn:
            result = conn.execute(
                """
                UPDATE moderation_queue
                SET status = ?, processed_at = ?, claimed_at = NULL, claim_token = NULL,
                    last_error = NULL
                WHERE id = ? AND status = ? AND claim_token = ?
                """,
                (
                    QueueStatus.COMPLETED.value,
                    _now().isoformat(),
                    entry.id,
                    QueueStatus.PROCESSING.value,
                    entry.claim_token,
                ),
            )
            if result.rowcount == 0:
                logger.warning(f"Entry {entry.id} is no longer claimed by this worker; completion ignored")
                return None
            return _fetch_entry(conn, entry.id)

    def mark_failed_attempt(self, entry: QueueEntry, error: str) -> QueueEntry | None:
        """Record a failed attempt.

        The retry counter is incremented in SQL. At ``max_retries`` the entry
        becomes terminal ``failed``; otherwise it returns to ``pending``.
        """
        now = _now().isoformat()
        with self._transaction() as conn:
            result = conn.execute(
                """
                UPDATE moderation_queue
                SET retries = retries + 1,
                    last_error = ?,
                    claimed_at = NULL,
                    claim_token = NULL,
                    status = CASE WHEN retries + 1 >= ? THEN ? ELSE ? END,
                    processed_at = CASE WHEN retries + 1 >= ? THEN ? ELSE NULL END
                WHERE id = ? AND status = ? AND claim_token = ?
                """,
                (
                    error,
                    self.max_retries,
                    QueueStatus.FAILED.value,
                    QueueStatus.PENDING.value,
                    self.max_retries,
                    now,
                    entry.id,
                    QueueStatus.PROCESSING.value,
                    entry.claim_token,
                ),
            )
            if result.rowcount == 0:
                logger.warning(f"Entry {entry.id} is no longer claimed by this worker; failure ignored")
                return None
            return _fetch_entry(conn, entry.id)

    def mark_failed(self, entry: QueueEntry, error: str) -> QueueEntry | None:
        """Fail a claimed entry permanently without further retries."""
        with self._transaction() as conn:
            result = conn.execute(
                """
                UPDATE moderation_queue
                SET retries = retries + 1, last_error = ?, claimed_at = NULL, claim_token = NULL,
                    status = ?, processed_at = ?
                WHERE id = ? AND status = ? AND claim_token = ?
                """,
                (
                    error,
                    QueueStatus.FAILED.value,
                    _now().isoformat(),
                    entry.id,
                    QueueStatus.PROCESSING.value,
                    entry.claim_token,
                ),
            )
            if result.rowcount == 0:
                logger.warning(f"Entry {entry.id} is no longer claimed by this worker; rejection ignored")
                return None
            return _fetch_entry(conn, entry.id)

    def recover_stale_claims(self, older_than_seconds: int | None = None) -> int:
        """Return abandoned ``processing`` entries to ``pending``.

        Called on startup; a crashed sweep leaves its claims behind.
        """
        seconds = self.stale_claim_seconds if older_than_seconds is None else older_than_seconds
        cutoff = (_now() - timedelta(seconds=seconds)).isoformat()
        with self.get_connection() as conn:
            result = conn.execute(
                """
                UPDATE moderation_queue
                SET status = ?, claimed_at = NULL, claim_token = NULL
                WHERE status = ? AND (claimed_at IS NULL OR claimed_at <= ?)
                """,
                (QueueStatus.PENDING.value, QueueStatus.PROCESSING.value, cutoff),
            )
            recovered = result.rowcount

        if recovered:
            logger.warning(f"Recovered {recovered} stale queue claims")
        return recovered

    def get_entry(self, entry_id: int) -> QueueEntry | None:
        """Get an entry by ID."""
        with self.get_connection() as conn:
            return _fetch_entry(conn, entry_id)

    def list_entries(
        self,
        status: QueueStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QueueEntry]:
        """List entries newest first, optionally filtered by status."""
        with self.get_connection() as conn:
            if status:
                rows = conn.execute(
                    """
                    SELECT * FROM moderation_queue
                    WHERE status = ?
                    ORDER BY created_at DESC, id DESC
                    LIMIT ? OFFSET ?
                    """,
                    (status.value, limit, offset),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM moderation_queue
                    ORDER BY created_at DESC, id DESC
                    LIMIT ? OFFSET ?
                    """,
                    (limit, offset),
                ).fetchall()
            return [_row_to_entry(row) for row in rows]

    def get_stats(self) -> QueueStats:
        """Count entries per status."""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT status, COUNT(*) AS count FROM moderation_queue GROUP BY status"
            ).fetchall()
        counts = {row["status"]: row["count"] for row in rows}
        last_processed = self.get_state(LAST_PROCESSED_KEY)

        return QueueStats(
            pending=counts.get(QueueStatus.PENDING.value, 0),
            processing=counts.get(QueueStatus.PROCESSING.value, 0),
            completed=counts.get(QueueStatus.COMPLETED.value, 0),
            failed=counts.get(QueueStatus.FAILED.value, 0),
            last_processed_at=datetime.fromisoformat(last_processed) if last_processed else None,
        )

    def get_state(self, key: str) -> str | None:
        with self.get_connection() as conn:
            row = conn.execute("SELECT value FROM relay_state WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_state(self, key: str, value: str) -> None:
        with self.get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO relay_state (key, value) VALUES (?, ?)",
                (key, value),
            )


def _fetch_entry(conn: sqlite3.Connection, entry_id: int) -> QueueEntry | None:
    row = conn.execute("SELECT * FROM moderation_queue WHERE id = ?", (entry_id,)).fetchone()
    return _row_to_entry(row) if row else None


def _row_to_entry(row: sqlite3.Row) -> QueueEntry:
    """Convert a database row to a QueueEntry."""
    return QueueEntry(
        id=row["id"],
        content_type=ContentType(row["content_type"]),
        content_id=row["content_id"],
        status=QueueStatus(row["status"]),
        retries=row["retries"],
        created_at=datetime.fromisoformat(row["created_at"]),
        claimed_at=datetime.fromisoformat(row["claimed_at"]) if row["claimed_at"] else None,
        claim_token=row["claim_token"],
        processed_at=datetime.fromisoformat(row["processed_at"]) if row["processed_at"] else None,
        last_error=row["last_error"],
    )
