"""Queue processor: drains pending entries into the CheckStep API."""

import asyncio
import logging
from datetime import datetime, timezone

from ..errors import CheckStepError, PayloadRejected
from ..models.queue import QueueEntry, QueueStatus, SweepResult
from .checkstep_client import CheckStepClient
from .formatter import ContentFormatter
from .queue_store import LAST_PROCESSED_KEY, ModerationQueue

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


class QueueProcessor:
    """Single-flight sweep over the moderation queue.

    Each entry is formatted and submitted independently; a failure is
    recorded on its entry and the sweep moves on. Rejected payloads (4xx with
    an error body) fail immediately because resending the same document
    cannot succeed.
    """

    def __init__(
        self,
        queue: ModerationQueue,
        formatter: ContentFormatter,
        client: CheckStepClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._queue = queue
        self._formatter = formatter
        self._client = client
        self.batch_size = batch_size
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_sweep(self) -> SweepResult:
        """Claim one batch and process it. Skipped if a sweep is in flight."""
        if self._lock.locked():
            logger.info("Previous sweep still running; skipping")
            return SweepResult(skipped=True)

        async with self._lock:
            return await self._sweep()

    async def _sweep(self) -> SweepResult:
        result = SweepResult(started_at=datetime.now(timezone.utc))
        # SQLite calls run in a worker thread so a locked database never blocks the loop
        entries = await asyncio.to_thread(self._queue.claim_batch, self.batch_size)
        result.claimed = len(entries)

        if entries:
            logger.info(f"Processing {len(entries)} queue entries")

        for entry in entries:
            status = await self.process_entry(entry)
            if status == QueueStatus.COMPLETED:
                result.completed += 1
            elif status == QueueStatus.FAILED:
                result.failed += 1
            elif status == QueueStatus.PENDING:
                result.retrying += 1

        result.finished_at = datetime.now(timezone.utc)
        await asyncio.to_thread(self._queue.set_state, LAST_PROCESSED_KEY, result.finished_at.isoformat())
        return result

    async def process_entry(self, entry: QueueEntry) -> QueueStatus | None:
        """Format and submit one claimed entry, recording the outcome.

        Returns:
            The entry's new status, or None if it was no longer claimed
        """
        try:
            document = self._formatter.format(entry.content_type, entry.content_id)
            await self._client.submit_content(entry.content_type, document)
        except PayloadRejected as e:
            logger.error(
                f"Entry {entry.id} ({entry.content_type.value} {entry.content_id}) rejected: {e}"
            )
            updated = await asyncio.to_thread(self._queue.mark_failed, entry, str(e))
        except CheckStepError as e:
            updated = await self._record_failure(entry, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error processing entry {entry.id}")
            updated = await self._record_failure(entry, f"{type(e).__name__}: {e}")
        else:
            updated = await asyncio.to_thread(self._queue.mark_completed, entry)
            if updated:
                logger.info(f"Entry {entry.id} ({entry.content_type.value} {entry.content_id}) submitted")

        return updated.status if updated else None

    async def _record_failure(self, entry: QueueEntry, error: str) -> QueueEntry | None:
        updated = await asyncio.to_thread(self._queue.mark_failed_attempt, entry, error)
        if updated is None:
            return None

        if updated.status == QueueStatus.FAILED:
            logger.error(
                f"Entry {entry.id} ({entry.content_type.value} {entry.content_id}) failed "
                f"permanently after {updated.retries} attempts: {error}"
            )
        else:
            logger.warning(
                f"Entry {entry.id} ({entry.content_type.value} {entry.content_id}) failed, "
                f"will retry (attempt {updated.retries}): {error}"
            )
        return updated
