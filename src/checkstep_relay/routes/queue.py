"""Queue inspection and sweep endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..models.content import ContentType, HostId
from ..models.queue import QueueEntry, QueueStats, QueueStatus, SweepResult
from ..relay import Relay, get_relay
from ..services.queue_store import LAST_PROCESSED_KEY

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["queue"])


class EnqueueRequest(BaseModel):
    """Request to queue content for review."""

    content_type: ContentType
    content_id: HostId = Field(..., min_length=1)


class QueueListResponse(BaseModel):
    """Page of queue entries."""

    entries: list[QueueEntry]
    total: int
    limit: int
    offset: int


@router.post("", response_model=QueueEntry, status_code=201)
def enqueue(request: EnqueueRequest, relay: Relay = Depends(get_relay)) -> QueueEntry:
    """Queue a piece of content for submission to CheckStep."""
    return relay.queue.enqueue(request.content_type, request.content_id)


@router.get("", response_model=QueueListResponse)
def list_entries(
    status: QueueStatus | None = None,
    limit: int = 50,
    offset: int = 0,
    relay: Relay = Depends(get_relay),
) -> QueueListResponse:
    """List queue entries, newest first.

    Args:
        status: Only return entries in this state
        limit: Maximum entries to return (1-500)
        offset: Number of entries to skip
    """
    if limit < 1 or limit > 500:
        raise HTTPException(status_code=400, detail="limit must be between 1 and 500")
    if offset < 0:
        raise HTTPException(status_code=400, detail="offset must not be negative")

    entries = relay.queue.list_entries(status=status, limit=limit, offset=offset)
    stats = relay.queue.get_stats()
    total = getattr(stats, status.value) if status else stats.total
    return QueueListResponse(entries=entries, total=total, limit=limit, offset=offset)


@router.get("/stats", response_model=QueueStats)
def get_stats(relay: Relay = Depends(get_relay)) -> QueueStats:
    """Return entry counts by status and the time of the last sweep."""
    return relay.queue.get_stats()


@router.get("/state")
def get_state(relay: Relay = Depends(get_relay)) -> dict[str, str | None]:
    """Return persisted relay state."""
    return {LAST_PROCESSED_KEY: relay.queue.get_state(LAST_PROCESSED_KEY)}


@router.get("/{entry_id}", response_model=QueueEntry)
def get_entry(entry_id: int, relay: Relay = Depends(get_relay)) -> QueueEntry:
    """Get a single queue entry."""
    entry = relay.queue.get_entry(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Queue entry not found: {entry_id}")
    return entry


@router.post("/sweep", response_model=SweepResult)
async def sweep(relay: Relay = Depends(get_relay)) -> SweepResult:
    """Run one sweep now. Returns skipped=true if a sweep is already running."""
    try:
        return await relay.processor.run_sweep()
    except Exception as e:
        logger.exception("Error running queue sweep")
        raise HTTPException(status_code=500, detail=f"Failed to run sweep: {e}")
