"""Host content event ingestion endpoint."""

from fastapi import APIRouter, Depends

from ..relay import Relay, get_relay
from ..services.ingestion import ContentEvent, IngestionResult

router = APIRouter(tags=["events"])


@router.post("/events", response_model=IngestionResult)
def receive_event(event: ContentEvent, relay: Relay = Depends(get_relay)) -> IngestionResult:
    """
    Receive a content lifecycle event from the host site.

    Published posts, blogs, activity updates, forum replies, discussions,
    newly activated profiles and media uploads are queued for review.
    Revisions, autosaves and unpublished posts are ignored.
    """
    return relay.ingestion.handle_event(event)
