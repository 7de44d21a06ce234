"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter, Depends

from ..relay import Relay, get_relay

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(relay: Relay = Depends(get_relay)) -> dict[str, Any]:
    """Return service health status with queue counts."""
    return {
        "status": "healthy",
        "service": relay.settings.service_name,
        "environment": relay.settings.environment,
        "queue": relay.queue.get_stats().model_dump(mode="json"),
    }
