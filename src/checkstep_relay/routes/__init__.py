"""API route modules."""

from . import events, health, queue, webhook

__all__ = ["health", "webhook", "queue", "events"]
