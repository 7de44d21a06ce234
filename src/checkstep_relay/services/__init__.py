"""Business logic services."""

from .checkstep_client import CheckStepClient, compute_signature, validate_signature
from .decision_handler import DecisionHandler
from .events import ModerationEvents
from .formatter import ContentFormatter
from .host import ContentHost, InMemoryContentHost
from .ingestion import ContentEvent, HostEvent, IngestionService
from .notifier import Notifier
from .processor import QueueProcessor
from .queue_store import ModerationQueue
from .webhook import WebhookDispatcher

__all__ = [
    "CheckStepClient",
    "compute_signature",
    "validate_signature",
    "DecisionHandler",
    "ModerationEvents",
    "ContentFormatter",
    "ContentHost",
    "InMemoryContentHost",
    "ContentEvent",
    "HostEvent",
    "IngestionService",
    "Notifier",
    "QueueProcessor",
    "ModerationQueue",
    "WebhookDispatcher",
]
