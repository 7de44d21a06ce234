"""Wiring for the relay's services.

Everything is built from one ``Settings`` so tests can assemble an isolated
relay (temp database, in-memory host, mock HTTP transport) and hand it to
the app through ``get_relay``.
"""

import logging
from functools import lru_cache

import httpx

from .config import Settings, settings
from .services.checkstep_client import CheckStepClient
from .services.decision_handler import DecisionHandler
from .services.events import ModerationEvents
from .services.formatter import ContentFormatter
from .services.host import ContentHost, InMemoryContentHost
from .services.ingestion import IngestionService
from .services.notifier import Notifier
from .services.processor import QueueProcessor
from .services.queue_store import ModerationQueue
from .services.webhook import WebhookDispatcher

logger = logging.getLogger(__name__)


class Relay:
    """Container holding one instance of every relay service."""

    def __init__(
        self,
        settings: Settings,
        host: ContentHost | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.host = host if host is not None else InMemoryContentHost()

        self.queue = ModerationQueue(
            settings.db_path,
            stale_claim_seconds=settings.stale_claim_seconds,
        )
        self.client = CheckStepClient(settings, transport=transport)
        self.formatter = ContentFormatter(self.host)

        self.events = ModerationEvents()
        self.notifier = Notifier(self.host, settings)
        self.events.on_decision_handled(self.notifier.on_decision_handled)
        self.events.on_incident_closed(self.notifier.on_incident_closed)

        self.handler = DecisionHandler(self.host, self.events)
        self.dispatcher = WebhookDispatcher(settings, self.handler)
        self.processor = QueueProcessor(
            self.queue,
            self.formatter,
            self.client,
            batch_size=settings.batch_size,
        )
        self.ingestion = IngestionService(self.queue, settings)

    def init(self) -> "Relay":
        """Create the queue schema. Safe to call repeatedly."""
        self.queue.init_db()
        return self


@lru_cache(maxsize=1)
def get_relay() -> Relay:
    """Get or create the process-wide Relay singleton."""
    logger.info(f"Initializing relay with queue at {settings.db_path}")
    host = InMemoryContentHost.load_json(settings.content_file) if settings.content_file else None
    return Relay(settings, host=host).init()
