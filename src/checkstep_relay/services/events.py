"""In-process moderation event hooks."""

import logging
from collections.abc import Callable

from ..models.decision import DecisionHandled, IncidentClosed

logger = logging.getLogger(__name__)

DecisionListener = Callable[[DecisionHandled], None]
IncidentListener = Callable[[IncidentClosed], None]


class ModerationEvents:
    """Fan-out of decision-handled and incident-closed events.

    Listener errors are logged and do not propagate: by the time an event is
    emitted the host mutation has already happened.
    """

    def __init__(self) -> None:
        self._decision_listeners: list[DecisionListener] = []
        self._incident_listeners: list[IncidentListener] = []

    def on_decision_handled(self, listener: DecisionListener) -> None:
        self._decision_listeners.append(listener)

    def on_incident_closed(self, listener: IncidentListener) -> None:
        self._incident_listeners.append(listener)

    def emit_decision_handled(self, event: DecisionHandled) -> None:
        for listener in self._decision_listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Decision listener failed for content {event.content_id}")

    def emit_incident_closed(self, event: IncidentClosed) -> None:
        for listener in self._incident_listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Incident listener failed for {event.incident_id}")
