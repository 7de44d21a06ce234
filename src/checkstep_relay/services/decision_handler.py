"""Apply CheckStep moderation decisions to host content."""

import logging
from collections.abc import Callable

from ..errors import UnresolvableContent
from ..models.content import ContentRef
from ..models.decision import (
    DEFAULT_REASON,
    Decision,
    DecisionAction,
    DecisionHandled,
    Incident,
    IncidentClosed,
)
from .events import ModerationEvents
from .host import ContentHost

logger = logging.getLogger(__name__)


class DecisionHandler:
    """Dispatch table from decision action to host mutation.

    Mutating actions (delete, hide, warn, ban_user) require the content type
    to be resolvable; anything else is a hard failure reported to the caller.
    The decision-handled event is emitted only after the mutation succeeded.
    """

    def __init__(self, host: ContentHost, events: ModerationEvents):
        self._host = host
        self._events = events
        self._actions: dict[DecisionAction, Callable[[ContentRef | None, Decision, str | None], None]] = {
            DecisionAction.DELETE: self._delete,
            DecisionAction.HIDE: self._hide,
            DecisionAction.WARN: self._warn,
            DecisionAction.BAN_USER: self._ban_user,
            DecisionAction.NO_ACTION: self._notify_only,
            DecisionAction.UPHELD: self._notify_only,
            DecisionAction.OVERTURN: self._notify_only,
        }

    def handle_decision(self, decision: Decision) -> DecisionHandled:
        """Apply a decision and emit the decision-handled event.

        Raises:
            UnresolvableContent: The content type of a mutating decision
                cannot be determined
        """
        ref = self._resolve(decision.content_id, required=decision.action.mutates_content)
        # Look the author up before the content can disappear
        author_id = self._author_of(ref)

        self._actions[decision.action](ref, decision, author_id)

        event = DecisionHandled(
            content_id=decision.content_id,
            action=decision.action,
            reason=decision.reason,
            decision_id=decision.decision_id,
            content_type=ref.content_type if ref else None,
            author_id=author_id,
        )
        logger.info(f"Decision '{decision.action.value}' applied to content {decision.content_id}")
        self._events.emit_decision_handled(event)
        return event

    def handle_incident(self, incident: Incident) -> IncidentClosed:
        """Accept an incident closure; no content is changed.

        Raises:
            UnresolvableContent: The content or its author cannot be found,
                so the resolution cannot be delivered
        """
        ref = self._resolve(incident.content_id, required=True)
        author_id = self._author_of(ref)
        if author_id is None:
            logger.error(f"Could not find author for content ID: {incident.content_id}")
            raise UnresolvableContent(
                incident.content_id,
                f"Could not find author for content ID: {incident.content_id}",
            )

        event = IncidentClosed(
            incident_id=incident.incident_id,
            content_id=incident.content_id,
            resolution=incident.resolution,
            content_type=ref.content_type,
            author_id=author_id,
        )
        logger.info(f"Incident {incident.incident_id} closed for content {incident.content_id}")
        self._events.emit_incident_closed(event)
        return event

    def _resolve(self, content_id: str, required: bool) -> ContentRef | None:
        content_type = self._host.resolve_content_type(content_id)
        if content_type is None:
            if required:
                logger.error(f"Unable to determine content type for ID: {content_id}")
                raise UnresolvableContent(content_id)
            return None
        return ContentRef(content_type=content_type, content_id=content_id)

    def _author_of(self, ref: ContentRef | None) -> str | None:
        if ref is None:
            return None
        record = self._host.get_record(ref)
        return record.author_id if record else None

    def _delete(self, ref: ContentRef | None, decision: Decision, author_id: str | None) -> None:
        self._host.delete_content(ref)

    def _hide(self, ref: ContentRef | None, decision: Decision, author_id: str | None) -> None:
        self._host.hide_content(ref)

    def _warn(self, ref: ContentRef | None, decision: Decision, author_id: str | None) -> None:
        self._host.add_content_warning(ref, decision.reason or DEFAULT_REASON)

    def _ban_user(self, ref: ContentRef | None, decision: Decision, author_id: str | None) -> None:
        if author_id is None:
            raise UnresolvableContent(
                decision.content_id,
                f"Could not find author for content ID: {decision.content_id}",
            )
        self._host.suspend_user(author_id)

    def _notify_only(self, ref: ContentRef | None, decision: Decision, author_id: str | None) -> None:
        logger.info(f"No content change for '{decision.action.value}' on {decision.content_id}")
