"""Tell content owners about moderation outcomes."""

import logging
from urllib.parse import urlencode

from ..config import NotificationLevel, Settings
from ..models.decision import DEFAULT_REASON, DecisionAction, DecisionHandled, IncidentClosed
from .host import ContentHost

logger = logging.getLogger(__name__)

DECISION_SUBJECT = "Content Moderation Notice"
INCIDENT_SUBJECT = "Moderation Update"

MESSAGES = {
    DecisionAction.DELETE: "Your content has been removed due to: {reason}",
    DecisionAction.HIDE: "Your content has been hidden pending review due to: {reason}",
    DecisionAction.WARN: "A content warning has been added to your post: {reason}",
    DecisionAction.BAN_USER: "Your account has been suspended due to multiple violations.",
    DecisionAction.NO_ACTION: "Your content (ID: {content_id}) has been reviewed. No action was needed.",
    DecisionAction.UPHELD: (
        "Your appeal for content {content_id} has been reviewed and the original "
        "moderation decision has been upheld. Reason: {reason}"
    ),
    DecisionAction.OVERTURN: (
        "Your appeal for content {content_id} has been reviewed and accepted. "
        "Your content has been restored."
    ),
}

# Actions a user may appeal
APPEALABLE_ACTIONS = {
    DecisionAction.DELETE,
    DecisionAction.HIDE,
    DecisionAction.WARN,
    DecisionAction.BAN_USER,
}

LEVEL_ACTIONS = {
    NotificationLevel.ALL: set(DecisionAction),
    NotificationLevel.MODERATE: set(DecisionAction) - {DecisionAction.NO_ACTION},
    NotificationLevel.SEVERE: {DecisionAction.DELETE, DecisionAction.BAN_USER},
}


class Notifier:
    """Event listener that sends owner notifications through the host."""

    def __init__(self, host: ContentHost, settings: Settings):
        self._host = host
        self._settings = settings

    def on_decision_handled(self, event: DecisionHandled) -> None:
        if event.author_id is None:
            logger.info(f"No author known for content {event.content_id}; notification skipped")
            return
        if event.action not in LEVEL_ACTIONS[self._settings.notification_level]:
            logger.debug(f"Notification level filters out '{event.action.value}'")
            return

        message = build_decision_message(event)
        appeal_link = self.appeal_link(event)
        if appeal_link and event.action in APPEALABLE_ACTIONS:
            message += (
                "\n\nIf you believe this decision was made in error, "
                f"you can appeal here: {appeal_link}"
            )

        self._host.send_notification(event.author_id, DECISION_SUBJECT, message)
        logger.info(f"Notified user {event.author_id} about '{event.action.value}' on {event.content_id}")

    def on_incident_closed(self, event: IncidentClosed) -> None:
        message = (
            f"The moderation review for your content (ID: {event.content_id}) "
            f"has been completed. Resolution: {event.resolution}"
        )
        self._host.send_notification(event.author_id, INCIDENT_SUBJECT, message)
        logger.info(f"Resolution of incident {event.incident_id} sent to user {event.author_id}")

    def appeal_link(self, event: DecisionHandled) -> str:
        """Appeal URL for a decision, or an empty string if appeals are off."""
        if not self._settings.appeal_url:
            return ""
        params = {"content_id": event.content_id}
        if event.decision_id:
            params = {"decision_id": event.decision_id, **params}
        separator = "&" if "?" in self._settings.appeal_url else "?"
        return f"{self._settings.appeal_url}{separator}{urlencode(params)}"


def build_decision_message(event: DecisionHandled) -> str:
    return MESSAGES[event.action].format(
        reason=event.reason or DEFAULT_REASON,
        content_id=event.content_id,
    )
