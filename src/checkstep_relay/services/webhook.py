"""Authenticate and dispatch inbound CheckStep webhooks."""

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..config import Settings
from ..errors import BadRequest, Unauthorized
from ..models.decision import (
    Decision,
    DecisionAction,
    Incident,
    WebhookEventType,
    WebhookResponse,
)
from .checkstep_client import validate_signature
from .decision_handler import DecisionHandler

logger = logging.getLogger(__name__)

WebhookEvent = Decision | Incident


class WebhookDispatcher:
    """Signature check, payload parsing and routing for the decisions endpoint.

    The steps are separate so the route can authenticate and parse
    synchronously, then either apply the event inline or defer it.
    Nothing is parsed before the signature has been verified.
    """

    def __init__(self, settings: Settings, handler: DecisionHandler):
        self._settings = settings
        self._handler = handler

    @property
    def defer_decisions(self) -> bool:
        return self._settings.defer_decisions

    def authenticate(self, raw_body: bytes, signature: str | None) -> None:
        """Verify the signature header against the raw body.

        Raises:
            Unauthorized: missing_signature, missing_secret or invalid_signature
        """
        if not signature:
            logger.warning("Webhook rejected: missing signature")
            raise Unauthorized("missing_signature", "Missing webhook signature")
        if not self._settings.webhook_secret:
            logger.error("Webhook rejected: webhook secret not configured")
            raise Unauthorized("missing_secret", "Webhook secret not configured")
        if not validate_signature(raw_body, signature, self._settings.webhook_secret):
            logger.warning("Webhook rejected: invalid signature")
            raise Unauthorized("invalid_signature", "Invalid webhook signature")

    def parse(self, raw_body: bytes) -> WebhookEvent:
        """Parse an authenticated body into a Decision or Incident.

        Decisions are keyed by ``content_id``; ``decision_id`` is optional
        and only carried through to appeal links.
        """
        try:
            payload = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError) as e:
            raise BadRequest("invalid_json", f"Invalid JSON body: {e}") from e
        if not isinstance(payload, dict):
            raise BadRequest("invalid_json", "Webhook body must be a JSON object")

        event_type = payload.get("event_type")
        if not event_type:
            raise BadRequest("missing_event_type", "Missing event_type")

        if event_type == WebhookEventType.DECISION_TAKEN.value:
            return _parse_decision(payload)
        if event_type == WebhookEventType.INCIDENT_CLOSED.value:
            return _parse_incident(payload)

        raise BadRequest("unsupported_event_type", f"Unsupported event type: {event_type}")

    def apply(self, event: WebhookEvent) -> WebhookResponse:
        """Run the handler for a parsed event."""
        if isinstance(event, Decision):
            self._handler.handle_decision(event)
            return WebhookResponse(
                status="success",
                message=f"Moderation action '{event.action.value}' processed successfully",
                event_type=WebhookEventType.DECISION_TAKEN,
                content_id=event.content_id,
                action=event.action,
            )

        self._handler.handle_incident(event)
        return WebhookResponse(
            status="success",
            message="Incident closure processed successfully",
            event_type=WebhookEventType.INCIDENT_CLOSED,
            content_id=event.content_id,
        )

    def apply_deferred(self, event: WebhookEvent) -> None:
        """Background variant of ``apply``; errors can only be logged."""
        try:
            self.apply(event)
        except Exception:
            logger.exception(f"Deferred webhook event failed for content {event.content_id}")

    def dispatch(self, raw_body: bytes, signature: str | None) -> WebhookResponse:
        """Authenticate, parse and apply in one call."""
        self.authenticate(raw_body, signature)
        return self.apply(self.parse(raw_body))


def queued_response(event: WebhookEvent) -> WebhookResponse:
    if isinstance(event, Decision):
        return WebhookResponse(
            status="queued",
            message=f"Moderation action '{event.action.value}' queued",
            event_type=WebhookEventType.DECISION_TAKEN,
            content_id=event.content_id,
            action=event.action,
        )
    return WebhookResponse(
        status="queued",
        message="Incident closure queued",
        event_type=WebhookEventType.INCIDENT_CLOSED,
        content_id=event.content_id,
    )


def _parse_decision(payload: dict[str, Any]) -> Decision:
    action = payload.get("action")
    if not payload.get("content_id") or not action:
        raise BadRequest("missing_fields", "Missing required fields: content_id or action")
    if not isinstance(action, str) or action not in {a.value for a in DecisionAction}:
        raise BadRequest("unsupported_action", f"Unsupported action: {action}")
    try:
        return Decision.model_validate(payload)
    except ValidationError as e:
        raise BadRequest("invalid_payload", f"Invalid decision payload: {e.errors()[0]['msg']}") from e


def _parse_incident(payload: dict[str, Any]) -> Incident:
    if not payload.get("incident_id") or not payload.get("content_id"):
        raise BadRequest("missing_fields", "Missing required fields: incident_id or content_id")
    try:
        return Incident.model_validate(payload)
    except ValidationError as e:
        raise BadRequest("invalid_payload", f"Invalid incident payload: {e.errors()[0]['msg']}") from e
