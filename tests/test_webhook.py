"""Tests for the CheckStep decisions webhook endpoint."""

import json

import httpx
from fastapi.testclient import TestClient

from src.checkstep_relay.models.content import ContentRecord, ContentRef, ContentType
from src.checkstep_relay.relay import Relay

WEBHOOK_PATH = "/checkstep/v1/decisions"


def _body(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


def _post(client: TestClient, payload: dict, sign_headers) -> httpx.Response:
    body = _body(payload)
    return client.post(WEBHOOK_PATH, content=body, headers=sign_headers(body))


def _ref(content_type: ContentType, content_id: str) -> ContentRef:
    return ContentRef(content_type=content_type, content_id=content_id)


def test_missing_signature_is_rejected(client: TestClient, relay: Relay) -> None:
    """Test that an unsigned delete changes nothing."""
    body = _body({"event_type": "decision_taken", "content_id": 123, "action": "delete"})

    response = client.post(WEBHOOK_PATH, content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 401
    assert response.json() == {
        "status": "error",
        "code": "missing_signature",
        "message": "Missing webhook signature",
    }
    assert relay.host.get_record(_ref(ContentType.POST, "123")) is not None


def test_invalid_signature_is_rejected(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that a body signed with the wrong secret is refused."""
    body = _body({"event_type": "decision_taken", "content_id": 123, "action": "delete"})

    response = client.post(WEBHOOK_PATH, content=body, headers=sign_headers(body, "wrong-secret"))

    assert response.status_code == 401
    assert response.json()["code"] == "invalid_signature"
    assert relay.host.get_record(_ref(ContentType.POST, "123")) is not None


def test_tampered_body_is_rejected(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that the signature covers the exact raw body."""
    signed = _body({"event_type": "decision_taken", "content_id": 123, "action": "no_action"})
    tampered = _body({"event_type": "decision_taken", "content_id": 123, "action": "delete"})

    response = client.post(WEBHOOK_PATH, content=tampered, headers=sign_headers(signed))

    assert response.status_code == 401
    assert relay.host.get_record(_ref(ContentType.POST, "123")) is not None


def test_missing_secret_is_rejected(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that webhooks are refused when no secret is configured."""
    relay.settings.webhook_secret = ""
    body = _body({"event_type": "decision_taken", "content_id": 123, "action": "delete"})

    response = client.post(WEBHOOK_PATH, content=body, headers=sign_headers(body))

    assert response.status_code == 401
    assert response.json()["code"] == "missing_secret"


def test_hide_decision(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that a hide decision hides the content and emits one event."""
    handled = []
    relay.events.on_decision_handled(handled.append)

    response = _post(
        client,
        {"event_type": "decision_taken", "content_id": 124, "action": "hide", "reason": "Spam"},
        sign_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert data["content_id"] == "124"
    assert data["action"] == "hide"
    assert relay.host.get_record(_ref(ContentType.POST, "124")).status == "private"
    assert len(handled) == 1
    assert handled[0].author_id == "8"


def test_delete_decision_notifies_author(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that a delete removes the content and still notifies its author."""
    response = _post(
        client,
        {
            "event_type": "decision_taken",
            "content_id": "123",
            "action": "delete",
            "reason": "Hate speech",
            "decision_id": "d-1",
        },
        sign_headers,
    )

    assert response.status_code == 200
    assert relay.host.get_record(_ref(ContentType.POST, "123")) is None
    assert len(relay.host.notifications) == 1
    notification = relay.host.notifications[0]
    assert notification.user_id == "7"
    assert "Hate speech" in notification.message
    assert "decision_id=d-1" in notification.message


def test_decision_without_decision_id(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that decision_id is optional and content_id drives the action."""
    response = _post(
        client,
        {"event_type": "decision_taken", "content_id": 42, "action": "warn", "reason": "Graphic"},
        sign_headers,
    )

    assert response.status_code == 200
    record = relay.host.get_record(_ref(ContentType.POST, "42"))
    assert record.terms["content-warning"] == ["Graphic"]
    message = relay.host.notifications[0].message
    assert "content_id=42" in message
    assert "decision_id" not in message


def test_ban_user_suspends_author(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that ban_user suspends the author of the content."""
    response = _post(
        client,
        {"event_type": "decision_taken", "content_id": 55, "action": "ban_user"},
        sign_headers,
    )

    assert response.status_code == 200
    assert relay.host.suspended_users == {"8"}


def test_incident_closed_notifies_owner(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that an incident closure sends exactly one notification."""
    response = _post(
        client,
        {
            "event_type": "incident_closed",
            "incident_id": "inc_123",
            "content_id": 123,
            "resolution": "No violation found",
        },
        sign_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    assert len(relay.host.notifications) == 1
    notification = relay.host.notifications[0]
    assert notification.user_id == "7"
    assert notification.subject == "Moderation Update"
    assert "No violation found" in notification.message
    assert relay.host.get_record(_ref(ContentType.POST, "123")).status == "publish"


def test_unresolvable_content(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that mutating an unknown content id is a 422."""
    response = _post(
        client,
        {"event_type": "decision_taken", "content_id": 999, "action": "delete"},
        sign_headers,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "unresolvable_content"


def test_invalid_json(client: TestClient, sign_headers) -> None:
    """Test that a signed non-JSON body is a 400."""
    body = b"not json"
    response = client.post(WEBHOOK_PATH, content=body, headers=sign_headers(body))

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_json"


def test_missing_event_type(client: TestClient, sign_headers) -> None:
    """Test that the event type is required."""
    response = _post(client, {"content_id": 42, "action": "delete"}, sign_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "missing_event_type"


def test_unsupported_event_type(client: TestClient, sign_headers) -> None:
    """Test that unknown event types are refused."""
    response = _post(client, {"event_type": "content_flagged", "content_id": 42}, sign_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "unsupported_event_type"


def test_unsupported_action(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that unknown actions are refused without side effects."""
    response = _post(
        client,
        {"event_type": "decision_taken", "content_id": 42, "action": "shadowban"},
        sign_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "unsupported_action"
    assert relay.host.notifications == []


def test_missing_fields(client: TestClient, sign_headers) -> None:
    """Test that decisions need content_id and action."""
    response = _post(client, {"event_type": "decision_taken", "action": "hide"}, sign_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "missing_fields"


def test_deferred_decision_returns_202(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that deferred decisions are acknowledged then applied."""
    relay.settings.defer_decisions = True

    response = _post(
        client,
        {"event_type": "decision_taken", "content_id": 124, "action": "hide"},
        sign_headers,
    )

    assert response.status_code == 202
    assert response.json()["status"] == "queued"
    # TestClient runs background tasks before returning
    assert relay.host.get_record(_ref(ContentType.POST, "124")).status == "private"


def test_deferred_request_still_authenticated(client: TestClient, relay: Relay) -> None:
    """Test that deferral never skips the signature check."""
    relay.settings.defer_decisions = True
    body = _body({"event_type": "decision_taken", "content_id": 124, "action": "hide"})

    response = client.post(WEBHOOK_PATH, content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 401
    assert relay.host.get_record(_ref(ContentType.POST, "124")).status == "publish"


def test_incident_without_author_fails(client: TestClient, relay: Relay, sign_headers) -> None:
    """Test that an incident whose author is unknown is reported, not acknowledged."""
    relay.host.add_record(ContentRecord(content_type=ContentType.POST, id="900", body="Orphaned post"))

    response = _post(
        client,
        {
            "event_type": "incident_closed",
            "incident_id": "inc_900",
            "content_id": 900,
            "resolution": "Removed",
        },
        sign_headers,
    )

    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "unresolvable_content"
    assert "Could not find author for content ID: 900" in data["message"]
    assert relay.host.notifications == []
