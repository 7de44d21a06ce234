"""Shared fixtures: an isolated relay per test with a fake CheckStep API."""

import json
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from src.checkstep_relay.config import Settings
from src.checkstep_relay.main import app
from src.checkstep_relay.models.content import ContentRecord, ContentType, MediaItem, UserProfile
from src.checkstep_relay.relay import Relay, get_relay
from src.checkstep_relay.services.checkstep_client import SIGNATURE_HEADER, compute_signature
from src.checkstep_relay.services.host import InMemoryContentHost

WEBHOOK_SECRET = "test-webhook-secret"
API_URL = "https://checkstep.test/v1"


class FakeVendor:
    """Scripted stand-in for the CheckStep API.

    Responses queued with ``respond`` are returned in order; once the queue
    is empty every request gets a 200 acknowledgement.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Exception] = []
        self.transport = httpx.MockTransport(self._handle)

    def respond(self, status_code: int = 200, json_body: dict | None = None, text: str | None = None) -> None:
        if text is not None:
            self._responses.append(httpx.Response(status_code, text=text))
        else:
            self._responses.append(httpx.Response(status_code, json=json_body or {"status": "ok"}))

    def fail_with(self, error: Exception) -> None:
        self._responses.append(error)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(200, json={"status": "ok"})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def submitted(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.path.endswith("/content")]


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        api_key="test-api-key",
        api_url=API_URL,
        webhook_secret=WEBHOOK_SECRET,
        appeal_url="https://example.com/appeal",
        db_path=tmp_path / "queue.db",
    )


@pytest.fixture
def host() -> InMemoryContentHost:
    host = InMemoryContentHost()
    host.add_user(UserProfile(user_id="7", display_name="Alice", email="alice@example.com"))
    host.add_user(UserProfile(user_id="8", display_name="Bob", avatar_url="https://example.com/bob.png"))

    host.add_record(ContentRecord(content_type=ContentType.POST, id="42", author_id="7", title="Hello", body="First post"))
    host.add_record(ContentRecord(content_type=ContentType.POST, id="123", author_id="7", body="Reported post"))
    host.add_record(ContentRecord(content_type=ContentType.POST, id="124", author_id="8", body="Borderline post"))
    host.add_record(
        ContentRecord(
            content_type=ContentType.ACTIVITY,
            id="55",
            author_id="8",
            body="Status update",
            group_id="3",
            media=[MediaItem(id="9", url="https://example.com/cat.jpg")],
        )
    )
    host.add_record(
        ContentRecord(
            content_type=ContentType.IMAGE,
            id="77",
            author_id="7",
            title="Sunset",
            url="https://example.com/sunset.jpg",
            meta={"caption": "Evening at the beach"},
        )
    )
    return host


@pytest.fixture
def vendor() -> FakeVendor:
    return FakeVendor()


@pytest.fixture
def relay(test_settings: Settings, host: InMemoryContentHost, vendor: FakeVendor) -> Relay:
    return Relay(test_settings, host=host, transport=vendor.transport).init()


@pytest.fixture
def client(relay: Relay) -> Iterator[TestClient]:
    app.dependency_overrides[get_relay] = lambda: relay
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def signed_headers(body: bytes, secret: str = WEBHOOK_SECRET) -> dict[str, str]:
    return {
        SIGNATURE_HEADER: compute_signature(body, secret),
        "Content-Type": "application/json",
    }


@pytest.fixture
def sign_headers():
    """Return a helper that builds signed webhook headers for a body."""
    return signed_headers
