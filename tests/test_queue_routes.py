"""Tests for queue endpoints."""

from fastapi.testclient import TestClient

from src.checkstep_relay.relay import Relay


def test_enqueue_returns_201(client: TestClient) -> None:
    """Test that content can be queued directly."""
    response = client.post("/queue", json={"content_type": "post", "content_id": 42})

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["content_id"] == "42"
    assert data["retries"] == 0


def test_enqueue_validates_content_type(client: TestClient) -> None:
    """Test that unknown content types are rejected."""
    response = client.post("/queue", json={"content_type": "comment", "content_id": 1})
    assert response.status_code == 422  # Validation error


def test_list_entries(client: TestClient, relay: Relay) -> None:
    """Test listing with status filter."""
    relay.queue.enqueue("post", "42")
    relay.queue.enqueue("post", "124")

    response = client.get("/queue", params={"status": "pending", "limit": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert len(data["entries"]) == 1
    assert data["entries"][0]["content_id"] == "124"


def test_list_entries_rejects_bad_limit(client: TestClient) -> None:
    """Test that the page size is bounded."""
    assert client.get("/queue", params={"limit": 0}).status_code == 400


def test_get_entry(client: TestClient, relay: Relay) -> None:
    """Test fetching one entry and a missing one."""
    entry = relay.queue.enqueue("post", "42")

    assert client.get(f"/queue/{entry.id}").json()["id"] == entry.id
    assert client.get("/queue/9999").status_code == 404


def test_sweep_endpoint(client: TestClient, relay: Relay, vendor) -> None:
    """Test that a sweep can be triggered over HTTP."""
    relay.queue.enqueue("post", "42")

    response = client.post("/queue/sweep")

    assert response.status_code == 200
    data = response.json()
    assert data["claimed"] == 1
    assert data["completed"] == 1
    assert data["skipped"] is False

    stats = client.get("/queue/stats").json()
    assert stats["completed"] == 1
    assert stats["last_processed_at"] is not None
    assert client.get("/queue/state").json()["last_queue_process"] is not None
