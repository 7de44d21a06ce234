"""Tests for owner notifications."""

import pytest

from src.checkstep_relay.config import NotificationLevel, Settings
from src.checkstep_relay.models.content import ContentType
from src.checkstep_relay.models.decision import DecisionAction, DecisionHandled, IncidentClosed
from src.checkstep_relay.services.host import InMemoryContentHost
from src.checkstep_relay.services.notifier import DECISION_SUBJECT, Notifier


def _handled(action: DecisionAction, **kwargs) -> DecisionHandled:
    defaults = {"content_id": "42", "content_type": ContentType.POST, "author_id": "7"}
    return DecisionHandled(action=action, **{**defaults, **kwargs})


@pytest.fixture
def notifier(host: InMemoryContentHost, test_settings: Settings) -> Notifier:
    return Notifier(host, test_settings)


def test_delete_notification_with_appeal_link(notifier: Notifier, host: InMemoryContentHost) -> None:
    """Test that removals include the reason and an appeal link."""
    notifier.on_decision_handled(_handled(DecisionAction.DELETE, reason="Spam", decision_id="d-9"))

    assert len(host.notifications) == 1
    notification = host.notifications[0]
    assert notification.user_id == "7"
    assert notification.subject == DECISION_SUBJECT
    assert notification.message.startswith("Your content has been removed due to: Spam")
    assert "https://example.com/appeal?decision_id=d-9&content_id=42" in notification.message


def test_default_reason(notifier: Notifier, host: InMemoryContentHost) -> None:
    """Test that an empty reason falls back to the guidelines text."""
    notifier.on_decision_handled(_handled(DecisionAction.HIDE))

    assert "a violation of our community guidelines" in host.notifications[0].message


def test_appeal_outcomes_have_no_appeal_link(notifier: Notifier, host: InMemoryContentHost) -> None:
    """Test that upheld and overturn messages are not appealable."""
    notifier.on_decision_handled(_handled(DecisionAction.OVERTURN))

    message = host.notifications[0].message
    assert "has been restored" in message
    assert "appeal here" not in message


def test_no_appeal_link_without_url(host: InMemoryContentHost, test_settings: Settings) -> None:
    """Test that appeal links are omitted when no appeal URL is set."""
    notifier = Notifier(host, test_settings.model_copy(update={"appeal_url": ""}))

    notifier.on_decision_handled(_handled(DecisionAction.WARN, reason="Gore"))

    assert "appeal" not in host.notifications[0].message


def test_appeal_url_with_existing_query(host: InMemoryContentHost, test_settings: Settings) -> None:
    """Test that the appeal parameters extend an existing query string."""
    notifier = Notifier(host, test_settings.model_copy(update={"appeal_url": "https://example.com/?page=appeal"}))

    link = notifier.appeal_link(_handled(DecisionAction.DELETE))

    assert link == "https://example.com/?page=appeal&content_id=42"


def test_skipped_without_author(notifier: Notifier, host: InMemoryContentHost) -> None:
    """Test that decisions on authorless content notify nobody."""
    notifier.on_decision_handled(_handled(DecisionAction.DELETE, author_id=None))

    assert host.notifications == []


@pytest.mark.parametrize(
    "level,action,expected",
    [
        (NotificationLevel.ALL, DecisionAction.NO_ACTION, True),
        (NotificationLevel.MODERATE, DecisionAction.NO_ACTION, False),
        (NotificationLevel.MODERATE, DecisionAction.WARN, True),
        (NotificationLevel.SEVERE, DecisionAction.HIDE, False),
        (NotificationLevel.SEVERE, DecisionAction.DELETE, True),
        (NotificationLevel.SEVERE, DecisionAction.BAN_USER, True),
    ],
)
def test_notification_level(
    host: InMemoryContentHost,
    test_settings: Settings,
    level: NotificationLevel,
    action: DecisionAction,
    expected: bool,
) -> None:
    """Test that the notification level filters actions."""
    notifier = Notifier(host, test_settings.model_copy(update={"notification_level": level}))

    notifier.on_decision_handled(_handled(action))

    assert bool(host.notifications) is expected


def test_incident_closed_message(host: InMemoryContentHost, test_settings: Settings) -> None:
    """Test that incident resolutions are sent at every level."""
    notifier = Notifier(host, test_settings.model_copy(update={"notification_level": NotificationLevel.SEVERE}))

    notifier.on_incident_closed(
        IncidentClosed(
            incident_id="inc_123",
            content_id="123",
            resolution="Content restored",
            content_type=ContentType.POST,
            author_id="7",
        )
    )

    assert host.notifications[0].message == (
        "The moderation review for your content (ID: 123) has been completed. Resolution: Content restored"
    )
