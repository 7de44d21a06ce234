"""Error taxonomy shared by the queue, the API client and the webhook endpoint."""

from typing import Any


class CheckStepError(Exception):
    """Base class for relay errors."""


class ConfigurationError(CheckStepError):
    """A required setting (API key, webhook secret) is missing."""


class ContentNotFound(CheckStepError):
    """The referenced content no longer exists on the host."""

    def __init__(self, content_type: str, content_id: str, detail: str | None = None):
        self.content_type = content_type
        self.content_id = content_id
        message = f"Content not found: {content_type} {content_id}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class TransportFailure(CheckStepError):
    """Network error, timeout, non-200 status or unparseable response."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PayloadRejected(CheckStepError):
    """CheckStep answered 4xx with a structured error body."""

    def __init__(self, message: str, status_code: int, error: dict[str, Any]):
        self.status_code = status_code
        self.error = error
        super().__init__(message)


class WebhookError(CheckStepError):
    """Error returned synchronously to the webhook caller."""

    status_code = 400

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict[str, str]:
        return {"status": "error", "code": self.code, "message": self.message}


class Unauthorized(WebhookError):
    """Signature missing, invalid, or no secret configured."""

    status_code = 401


class BadRequest(WebhookError):
    """Malformed or unrecognized webhook payload."""

    status_code = 400


class UnresolvableContent(WebhookError):
    """Webhook content whose type or author cannot be determined."""

    status_code = 422

    def __init__(self, content_id: str, detail: str | None = None):
        self.content_id = content_id
        super().__init__(
            "unresolvable_content",
            detail or f"Unable to determine content type for ID: {content_id}",
        )
