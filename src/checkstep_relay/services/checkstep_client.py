"""Client for the CheckStep moderation API and webhook signatures."""

import hashlib
import hmac
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..errors import ConfigurationError, PayloadRejected, TransportFailure
from ..models.content import ContentType, PayloadDocument
from ..models.decision import Decision, ReportResult, SubmissionResult

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-CheckStep-Signature"

# 4xx statuses that signal a temporary condition rather than a bad payload
TRANSIENT_CLIENT_ERRORS = {408, 425, 429}


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the exact request body."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def validate_signature(raw_body: bytes, signature: str | None, secret: str | None) -> bool:
    """Check a webhook signature header against the shared secret.

    Must be given the raw body as received: re-serialized JSON will not
    produce the same digest.
    """
    if not signature or not secret:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(
        expected.encode("ascii"),
        signature.strip().lower().encode("utf-8"),
    )


class CheckStepClient:
    """Stateless wrapper around the CheckStep REST endpoints.

    Credentials are read from the injected settings on every call, so a
    rotated API key takes effect without rebuilding the client.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            settings: Application settings (api_key, api_url, request_timeout)
            transport: Optional httpx transport, used by tests
        """
        self._settings = settings
        self._transport = transport

    async def submit_content(
        self, content_type: ContentType, document: PayloadDocument
    ) -> SubmissionResult:
        """Submit a payload document for moderation.

        Raises:
            TransportFailure: Network error, timeout, non-200 or unparseable body
            PayloadRejected: CheckStep rejected the document with a 4xx error body
        """
        logger.debug(f"Sending {content_type.value} {document.id} to CheckStep")
        body = await self._request("POST", "content", json_body=document.model_dump(mode="json"))
        logger.info(f"Content {content_type.value} {document.id} sent to CheckStep")
        return SubmissionResult(content_id=document.id, content_type=content_type, body=body)

    async def get_decision(self, content_id: str) -> Decision:
        """Fetch the current moderation decision for a content id."""
        body = await self._request("GET", f"decisions/{content_id}")
        try:
            decision = Decision.model_validate({"content_id": content_id, **body})
        except ValidationError as e:
            raise TransportFailure(f"Unparseable decision for {content_id}: {e}", 200) from e
        logger.info(f"Decision {decision.decision_id} retrieved for {content_id}")
        return decision

    async def send_report(self, report_data: dict[str, Any]) -> ReportResult:
        """Forward a community report to CheckStep."""
        body = await self._request("POST", "reports", json_body=report_data)
        report_id = body.get("report_id")
        logger.info(f"Report {report_id} submitted for {report_data.get('content_id')}")
        return ReportResult(report_id=str(report_id) if report_id is not None else None, body=body)

    def _headers(self) -> dict[str, str]:
        if not self._settings.api_key:
            raise ConfigurationError("CheckStep API key not configured")
        return {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self._settings.api_url.rstrip('/')}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, self._url(path), headers=headers, json=json_body)
        except httpx.TimeoutException as e:
            logger.error(f"CheckStep request timed out: {method} {path}")
            raise TransportFailure(f"Request to {path} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"CheckStep request failed: {method} {path}: {e}")
            raise TransportFailure(f"Request to {path} failed: {e}") from e

        body = _parse_body(response)
        status_code = response.status_code

        if status_code == 200:
            if body is None:
                raise TransportFailure(f"Unparseable response body from {path}", status_code)
            return body

        if 400 <= status_code < 500 and status_code not in TRANSIENT_CLIENT_ERRORS and body is not None:
            logger.error(f"CheckStep rejected {method} {path} ({status_code}): {body}")
            raise PayloadRejected(
                f"CheckStep rejected request to {path} ({status_code}): {_error_message(body)}",
                status_code=status_code,
                error=body,
            )

        logger.warning(f"CheckStep returned {status_code} for {method} {path}")
        raise TransportFailure(f"CheckStep returned {status_code} for {path}", status_code)


def _parse_body(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a JSON object body, or None if the body is not one."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _error_message(body: dict[str, Any]) -> str:
    error = body.get("error")
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(body.get("message") or error or body)
