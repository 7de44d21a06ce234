"""Inbound CheckStep webhook endpoint."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from ..errors import WebhookError
from ..models.decision import WebhookResponse
from ..relay import Relay, get_relay
from ..services.checkstep_client import SIGNATURE_HEADER
from ..services.webhook import queued_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkstep/v1", tags=["webhook"])


@router.post("/decisions", response_model=WebhookResponse)
async def receive_decision(
    request: Request,
    background_tasks: BackgroundTasks,
    relay: Relay = Depends(get_relay),
):
    """
    Receive a moderation decision or incident closure from CheckStep.

    The raw body must be signed with HMAC-SHA256 using the shared webhook
    secret, hex encoded in the X-CheckStep-Signature header.

    Supported event types:
    - decision_taken: apply a moderation action to the content
    - incident_closed: notify the content owner that review is complete
    """
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    dispatcher = relay.dispatcher

    try:
        dispatcher.authenticate(raw_body, signature)
        event = dispatcher.parse(raw_body)

        if dispatcher.defer_decisions:
            background_tasks.add_task(dispatcher.apply_deferred, event)
            return JSONResponse(
                status_code=202,
                content=queued_response(event).model_dump(mode="json", exclude_none=True),
            )

        result = dispatcher.apply(event)
        return JSONResponse(
            status_code=200,
            content=result.model_dump(mode="json", exclude_none=True),
        )
    except WebhookError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_response())
    except Exception as e:
        logger.exception("Error processing webhook")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "code": "processing_error", "message": str(e)},
        )
