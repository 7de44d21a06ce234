"""FastAPI application entrypoint with Lambda handler."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from .config import settings
from .relay import get_relay
from .routes import events, health, queue, webhook
from .workers.sweeper import run_sweeper

# Configure logging
logging.basicConfig(
    level=settings.logging_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    logger.info(f"Starting {settings.service_name} in {settings.environment} mode")

    relay = app.dependency_overrides.get(get_relay, get_relay)()
    relay.queue.recover_stale_claims()

    stop_event = asyncio.Event()
    sweeper = None
    if relay.settings.scheduler_enabled:
        sweeper = asyncio.create_task(
            run_sweeper(relay.processor, relay.settings.sweep_interval_seconds, stop_event)
        )

    yield

    stop_event.set()
    if sweeper is not None:
        await sweeper
    logger.info(f"Shutting down {settings.service_name}")


app = FastAPI(
    title="CheckStep Relay",
    description="Moderation relay between a content host and the CheckStep API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(webhook.router)
app.include_router(queue.router)
app.include_router(events.router)

# Lambda handler via Mangum
handler = Mangum(app, lifespan="off")
