"""Periodic queue sweeper.

Runs inside the API process (lifespan task) or standalone via
``checkstep-relay worker``. Stops when ``stop_event`` is set.
"""

import asyncio
import logging

from ..services.processor import QueueProcessor

logger = logging.getLogger(__name__)


async def run_sweeper(
    processor: QueueProcessor,
    interval_seconds: float,
    stop_event: asyncio.Event,
) -> int:
    """Sweep the queue every ``interval_seconds`` until stopped.

    Returns:
        Number of sweeps run
    """
    logger.info(f"Starting queue sweeper (every {interval_seconds}s)")
    sweeps = 0

    while not stop_event.is_set():
        try:
            result = await processor.run_sweep()
            sweeps += 1
            if result.claimed:
                logger.info(
                    f"Sweep finished: {result.completed} completed, "
                    f"{result.retrying} retrying, {result.failed} failed"
                )
        except Exception:
            logger.exception("Error in sweep loop")

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass

    logger.info("Queue sweeper stopped")
    return sweeps
