"""
Document Background Jobs

Hourly sweep of abandoned staging buffers (applicants who staged files
but never completed payment).
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core import redis as redis_module
from app.core.scheduler import register_job
from app.modules.documents.staging import sweep_stale_buffers

logger = logging.getLogger(__name__)

JOB_ID_SWEEP_STAGING = "documents_sweep_stale_staging"


async def sweep_stale_staging_buffers() -> dict[str, Any]:
    """
    Discard staging buffers older than the staleness window.

    Returns:
        Summary with executed_at and the number discarded; ``skipped`` is
        set when Redis is not connected
    """
    executed_at = datetime.now(UTC)
    client = redis_module.redis_client

    if client is None:
        logger.warning("Redis not connected, skipping staging sweep")
        return {"executed_at": executed_at.isoformat(), "discarded": 0, "skipped": True}

    discarded = await sweep_stale_buffers(client)
    logger.info(f"Staging sweep completed. Discarded: {discarded}")
    return {"executed_at": executed_at.isoformat(), "discarded": discarded, "skipped": False}


def register_document_jobs() -> None:
    register_job(
        job_id=JOB_ID_SWEEP_STAGING,
        func=sweep_stale_staging_buffers,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_SWEEP_STAGING} (interval: 1 hour)")
