"""
Celery tasks for account suspensions.

Handles:
- Expiry sweep of temporary suspensions past their ends_at (every 15 minutes)

The access gate already expires suspensions lazily on read; the sweep keeps
users.is_suspended accurate for accounts that never come back.
"""

import logging
from datetime import datetime, timezone

from trust_engine.core.celery_app import celery_app
from trust_engine.services.suspension_service import SuspensionService

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def expire_suspensions(self) -> dict:
    """
    Deactivate every active suspension whose ends_at has passed.

    Returns:
        Dict with count of expired suspensions
    """
    logger.info("Starting suspension expiry sweep")

    try:
        expired_count = SuspensionService().expire_due(datetime.now(timezone.utc))
        logger.info("Expired %d suspensions", expired_count)
        return {"expired_count": expired_count}

    except Exception as e:
        logger.error("Suspension expiry sweep failed: %s", e)
        raise self.retry(exc=e)
