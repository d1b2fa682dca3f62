"""AI analysis tasks for applies."""

import asyncio
import logging

from celery import Task
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.config import settings
from core.errors import IntegrationFailure, NotFoundError
from core.integrations.scoring import ScoringClient
from api.services import analyses
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def retry_countdown(retries: int) -> int:
    """Exponential backoff: base, 2x base, 4x base, ..."""
    return settings.analysis_retry_backoff_seconds * (2 ** retries)


async def run_analysis(apply_id: int) -> dict:
    """
    Score one apply with a worker-local engine.

    Each task runs in a fresh event loop, so pooled connections from the
    API engine cannot be reused here.
    """
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_factory() as session:
            return await analyses.analyze_apply(session, apply_id, ScoringClient())
    finally:
        await engine.dispose()


@celery_app.task(
    name="workers.tasks.analyses.analyze_apply",
    bind=True,
    max_retries=settings.analysis_max_retries,
)
def analyze_apply(self: Task, apply_id: int) -> dict:
    """Run AI scoring for an apply and store the analysis.

    Transient scoring failures are retried with exponential backoff; once
    retries are exhausted, or for permanent failures, the failure is logged
    and reported in the result instead of raised.

    Args:
        apply_id: ID of the apply to score

    Returns:
        Dictionary with the task outcome
    """
    try:
        analysis = asyncio.run(run_analysis(apply_id))
    except NotFoundError:
        logger.warning(
            f"Apply {apply_id} no longer exists, skipping analysis",
            extra={"apply_id": apply_id},
        )
        return {"status": "skipped", "apply_id": apply_id}
    except IntegrationFailure as e:
        retries = self.request.retries
        if e.transient and retries < self.max_retries:
            logger.warning(
                f"Transient scoring failure for apply {apply_id} "
                f"(attempt {retries + 1}/{self.max_retries + 1}): {e.message}",
                extra={"apply_id": apply_id},
            )
            raise self.retry(exc=e, countdown=retry_countdown(retries))

        logger.error(
            f"Analysis failed for apply {apply_id}: {e.message}",
            extra={"apply_id": apply_id},
        )
        return {"status": "failed", "apply_id": apply_id, "error": e.message}

    return {
        "status": "success",
        "apply_id": apply_id,
        "analysis_id": analysis["id"],
        "score": analysis["score"],
    }
