"""
Analysis dispatchers.

Both hand an apply id to a detached runner and return immediately; neither
lets the scoring outcome reach the request that submitted the apply.

- CeleryAnalysisDispatcher: queues workers.tasks.analyses.analyze_apply
- InlineAnalysisDispatcher: runs the analysis as an asyncio task in this
  process (single-node deployments and local development)
"""

import asyncio
import functools
import logging
from typing import Callable, Optional

from kombu.exceptions import KombuError

from core.config import settings
from core.errors import IntegrationFailure, NotFoundError
from core.integrations.scoring import Scorer, ScoringClient
from database.engine import AsyncSessionLocal
from api.services.analyses import analyze_apply

logger = logging.getLogger(__name__)


class CeleryAnalysisDispatcher:
    """Queues scoring on the Celery "analysis" queue."""

    def __init__(self, task=None, queue: str = "analysis"):
        if task is None:
            from workers.tasks.analyses import analyze_apply as task
        self.task = task
        self.queue = queue

    async def request_analysis(self, apply_id: int) -> None:
        try:
            result = self.task.apply_async(args=[apply_id], queue=self.queue, retry=False)
        except (KombuError, OSError) as e:
            raise IntegrationFailure(
                f"Could not queue analysis: {type(e).__name__}",
                transient=True,
                details={"apply_id": apply_id},
            ) from e
        logger.info(
            f"Queued analysis for apply {apply_id} (task {result.id})",
            extra={"apply_id": apply_id, "task_id": result.id},
        )


class InlineAnalysisDispatcher:
    """
    Runs scoring as a background asyncio task with its own session.

    The done-callback is the failure channel: outcomes are logged there and
    never re-raised.
    """

    def __init__(
        self,
        session_factory: Callable = AsyncSessionLocal,
        scorer_factory: Callable[[], Scorer] = ScoringClient,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            session_factory: Creates the session the analysis runs in
            scorer_factory: Creates the scoring collaborator per run
            timeout: Seconds before a run is abandoned
        """
        self.session_factory = session_factory
        self.scorer_factory = scorer_factory
        self.timeout = timeout or settings.scoring_timeout_seconds * 2
        self._tasks: set[asyncio.Task] = set()

    async def request_analysis(self, apply_id: int) -> None:
        task = asyncio.create_task(self._run(apply_id), name=f"analysis-{apply_id}")
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_done, apply_id))

    async def _run(self, apply_id: int) -> dict:
        async with self.session_factory() as session:
            return await asyncio.wait_for(
                analyze_apply(session, apply_id, self.scorer_factory()),
                timeout=self.timeout,
            )

    def _on_done(self, apply_id: int, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            logger.warning(f"Analysis for apply {apply_id} was cancelled")
            return

        exc = task.exception()
        if exc is None:
            logger.info(f"Analysis for apply {apply_id} completed")
        elif isinstance(exc, NotFoundError):
            logger.warning(f"Apply {apply_id} no longer exists, analysis dropped")
        elif isinstance(exc, IntegrationFailure):
            logger.error(
                f"Analysis failed for apply {apply_id}: {exc.message}",
                extra={"apply_id": apply_id},
            )
        elif isinstance(exc, asyncio.TimeoutError):
            logger.error(
                f"Analysis for apply {apply_id} timed out after {self.timeout}s",
                extra={"apply_id": apply_id},
            )
        else:
            logger.error(
                f"Unexpected error analysing apply {apply_id}",
                exc_info=exc,
                extra={"apply_id": apply_id},
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight analysis; used on shutdown and in tests."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def build_dispatcher(backend: Optional[str] = None):
    """Dispatcher for the configured analysis backend."""
    backend = backend or settings.analysis_backend
    if backend == "inline":
        return InlineAnalysisDispatcher()
    return CeleryAnalysisDispatcher()
