"""
AI analysis of applies.

Scoring never runs inside the request that created the apply: the submit
path hands the apply id to an AnalysisDispatcher, which runs analyze_apply
later with its own session. Every run appends a new Analysis row; readers
take the newest.
"""

from typing import Any, Dict, Optional, Protocol
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import IntegrationFailure, NotFoundError
from core.integrations.scoring import Scorer
from database.models.applies import Analysis, Apply
from database.models.posts import Post
from database.models.resumes import Resume
from api.services.lookups import find_latest_analysis, get_or_raise, get_skill_names
from api.services.projections import serialize_analysis

logger = logging.getLogger(__name__)


class AnalysisDispatcher(Protocol):
    """Hands an apply id to whatever runs the analysis out of band."""

    async def request_analysis(self, apply_id: int) -> None:
        """
        Raises:
            IntegrationFailure: If the request could not be handed off
        """
        ...


async def build_scoring_input(session: AsyncSession, apply: Apply) -> str:
    """
    Text sent to the scorer for an apply.

    The attached resume (with its skills) when there is one, otherwise the
    free-text reason the applicant gave.
    """
    if apply.resume_id is not None:
        resume = await session.get(Resume, apply.resume_id)
        if resume is not None:
            parts = [resume.title, resume.content]
            if resume.personality:
                parts.append(f"Personality: {resume.personality}")
            skills = await get_skill_names(session, resume.id)
            if skills:
                parts.append(f"Skills: {', '.join(skills)}")
            return "\n\n".join(parts)
    return apply.reason or ""


async def analyze_apply(
    session: AsyncSession,
    apply_id: int,
    scorer: Scorer,
) -> Dict[str, Any]:
    """
    Score an apply and store the result as a new Analysis.

    Args:
        session: Session owned by the caller (never the request's session)
        apply_id: Apply to score
        scorer: Scoring collaborator

    Returns:
        The stored analysis

    Raises:
        NotFoundError: The apply was cancelled before scoring ran
        IntegrationFailure: The scorer failed or there was nothing to score
    """
    apply = await get_or_raise(session, Apply, apply_id, "Apply")
    post = await get_or_raise(session, Post, apply.post_id, "Post")

    content = await build_scoring_input(session, apply)
    if not content.strip():
        raise IntegrationFailure(
            "Apply has neither resume nor reason to score",
            details={"apply_id": apply_id},
        )

    post_context = post.scoring_context()

    # End the read transaction; no connection is held while the scorer runs
    await session.commit()

    result = await scorer.score(content, post_context)

    analysis = Analysis(
        apply_id=apply.id,
        score=result.score,
        result=result.rationale,
        summary=result.summary,
    )
    session.add(analysis)
    try:
        await session.commit()
    except IntegrityError:
        # Apply deleted while the scorer was running
        await session.rollback()
        raise NotFoundError("Apply", apply_id)

    logger.info(f"Stored analysis {analysis.id} for apply {apply_id} (score={result.score})")
    return serialize_analysis(analysis)


async def get_latest_analysis(
    session: AsyncSession,
    apply_id: int,
) -> Optional[Dict[str, Any]]:
    """
    Latest analysis of an apply, or None if it has not been scored yet.

    Raises:
        NotFoundError: If the apply does not exist
    """
    await get_or_raise(session, Apply, apply_id, "Apply")
    return serialize_analysis(await find_latest_analysis(session, apply_id))
