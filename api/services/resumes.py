"""
Resume main-flag operations.

Setting a resume as main first clears the flag on every other resume of
the same owner, in the same transaction.
"""

from typing import Any, Dict
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization import require_use_resume
from core.errors import ConflictError
from database.models.resumes import Resume
from api.services.lookups import get_or_raise, get_skill_names
from api.services.projections import serialize_resume

logger = logging.getLogger(__name__)


async def _clear_main_flag(session: AsyncSession, user_id: int, *criteria) -> None:
    await session.execute(
        update(Resume)
        .where(Resume.user_id == user_id, *criteria)
        .values(is_main=False)
        .execution_options(synchronize_session="evaluate")
    )


async def set_main_resume(
    session: AsyncSession,
    resume_id: int,
    actor_id: int,
) -> Dict[str, Any]:
    """
    Make a resume the actor's main resume.

    Raises:
        NotFoundError: Resume does not exist
        AuthorizationError: Resume belongs to someone else
        ConflictError: A concurrent request flagged another resume main first
    """
    resume = await get_or_raise(session, Resume, resume_id, "Resume")
    require_use_resume(actor_id, resume)

    await _clear_main_flag(session, actor_id, Resume.id != resume_id)
    resume.is_main = True
    try:
        await session.commit()
    except IntegrityError:
        # Another resume was flagged main by a concurrent request
        await session.rollback()
        raise ConflictError(
            "Another resume was set as main at the same time",
            details={"resume_id": resume_id},
        )

    logger.info(f"Resume {resume_id} set as main for user {actor_id}")
    return serialize_resume(resume, await get_skill_names(session, resume.id))


async def unset_main_resume(session: AsyncSession, actor_id: int) -> None:
    """Clear the actor's main resume, if any."""
    await _clear_main_flag(session, actor_id)
    await session.commit()
    logger.info(f"Main resume cleared for user {actor_id}")
