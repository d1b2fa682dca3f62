"""
Apply lifecycle service functions.

Submitted --(author selects)--> Selected --(author deselects)--> Submitted
Submitted --(applicant cancels)--> deleted

A selected apply cannot be cancelled; only the post author's toggle moves
it out of Selected.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization import (
    require_cancel_apply,
    require_toggle_selection,
    require_use_resume,
    require_view_applicant_details,
)
from core.errors import ConflictError, IntegrationFailure, NotFoundError
from database.models.applies import Apply
from database.models.posts import Post
from database.models.resumes import Resume
from database.models.users import Profile, User
from api.services.analyses import AnalysisDispatcher
from api.services.lookups import (
    find_latest_analyses,
    find_latest_analysis,
    get_or_raise,
    get_profile,
    get_profiles,
    get_skill_names,
    get_skill_names_for_resumes,
)
from api.services.projections import (
    applicant_projection,
    serialize_analysis,
    serialize_apply,
    serialize_member,
    serialize_resume,
)

logger = logging.getLogger(__name__)


async def _find_apply_id(session: AsyncSession, user_id: int, post_id: int) -> Optional[int]:
    return await session.scalar(
        select(Apply.id).where(Apply.user_id == user_id, Apply.post_id == post_id)
    )


async def _request_analysis(dispatcher: Optional[AnalysisDispatcher], apply_id: int) -> bool:
    """Hand off scoring; a failed hand-off is logged and never reaches the caller."""
    if dispatcher is None:
        return False
    try:
        await dispatcher.request_analysis(apply_id)
    except IntegrationFailure as e:
        logger.error(
            f"Could not request analysis for apply {apply_id}: {e.message}",
            extra={"apply_id": apply_id},
        )
        return False
    return True


async def submit_apply(
    session: AsyncSession,
    applicant_id: int,
    post_id: int,
    resume_id: Optional[int],
    reason: Optional[str],
    dispatcher: Optional[AnalysisDispatcher] = None,
) -> Dict[str, Any]:
    """
    Apply to a post.

    Args:
        session: Database session
        applicant_id: The applying user
        post_id: Post applied to
        resume_id: Optional resume, which must belong to the applicant
        reason: Free-text motivation
        dispatcher: Receives the new apply id once it is committed

    Returns:
        The created apply

    Raises:
        NotFoundError: Post, applicant or resume does not exist
        AuthorizationError: Resume belongs to someone else
        ConflictError: Already applied, or the post is closed
    """
    post = await get_or_raise(session, Post, post_id, "Post")
    await get_or_raise(session, User, applicant_id, "User")

    if resume_id is not None:
        resume = await get_or_raise(session, Resume, resume_id, "Resume")
        require_use_resume(applicant_id, resume)

    existing_id = await _find_apply_id(session, applicant_id, post_id)
    if existing_id is not None:
        raise ConflictError(
            "Already applied to this post",
            details={"post_id": post_id, "apply_id": existing_id},
        )

    if not post.is_open():
        raise ConflictError("Post is closed for applies", details={"post_id": post_id})

    apply = Apply(
        post_id=post_id,
        user_id=applicant_id,
        resume_id=resume_id,
        reason=reason,
        is_selected=False,
    )
    session.add(apply)
    try:
        await session.commit()
    except IntegrityError:
        # Lost the race against a concurrent submission
        await session.rollback()
        raise ConflictError(
            "Already applied to this post",
            details={"post_id": post_id},
        )

    logger.info(f"User {applicant_id} applied to post {post_id} (apply {apply.id})")

    await _request_analysis(dispatcher, apply.id)
    return serialize_apply(apply)


async def cancel_apply(session: AsyncSession, apply_id: int, actor_id: int) -> None:
    """
    Withdraw an apply that has not been selected.

    The delete itself is conditional on is_selected being false, so a
    selection committed after the guard ran still wins.

    Raises:
        NotFoundError: Apply does not exist
        AuthorizationError: Actor is not the applicant
        ConflictError: Apply is (or just became) selected
    """
    apply = await get_or_raise(session, Apply, apply_id, "Apply")
    require_cancel_apply(actor_id, apply)

    result = await session.execute(
        delete(Apply)
        .where(
            Apply.id == apply_id,
            Apply.user_id == actor_id,
            Apply.is_selected.is_(False),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise ConflictError(
            "Apply is already selected and can no longer be cancelled",
            details={"apply_id": apply_id},
        )

    session.expunge(apply)
    await session.commit()
    logger.info(f"User {actor_id} cancelled apply {apply_id}")


async def toggle_selection(
    session: AsyncSession,
    apply_id: int,
    actor_id: int,
    is_selected: bool,
) -> Dict[str, Any]:
    """
    Set the selection flag of an apply. Setting the current value again succeeds.

    Raises:
        NotFoundError: Apply or its post does not exist, or the apply was
            cancelled after it was loaded
        AuthorizationError: Actor is not the post author
    """
    apply = await get_or_raise(session, Apply, apply_id, "Apply")
    post = await get_or_raise(session, Post, apply.post_id, "Post")
    require_toggle_selection(actor_id, apply, post)

    if apply.is_selected != is_selected:
        result = await session.execute(
            update(Apply)
            .where(Apply.id == apply_id)
            .values(is_selected=is_selected)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            await session.rollback()
            raise NotFoundError("Apply", apply_id)
        await session.commit()
        logger.info(
            f"Apply {apply_id} {'selected' if is_selected else 'deselected'} by user {actor_id}"
        )

    return serialize_apply(apply)


async def get_apply_detail(
    session: AsyncSession,
    apply_id: int,
    actor_id: int,
) -> Dict[str, Any]:
    """
    Apply as seen by the post author: resume, skills and latest analysis.

    The analysis is None until scoring has completed at least once.

    Raises:
        NotFoundError: Apply does not exist
        AuthorizationError: Actor is not the post author
    """
    apply = await get_or_raise(session, Apply, apply_id, "Apply")
    post = await get_or_raise(session, Post, apply.post_id, "Post")
    require_view_applicant_details(actor_id, post)

    user = await get_or_raise(session, User, apply.user_id, "User")
    profile = await get_profile(session, user.id)

    resume = None
    skills: List[str] = []
    if apply.resume_id is not None:
        resume = await session.get(Resume, apply.resume_id)
        if resume is not None:
            skills = await get_skill_names(session, resume.id)

    analysis = await find_latest_analysis(session, apply.id)

    return {
        **serialize_apply(apply),
        "applicant": serialize_member(user.id, profile),
        "resume": serialize_resume(resume, skills),
        "analysis": serialize_analysis(analysis),
    }


async def list_applies_for_post(
    session: AsyncSession,
    post_id: int,
    actor_id: int,
) -> List[Dict[str, Any]]:
    """
    Every applicant of a post, oldest first, each with the latest analysis.

    Raises:
        NotFoundError: Post does not exist
        AuthorizationError: Actor is not the post author
    """
    post = await get_or_raise(session, Post, post_id, "Post")
    require_view_applicant_details(actor_id, post)

    result = await session.execute(
        select(Apply, User, Resume)
        .join(User, User.id == Apply.user_id)
        .outerjoin(Resume, Resume.id == Apply.resume_id)
        .where(Apply.post_id == post_id)
        .order_by(Apply.created_at, Apply.id)
    )
    rows = result.all()

    applies = [row[0] for row in rows]
    profiles = await get_profiles(session, (apply.user_id for apply in applies))
    skills = await get_skill_names_for_resumes(session, (apply.resume_id for apply in applies))
    analyses = await find_latest_analyses(session, (apply.id for apply in applies))

    return [
        applicant_projection(
            apply,
            user,
            profiles.get(user.id),
            resume,
            skills.get(resume.id, []) if resume else [],
            analyses.get(apply.id),
        )
        for apply, user, resume in rows
    ]


async def list_selected_members(session: AsyncSession, post_id: int) -> List[Dict[str, Any]]:
    """
    Selected applicants of a post with their public profile fields.

    Raises:
        NotFoundError: Post does not exist
    """
    await get_or_raise(session, Post, post_id, "Post")

    result = await session.execute(
        select(Apply.id, Apply.user_id, Profile)
        .outerjoin(Profile, Profile.user_id == Apply.user_id)
        .where(Apply.post_id == post_id, Apply.is_selected.is_(True))
        .order_by(Apply.created_at, Apply.id)
    )
    return [
        {**serialize_member(user_id, profile), "apply_id": apply_id}
        for apply_id, user_id, profile in result.all()
    ]


async def list_my_applies(
    session: AsyncSession,
    actor_id: int,
    selected_only: bool = False,
) -> List[Dict[str, Any]]:
    """The actor's own applies, newest first, with a summary of each post."""
    query = (
        select(Apply, Post)
        .join(Post, Post.id == Apply.post_id)
        .where(Apply.user_id == actor_id)
    )
    if selected_only:
        query = query.where(Apply.is_selected.is_(True))
    query = query.order_by(Apply.created_at.desc(), Apply.id.desc())

    result = await session.execute(query)
    return [
        {
            **serialize_apply(apply),
            "post_title": post.title,
            "post_is_open": post.is_open(),
        }
        for apply, post in result.all()
    ]


async def count_selected(session: AsyncSession, post_id: int) -> int:
    """Number of selected applies for a post."""
    await get_or_raise(session, Post, post_id, "Post")
    count = await session.scalar(
        select(func.count())
        .select_from(Apply)
        .where(Apply.post_id == post_id, Apply.is_selected.is_(True))
    )
    return count or 0
