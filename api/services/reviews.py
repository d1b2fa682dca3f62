"""
Review service functions.

Profile reviews: any member about any other member, unlimited.
Peer reviews: between the applicant and the post author of a selected
apply, at most one per (reviewer, reviewee, apply).
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization import (
    participants,
    require_apply_participant,
    require_create_peer_review,
    require_delete_review,
    require_view_profile,
)
from core.config import settings
from core.errors import ConflictError, ValidationError
from database.models.applies import Apply
from database.models.posts import Post
from database.models.reviews import Review, ReviewType
from database.models.users import User
from api.services.lookups import get_or_raise, get_profile, get_profiles
from api.services.projections import serialize_member, serialize_post, serialize_review

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_review_input(content: Optional[str], rating: Optional[int] = None) -> str:
    """
    Normalize review content and check the rating range.

    Returns:
        Content with surrounding whitespace removed

    Raises:
        ValidationError: Blank or overlong content, or rating outside 1-5
    """
    text = (content or "").strip()
    if not text:
        raise ValidationError("Review content must not be blank")
    if len(text) > settings.review_max_length:
        raise ValidationError(
            f"Review content must be at most {settings.review_max_length} characters",
            details={"length": len(text)},
        )
    if rating is not None and not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}",
            details={"rating": rating},
        )
    return text


def _reject_self_review(reviewer_id: int, reviewee_id: int) -> None:
    if reviewer_id == reviewee_id:
        raise ValidationError(
            "You cannot review yourself", details={"user_id": reviewer_id}
        )


async def _find_peer_review_id(
    session: AsyncSession,
    reviewer_id: int,
    reviewee_id: int,
    apply_id: int,
) -> Optional[int]:
    return await session.scalar(
        select(Review.id).where(
            Review.reviewer_id == reviewer_id,
            Review.reviewee_id == reviewee_id,
            Review.apply_id == apply_id,
            Review.review_type == ReviewType.PEER_REVIEW,
        )
    )


async def create_profile_review(
    session: AsyncSession,
    reviewer_id: int,
    reviewee_id: int,
    content: str,
) -> Dict[str, Any]:
    """
    Write a review on another member's profile.

    Raises:
        NotFoundError: Reviewer or reviewee does not exist
        ValidationError: Self-review or invalid content
    """
    logger.info(f"Adding profile review from user {reviewer_id} to user {reviewee_id}")

    await get_or_raise(session, User, reviewer_id, "User")
    await get_or_raise(session, User, reviewee_id, "User")
    _reject_self_review(reviewer_id, reviewee_id)
    text = validate_review_input(content)

    review = Review(
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        content=text,
        review_type=ReviewType.PROFILE_REVIEW,
    )
    session.add(review)
    await session.commit()
    return serialize_review(review)


async def create_peer_review(
    session: AsyncSession,
    reviewer_id: int,
    reviewee_id: int,
    apply_id: int,
    content: str,
    rating: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Write a peer review for the other participant of a selected apply.

    Raises:
        NotFoundError: Reviewer, reviewee or apply does not exist
        ValidationError: Self-review, invalid content or rating
        AuthorizationError: Either side is not a participant, or the apply is not selected
        ConflictError: This reviewer already reviewed this reviewee for this apply
    """
    logger.info(
        f"Adding peer review from user {reviewer_id} to user {reviewee_id} for apply {apply_id}"
    )

    await get_or_raise(session, User, reviewer_id, "User")
    await get_or_raise(session, User, reviewee_id, "User")
    apply = await get_or_raise(session, Apply, apply_id, "Apply")
    post = await get_or_raise(session, Post, apply.post_id, "Post")

    _reject_self_review(reviewer_id, reviewee_id)
    require_create_peer_review(reviewer_id, apply, post, reviewee_id)
    text = validate_review_input(content, rating)

    if await _find_peer_review_id(session, reviewer_id, reviewee_id, apply_id) is not None:
        raise ConflictError(
            "You already reviewed this member for this project",
            details={"apply_id": apply_id, "reviewee_id": reviewee_id},
        )

    review = Review(
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        apply_id=apply_id,
        content=text,
        rating=rating,
        review_type=ReviewType.PEER_REVIEW,
    )
    session.add(review)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError(
            "You already reviewed this member for this project",
            details={"apply_id": apply_id, "reviewee_id": reviewee_id},
        )
    return serialize_review(review)


async def delete_review(session: AsyncSession, review_id: int, actor_id: int) -> None:
    """
    Delete a review written by the actor, or a profile review about the actor.

    Raises:
        NotFoundError: Review does not exist
        AuthorizationError: Actor may not delete it
    """
    review = await get_or_raise(session, Review, review_id, "Review")
    require_delete_review(actor_id, review)

    await session.delete(review)
    await session.commit()
    logger.info(f"Review {review_id} deleted by user {actor_id}")


async def _reviews_where(session: AsyncSession, *criteria) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(Review).where(*criteria).order_by(Review.created_at.desc(), Review.id.desc())
    )
    return [serialize_review(review) for review in result.scalars().all()]


async def list_profile_reviews(session: AsyncSession, user_id: int) -> List[Dict[str, Any]]:
    """
    Profile reviews a user received, newest first.

    Raises:
        NotFoundError: User does not exist
    """
    await get_or_raise(session, User, user_id, "User")
    return await _reviews_where(
        session,
        Review.reviewee_id == user_id,
        Review.review_type == ReviewType.PROFILE_REVIEW,
    )


async def list_peer_reviews(
    session: AsyncSession,
    apply_id: int,
    actor_id: int,
) -> List[Dict[str, Any]]:
    """
    Peer reviews exchanged within an apply. Participants only.

    Raises:
        NotFoundError: Apply does not exist
        AuthorizationError: Actor is not a participant
    """
    apply = await get_or_raise(session, Apply, apply_id, "Apply")
    post = await get_or_raise(session, Post, apply.post_id, "Post")
    require_apply_participant(actor_id, apply, post)

    return await _reviews_where(
        session,
        Review.apply_id == apply_id,
        Review.review_type == ReviewType.PEER_REVIEW,
    )


async def list_reviews_for_user(
    session: AsyncSession,
    user_id: int,
    actor_id: int,
) -> Dict[str, Any]:
    """
    All reviews a user received; the reviews they wrote are included only
    when they look at their own page.

    Raises:
        NotFoundError: User does not exist
        AuthorizationError: Profile is private and actor is someone else
    """
    await get_or_raise(session, User, user_id, "User")
    profile = await get_profile(session, user_id)
    require_view_profile(actor_id, profile, user_id)

    received = await _reviews_where(session, Review.reviewee_id == user_id)
    written = None
    if actor_id == user_id:
        written = await _reviews_where(session, Review.reviewer_id == user_id)

    return {"user_id": user_id, "received": received, "written": written}


async def get_project_dashboard(
    session: AsyncSession,
    apply_id: int,
    actor_id: int,
) -> Dict[str, Any]:
    """
    Team view of a selected apply.

    Returns the post, the team (author plus every selected applicant), the
    peer reviews of this apply, and the members the actor may still review.

    Raises:
        NotFoundError: Apply does not exist
        AuthorizationError: Actor is not a participant
        ConflictError: Apply has not been selected
    """
    apply = await get_or_raise(session, Apply, apply_id, "Apply")
    post = await get_or_raise(session, Post, apply.post_id, "Post")
    require_apply_participant(actor_id, apply, post)
    if not apply.is_selected:
        raise ConflictError(
            "Project dashboard is available once the apply is selected",
            details={"apply_id": apply_id},
        )

    result = await session.execute(
        select(Apply.user_id)
        .where(Apply.post_id == post.id, Apply.is_selected.is_(True))
        .order_by(Apply.created_at, Apply.id)
    )
    team_ids = [post.author_id] + [
        user_id for user_id in result.scalars().all() if user_id != post.author_id
    ]
    profiles = await get_profiles(session, team_ids)

    peer_reviews = await _reviews_where(
        session,
        Review.apply_id == apply_id,
        Review.review_type == ReviewType.PEER_REVIEW,
    )
    already_reviewed = {
        review["reviewee_id"] for review in peer_reviews if review["reviewer_id"] == actor_id
    }

    reviewable = [
        {
            **serialize_member(user_id, profiles.get(user_id)),
            "already_reviewed": user_id in already_reviewed,
        }
        for user_id in participants(apply, post)
        if user_id != actor_id
    ]

    return {
        "apply_id": apply.id,
        "post": serialize_post(post),
        "team_members": [serialize_member(user_id, profiles.get(user_id)) for user_id in team_ids],
        "peer_reviews": peer_reviews,
        "reviewable_members": reviewable,
    }
