"""
Ownership and participation checks for applies, posts, resumes and reviews.

Every rule comes in two forms:
1. ``can_*`` predicates that return a bool and never touch the database
2. ``require_*`` guards that raise AuthorizationError (or ConflictError where
   the failure is a state precondition rather than a missing relationship)

Entities are passed in already loaded; the acting user is always an explicit
id, never read from ambient request state.
"""

import logging

from core.errors import AuthorizationError, ConflictError
from database.models.applies import Apply
from database.models.posts import Post
from database.models.resumes import Resume
from database.models.reviews import Review, ReviewType
from database.models.users import Profile

logger = logging.getLogger(__name__)


# ==================== Predicates ===================== #


def can_use_resume(actor_id: int, resume: Resume) -> bool:
    """Resumes are for their owner's applies only."""
    return resume.user_id == actor_id


def can_manage_post(actor_id: int, post: Post) -> bool:
    return post.author_id == actor_id


def can_view_applicant_details(actor_id: int, post: Post) -> bool:
    """Applicants' resumes, skills and scores are visible to the post author only."""
    return can_manage_post(actor_id, post)


def can_cancel_apply(actor_id: int, apply: Apply) -> bool:
    return apply.user_id == actor_id and not apply.is_selected


def can_toggle_selection(actor_id: int, apply: Apply, post: Post) -> bool:
    return apply.post_id == post.id and can_manage_post(actor_id, post)


def participants(apply: Apply, post: Post) -> tuple[int, int]:
    """The applicant and the post author, the only two members of a matched apply."""
    return apply.user_id, post.author_id


def is_apply_participant(actor_id: int, apply: Apply, post: Post) -> bool:
    return actor_id in participants(apply, post)


def can_create_peer_review(
    actor_id: int,
    apply: Apply,
    post: Post,
    reviewee_id: int,
) -> bool:
    members = participants(apply, post)
    return (
        actor_id in members
        and reviewee_id in members
        and actor_id != reviewee_id
        and apply.is_selected
    )


def can_delete_review(actor_id: int, review: Review) -> bool:
    if review.reviewer_id == actor_id:
        return True
    return review.review_type == ReviewType.PROFILE_REVIEW and review.reviewee_id == actor_id


def can_view_profile(actor_id: int, profile: Profile | None, owner_id: int) -> bool:
    """Public profiles are visible to everyone; private ones to their owner only."""
    if actor_id == owner_id:
        return True
    return profile is not None and profile.is_public


# ==================== Guards ===================== #


def _deny(message: str, actor_id: int, **context) -> AuthorizationError:
    logger.warning(f"Access denied for user {actor_id}: {message} {context}")
    return AuthorizationError(message, details=context)


def require_use_resume(actor_id: int, resume: Resume) -> None:
    if not can_use_resume(actor_id, resume):
        raise _deny("Only your own resume can be used", actor_id, resume_id=resume.id)


def require_view_applicant_details(actor_id: int, post: Post) -> None:
    if not can_view_applicant_details(actor_id, post):
        raise _deny(
            "Only the post author can view applicant details", actor_id, post_id=post.id
        )


def require_cancel_apply(actor_id: int, apply: Apply) -> None:
    """
    Raises:
        AuthorizationError: actor is not the applicant
        ConflictError: the apply is already selected
    """
    if apply.user_id != actor_id:
        raise _deny("Only your own apply can be cancelled", actor_id, apply_id=apply.id)
    if apply.is_selected:
        raise ConflictError(
            "Apply is already selected and can no longer be cancelled",
            details={"apply_id": apply.id},
        )


def require_toggle_selection(actor_id: int, apply: Apply, post: Post) -> None:
    if not can_toggle_selection(actor_id, apply, post):
        raise _deny(
            "Only the post author can select team members", actor_id, apply_id=apply.id
        )


def require_apply_participant(actor_id: int, apply: Apply, post: Post) -> None:
    if not is_apply_participant(actor_id, apply, post):
        raise _deny(
            "Only participants of this apply have access", actor_id, apply_id=apply.id
        )


def require_create_peer_review(
    actor_id: int,
    apply: Apply,
    post: Post,
    reviewee_id: int,
) -> None:
    if can_create_peer_review(actor_id, apply, post, reviewee_id):
        return
    if not apply.is_selected and is_apply_participant(actor_id, apply, post):
        raise _deny(
            "Peer reviews require a selected apply", actor_id, apply_id=apply.id
        )
    raise _deny(
        "Only participants of the apply can review each other",
        actor_id,
        apply_id=apply.id,
        reviewee_id=reviewee_id,
    )


def require_delete_review(actor_id: int, review: Review) -> None:
    if not can_delete_review(actor_id, review):
        raise _deny("Not allowed to delete this review", actor_id, review_id=review.id)


def require_view_profile(actor_id: int, profile: Profile | None, owner_id: int) -> None:
    if not can_view_profile(actor_id, profile, owner_id):
        raise _deny("This profile is private", actor_id, user_id=owner_id)
