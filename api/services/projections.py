"""
Read-side projections.

Plain dicts assembled from already loaded rows; no queries happen here.
"""

from typing import Any, Dict, List, Optional

from database.models.applies import Analysis, Apply
from database.models.posts import Post
from database.models.resumes import Resume
from database.models.reviews import Review
from database.models.users import Profile, User


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_analysis(analysis: Optional[Analysis]) -> Optional[Dict[str, Any]]:
    if analysis is None:
        return None
    return {
        "id": analysis.id,
        "apply_id": analysis.apply_id,
        "score": analysis.score,
        "result": analysis.result,
        "summary": analysis.summary,
        "created_at": _iso(analysis.created_at),
    }


def serialize_apply(apply: Apply) -> Dict[str, Any]:
    return {
        "id": apply.id,
        "post_id": apply.post_id,
        "user_id": apply.user_id,
        "resume_id": apply.resume_id,
        "reason": apply.reason,
        "is_selected": apply.is_selected,
        "created_at": _iso(apply.created_at),
    }


def serialize_resume(resume: Optional[Resume], skills: List[str]) -> Optional[Dict[str, Any]]:
    if resume is None:
        return None
    return {
        "id": resume.id,
        "title": resume.title,
        "content": resume.content,
        "personality": resume.personality,
        "portfolio": resume.portfolio,
        "is_main": resume.is_main,
        "skills": skills,
    }


def serialize_post(post: Post) -> Dict[str, Any]:
    return {
        "id": post.id,
        "author_id": post.author_id,
        "title": post.title,
        "head_count": post.head_count,
        "deadline": _iso(post.deadline),
        "is_done": post.is_done,
        "is_open": post.is_open(),
    }


def serialize_member(user_id: int, profile: Optional[Profile]) -> Dict[str, Any]:
    """A user as shown in member lists: id plus whatever the profile exposes."""
    return {
        "user_id": user_id,
        "nickname": profile.nickname if profile else None,
        "image": profile.image if profile else None,
    }


def serialize_review(review: Review) -> Dict[str, Any]:
    return {
        "id": review.id,
        "reviewer_id": review.reviewer_id,
        "reviewee_id": review.reviewee_id,
        "content": review.content,
        "rating": review.rating,
        "review_type": review.review_type.value,
        "apply_id": review.apply_id,
        "created_at": _iso(review.created_at),
    }


def applicant_projection(
    apply: Apply,
    user: User,
    profile: Optional[Profile],
    resume: Optional[Resume],
    skills: List[str],
    analysis: Optional[Analysis],
) -> Dict[str, Any]:
    """
    What a post author sees for one applicant.

    The analysis fields are flattened to ai_* keys and are None until the
    first scoring run has landed.
    """
    return {
        "apply_id": apply.id,
        "user_id": user.id,
        "username": user.username,
        "nickname": profile.nickname if profile else None,
        "profile_image": profile.image if profile else None,
        "reason": apply.reason,
        "is_selected": apply.is_selected,
        "created_at": _iso(apply.created_at),
        "resume": serialize_resume(resume, skills),
        "ai_score": analysis.score if analysis else None,
        "ai_reason": analysis.result if analysis else None,
        "ai_summary": analysis.summary if analysis else None,
    }
