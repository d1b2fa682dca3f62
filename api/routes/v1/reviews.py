"""
Review endpoints.

Profile reviews are open to any member; peer reviews are limited to the two
participants of a selected apply.
"""

from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_actor
from api.schemas.common import ERROR_RESPONSES
from api.schemas.reviews import (
    PeerReviewCreate,
    ProfileReviewCreate,
    ProjectDashboardResponse,
    ReviewResponse,
    UserReviewsResponse,
)
from api.services import reviews as review_service
from core.middleware.identity import Actor
from database.engine import get_db

router = APIRouter(responses=ERROR_RESPONSES)


@router.post(
    "/profile/{user_id}",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Write Profile Review",
)
async def create_profile_review(
    payload: ProfileReviewCreate,
    user_id: int = Path(..., description="User being reviewed"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.create_profile_review(db, actor.id, user_id, payload.content)


@router.post(
    "/peer/{apply_id}",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Write Peer Review",
)
async def create_peer_review(
    payload: PeerReviewCreate,
    apply_id: int = Path(..., description="Selected apply both members took part in"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """One review per reviewer, reviewee and apply."""
    return await review_service.create_peer_review(
        db,
        reviewer_id=actor.id,
        reviewee_id=payload.reviewee_id,
        apply_id=apply_id,
        content=payload.content,
        rating=payload.rating,
    )


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Review",
)
async def delete_review(
    review_id: int = Path(..., description="Review ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await review_service.delete_review(db, review_id, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/user/{user_id}",
    response_model=UserReviewsResponse,
    summary="List Reviews For User",
)
async def list_reviews_for_user(
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Received reviews of a public profile; your own page also lists what you wrote."""
    return await review_service.list_reviews_for_user(db, user_id, actor.id)


@router.get(
    "/profile/{user_id}",
    response_model=list[ReviewResponse],
    summary="List Profile Reviews",
)
async def list_profile_reviews(
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.list_profile_reviews(db, user_id)


@router.get(
    "/peer/{apply_id}",
    response_model=list[ReviewResponse],
    summary="List Peer Reviews",
)
async def list_peer_reviews(
    apply_id: int = Path(..., description="Apply ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.list_peer_reviews(db, apply_id, actor.id)


@router.get(
    "/projects/{apply_id}/dashboard",
    response_model=ProjectDashboardResponse,
    summary="Project Dashboard",
)
async def get_project_dashboard(
    apply_id: int = Path(..., description="Selected apply"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Team, peer reviews and who you can still review."""
    return await review_service.get_project_dashboard(db, apply_id, actor.id)
