"""
Apply endpoints.

Applicants submit and cancel; post authors review applicants and toggle
selection.
"""

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_actor, get_dispatcher
from api.schemas.applies import (
    ApplicantResponse,
    ApplyCreate,
    ApplyDetailResponse,
    ApplyResponse,
    MyApplyResponse,
    SelectedMemberResponse,
    SelectionUpdate,
)
from api.schemas.common import ERROR_RESPONSES
from api.services import applies as apply_service
from api.services.analyses import AnalysisDispatcher
from core.middleware.identity import Actor
from database.engine import get_db

router = APIRouter(responses=ERROR_RESPONSES)


@router.post(
    "",
    response_model=ApplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Apply",
)
async def submit_apply(
    payload: ApplyCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    dispatcher: AnalysisDispatcher = Depends(get_dispatcher),
):
    """Apply to an open post. AI scoring is requested after the apply is stored."""
    return await apply_service.submit_apply(
        db,
        applicant_id=actor.id,
        post_id=payload.post_id,
        resume_id=payload.resume_id,
        reason=payload.reason,
        dispatcher=dispatcher,
    )


@router.get(
    "/me",
    response_model=list[MyApplyResponse],
    summary="List My Applies",
)
async def list_my_applies(
    selected_only: bool = Query(False, description="Only applies that were selected"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Your applies, newest first."""
    return await apply_service.list_my_applies(db, actor.id, selected_only=selected_only)


@router.get(
    "/post/{post_id}",
    response_model=list[ApplicantResponse],
    summary="List Applicants",
    description="Applicants of a post with resume, skills and latest AI score. Post author only.",
)
async def list_applies_for_post(
    post_id: int = Path(..., description="Post ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await apply_service.list_applies_for_post(db, post_id, actor.id)


@router.get(
    "/post/{post_id}/members",
    response_model=list[SelectedMemberResponse],
    summary="List Selected Members",
)
async def list_selected_members(
    post_id: int = Path(..., description="Post ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Members already selected for a post."""
    return await apply_service.list_selected_members(db, post_id)


@router.get(
    "/{apply_id}",
    response_model=ApplyDetailResponse,
    summary="Get Apply Details",
    description="Apply with resume, skills and latest analysis. Post author only.",
)
async def get_apply_detail(
    apply_id: int = Path(..., description="Apply ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await apply_service.get_apply_detail(db, apply_id, actor.id)


@router.patch(
    "/{apply_id}/selection",
    response_model=ApplyResponse,
    summary="Toggle Selection",
)
async def toggle_selection(
    payload: SelectionUpdate,
    apply_id: int = Path(..., description="Apply ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Select or deselect an applicant. Post author only; repeating a value is a no-op."""
    return await apply_service.toggle_selection(db, apply_id, actor.id, payload.is_selected)


@router.delete(
    "/{apply_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel Apply",
)
async def cancel_apply(
    apply_id: int = Path(..., description="Apply ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw your apply. Not possible once selected."""
    await apply_service.cancel_apply(db, apply_id, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
