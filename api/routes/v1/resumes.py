"""Resume main-flag endpoints."""

from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_actor
from api.schemas.applies import ResumeResponse
from api.schemas.common import ERROR_RESPONSES
from api.services import resumes as resume_service
from core.middleware.identity import Actor
from database.engine import get_db

router = APIRouter(responses=ERROR_RESPONSES)


@router.put(
    "/{resume_id}/main",
    response_model=ResumeResponse,
    summary="Set Main Resume",
)
async def set_main_resume(
    resume_id: int = Path(..., description="Resume ID"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Make this your main resume; any previous main resume is unflagged."""
    return await resume_service.set_main_resume(db, resume_id, actor.id)


@router.delete(
    "/main",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unset Main Resume",
)
async def unset_main_resume(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await resume_service.unset_main_resume(db, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
