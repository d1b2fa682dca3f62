"""Apply request and response schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.common import MemberResponse


class ApplyCreate(BaseModel):
    """Submit an apply to a post."""

    post_id: int = Field(gt=0, description="Post to apply to")
    resume_id: Optional[int] = Field(None, gt=0, description="One of your own resumes")
    reason: Optional[str] = Field(None, max_length=2000, description="Why you want to join")


class SelectionUpdate(BaseModel):
    """Select or deselect an applicant."""

    is_selected: bool


class ApplyResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    resume_id: Optional[int] = None
    reason: Optional[str] = None
    is_selected: bool
    created_at: Optional[str] = None


class AnalysisResponse(BaseModel):
    id: int
    apply_id: int
    score: int = Field(ge=0, le=100)
    result: str
    summary: str
    created_at: Optional[str] = None


class ResumeResponse(BaseModel):
    id: int
    title: str
    content: str
    personality: Optional[str] = None
    portfolio: Optional[str] = None
    is_main: bool
    skills: list[str] = Field(default_factory=list)


class ApplyDetailResponse(ApplyResponse):
    """Apply with everything the post author needs to decide."""

    applicant: MemberResponse
    resume: Optional[ResumeResponse] = None
    analysis: Optional[AnalysisResponse] = None


class ApplicantResponse(BaseModel):
    """One row of a post's applicant list."""

    apply_id: int
    user_id: int
    username: str
    nickname: Optional[str] = None
    profile_image: Optional[str] = None
    reason: Optional[str] = None
    is_selected: bool
    created_at: Optional[str] = None
    resume: Optional[ResumeResponse] = None
    ai_score: Optional[int] = None
    ai_reason: Optional[str] = None
    ai_summary: Optional[str] = None


class SelectedMemberResponse(MemberResponse):
    apply_id: int


class MyApplyResponse(ApplyResponse):
    post_title: str
    post_is_open: bool
