"""Review request and response schemas."""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from api.schemas.common import MemberResponse


class ProfileReviewCreate(BaseModel):
    """Review another member's profile."""

    content: str = Field(description="Review text, at most 1000 characters")


class PeerReviewCreate(BaseModel):
    """Review the other participant of a selected apply."""

    reviewee_id: int = Field(gt=0)
    content: str = Field(description="Review text, at most 1000 characters")
    rating: Optional[int] = Field(None, description="1 to 5")


class ReviewResponse(BaseModel):
    id: int
    reviewer_id: int
    reviewee_id: int
    content: str
    rating: Optional[int] = None
    review_type: Literal["PROFILE_REVIEW", "PEER_REVIEW"]
    apply_id: Optional[int] = None
    created_at: Optional[str] = None


class UserReviewsResponse(BaseModel):
    """Reviews on a user's page; written is only filled in for the owner."""

    user_id: int
    received: list[ReviewResponse]
    written: Optional[list[ReviewResponse]] = None


class PostSummary(BaseModel):
    id: int
    author_id: int
    title: str
    head_count: int
    deadline: Optional[str] = None
    is_done: bool
    is_open: bool


class ReviewableMember(MemberResponse):
    already_reviewed: bool


class ProjectDashboardResponse(BaseModel):
    apply_id: int
    post: PostSummary
    team_members: list[MemberResponse]
    peer_reviews: list[ReviewResponse]
    reviewable_members: list[ReviewableMember]
