"""Common Pydantic schemas shared across the API."""

from typing import Any, Optional
from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    """Body of the standard error envelope."""

    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human readable, sanitized message")
    path: str = Field(description="Request path")
    method: str = Field(description="Request method")
    details: Optional[Any] = Field(None, description="Structured error context")
    request_id: Optional[str] = Field(None, description="Request id for log correlation")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: ErrorBody


class MemberResponse(BaseModel):
    """A user as shown in member lists."""

    user_id: int
    nickname: Optional[str] = None
    image: Optional[str] = None


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    403: {"model": ErrorResponse, "description": "Not allowed for this user"},
    404: {"model": ErrorResponse, "description": "Referenced resource does not exist"},
    409: {"model": ErrorResponse, "description": "Conflicts with the current state"},
}
