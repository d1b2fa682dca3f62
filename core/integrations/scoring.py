"""Scoring collaborator client for AI analysis of applies."""

import logging
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from core.config import settings
from core.errors import IntegrationFailure

logger = logging.getLogger(__name__)


class ScoreResult(BaseModel):
    """What the scoring collaborator returns for one resume/post pair."""

    score: int = Field(ge=0, le=100)
    rationale: str
    summary: str


class Scorer(Protocol):
    """Anything that can score resume content against a post."""

    async def score(self, resume_content: str, post_context: str) -> ScoreResult:
        ...


class ScoringClient:
    """HTTP client for the external scoring service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize scoring client.

        Args:
            base_url: Full URL of the scoring endpoint
            api_key: Bearer token for the scoring service, if it needs one
            timeout: Seconds before a call is abandoned
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url or settings.scoring_service_url
        self.api_key = api_key if api_key is not None else settings.scoring_api_key
        self.timeout = timeout or settings.scoring_timeout_seconds
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def score(self, resume_content: str, post_context: str) -> ScoreResult:
        """
        Score a resume against a post.

        Raises:
            IntegrationFailure: transient for timeouts, transport errors and 5xx;
                permanent for 4xx and malformed payloads
        """
        payload = {"resume": resume_content, "post": post_context}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.base_url, json=payload, headers=self._headers()
                )
        except httpx.TimeoutException as e:
            raise IntegrationFailure(
                f"Scoring service timed out after {self.timeout}s", transient=True
            ) from e
        except httpx.TransportError as e:
            raise IntegrationFailure(
                f"Scoring service unreachable: {type(e).__name__}", transient=True
            ) from e

        if response.status_code >= 500:
            raise IntegrationFailure(
                f"Scoring service error: HTTP {response.status_code}",
                transient=True,
                details={"status_code": response.status_code},
            )
        if response.status_code >= 400:
            raise IntegrationFailure(
                f"Scoring request rejected: HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            return ScoreResult.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise IntegrationFailure(f"Malformed scoring response: {e}") from e
