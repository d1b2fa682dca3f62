"""Collaborator fakes and request helpers shared by the tests."""

from typing import Optional

from core.errors import IntegrationFailure
from core.integrations.scoring import ScoreResult
from database.models import User


class RecordingDispatcher:
    """Remembers which applies were handed off for analysis."""

    def __init__(self):
        self.requested: list[int] = []

    async def request_analysis(self, apply_id: int) -> None:
        self.requested.append(apply_id)


class FailingDispatcher:
    """Behaves like a dispatcher whose broker is down."""

    def __init__(self):
        self.attempts = 0

    async def request_analysis(self, apply_id: int) -> None:
        self.attempts += 1
        raise IntegrationFailure("broker unreachable", transient=True)


class FakeScorer:
    """Scoring collaborator returning a fixed result or raising a fixed error."""

    def __init__(
        self,
        result: Optional[ScoreResult] = None,
        error: Optional[Exception] = None,
    ):
        self.result = result or ScoreResult(score=87, rationale="Strong fit", summary="Python dev")
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def score(self, resume_content: str, post_context: str) -> ScoreResult:
        self.calls.append((resume_content, post_context))
        if self.error is not None:
            raise self.error
        return self.result


def actor_headers(user: User) -> dict:
    return {"X-Actor-Id": str(user.id)}
