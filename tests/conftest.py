"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be in place
# before any application module is imported.
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("ANALYSIS_BACKEND", "inline")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("SCORING_SERVICE_URL", "http://scoring.test/v1/score")

from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from database.engine import Base, get_db
from database.models import (
    Analysis,
    Apply,
    Post,
    Profile,
    Resume,
    ResumeSkill,
    Review,
    ReviewType,
    Skill,
    User,
)
from tests.helpers import RecordingDispatcher


# ==================== Database ===================== #


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# ==================== Data factory ===================== #


class Factory:
    """Inserts rows with sensible defaults and returns them committed."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _save(self, entity):
        self.session.add(entity)
        await self.session.commit()
        return entity

    async def user(
        self,
        username: Optional[str] = None,
        is_public: bool = True,
        nickname: Optional[str] = None,
    ) -> User:
        n = self._next()
        username = username or f"user{n}"
        user = await self._save(User(email=f"{username}@example.com", username=username))
        await self._save(
            Profile(user_id=user.id, nickname=nickname or username.title(), is_public=is_public)
        )
        return user

    async def post(self, author: User, **overrides) -> Post:
        fields = {
            "title": f"Side project #{self._next()}",
            "content": "Building a study-group matching app",
            "requirement": "Python, FastAPI",
            "head_count": 3,
            "deadline": datetime.now(timezone.utc).date() + timedelta(days=7),
        }
        fields.update(overrides)
        return await self._save(Post(author_id=author.id, **fields))

    async def closed_post(self, author: User) -> Post:
        yesterday = datetime.now(timezone.utc).date() - timedelta(days=1)
        return await self.post(author, deadline=yesterday)

    async def resume(self, owner: User, skills: tuple[str, ...] = (), **overrides) -> Resume:
        fields = {
            "title": "Backend developer",
            "content": "Three years of Python web services.",
            "personality": "Calm under pressure",
        }
        fields.update(overrides)
        resume = await self._save(Resume(user_id=owner.id, **fields))
        for name in skills:
            skill = await self.session.scalar(select(Skill).where(Skill.name == name))
            if skill is None:
                skill = await self._save(Skill(name=name))
            await self._save(ResumeSkill(resume_id=resume.id, skill_id=skill.id))
        return resume

    async def apply(
        self,
        applicant: User,
        post: Post,
        resume: Optional[Resume] = None,
        is_selected: bool = False,
        reason: str = "I would love to join",
    ) -> Apply:
        return await self._save(
            Apply(
                post_id=post.id,
                user_id=applicant.id,
                resume_id=resume.id if resume else None,
                reason=reason,
                is_selected=is_selected,
            )
        )

    async def analysis(
        self,
        apply: Apply,
        score: int,
        created_at: Optional[datetime] = None,
    ) -> Analysis:
        return await self._save(
            Analysis(
                apply_id=apply.id,
                score=score,
                result=f"rationale for {score}",
                summary=f"summary for {score}",
                created_at=created_at or datetime.now(timezone.utc),
            )
        )

    async def profile_review(self, reviewer: User, reviewee: User, content: str = "Nice") -> Review:
        return await self._save(
            Review(
                reviewer_id=reviewer.id,
                reviewee_id=reviewee.id,
                content=content,
                review_type=ReviewType.PROFILE_REVIEW,
            )
        )


@pytest.fixture
def factory(session):
    return Factory(session)


@pytest_asyncio.fixture
async def team(factory):
    """
    A post author, an applicant with a resume, and an outsider.

    The applicant has not applied yet.
    """
    author = await factory.user("author")
    applicant = await factory.user("applicant")
    outsider = await factory.user("outsider")
    post = await factory.post(author)
    resume = await factory.resume(applicant, skills=("Python", "SQL"))
    return {
        "author": author,
        "applicant": applicant,
        "outsider": outsider,
        "post": post,
        "resume": resume,
    }


# ==================== Collaborators and HTTP ===================== #


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest_asyncio.fixture
async def client(session_factory, dispatcher):
    """HTTP client bound to the app, with the test database and dispatcher."""
    from api.dependencies import get_dispatcher
    from api.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
