"""
Id-keyed lookups shared by the service functions.

Entities never traverse to each other through ORM relationships; every
hop is an explicit query here.
"""

from typing import Dict, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFoundError
from database.models.applies import Analysis
from database.models.resumes import ResumeSkill, Skill
from database.models.users import Profile

T = TypeVar("T")


async def get_or_raise(
    session: AsyncSession,
    model: Type[T],
    entity_id: int,
    resource: Optional[str] = None,
) -> T:
    """
    Load an entity by primary key.

    Raises:
        NotFoundError: If no row has that id
    """
    entity = await session.get(model, entity_id)
    if entity is None:
        raise NotFoundError(resource or model.__name__, entity_id)
    return entity


async def get_profile(session: AsyncSession, user_id: int) -> Optional[Profile]:
    return await session.get(Profile, user_id)


async def get_profiles(session: AsyncSession, user_ids: Iterable[int]) -> Dict[int, Profile]:
    ids = set(user_ids)
    if not ids:
        return {}
    result = await session.execute(select(Profile).where(Profile.user_id.in_(ids)))
    return {profile.user_id: profile for profile in result.scalars().all()}


async def get_skill_names(session: AsyncSession, resume_id: int) -> List[str]:
    """Skill names attached to a resume, alphabetical."""
    result = await session.execute(
        select(Skill.name)
        .join(ResumeSkill, ResumeSkill.skill_id == Skill.id)
        .where(ResumeSkill.resume_id == resume_id)
        .order_by(Skill.name)
    )
    return list(result.scalars().all())


async def get_skill_names_for_resumes(
    session: AsyncSession,
    resume_ids: Iterable[int],
) -> Dict[int, List[str]]:
    ids = {resume_id for resume_id in resume_ids if resume_id is not None}
    if not ids:
        return {}
    result = await session.execute(
        select(ResumeSkill.resume_id, Skill.name)
        .join(Skill, ResumeSkill.skill_id == Skill.id)
        .where(ResumeSkill.resume_id.in_(ids))
        .order_by(ResumeSkill.resume_id, Skill.name)
    )
    skills: Dict[int, List[str]] = {}
    for resume_id, name in result.all():
        skills.setdefault(resume_id, []).append(name)
    return skills


async def find_latest_analysis(session: AsyncSession, apply_id: int) -> Optional[Analysis]:
    """Newest analysis of an apply, ties on created_at broken by id."""
    result = await session.execute(
        select(Analysis)
        .where(Analysis.apply_id == apply_id)
        .order_by(Analysis.created_at.desc(), Analysis.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def find_latest_analyses(
    session: AsyncSession,
    apply_ids: Iterable[int],
) -> Dict[int, Analysis]:
    """Newest analysis per apply; applies without one are absent from the map."""
    ids = set(apply_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(Analysis)
        .where(Analysis.apply_id.in_(ids))
        .order_by(Analysis.apply_id, Analysis.created_at.desc(), Analysis.id.desc())
    )
    latest: Dict[int, Analysis] = {}
    for analysis in result.scalars().all():
        latest.setdefault(analysis.apply_id, analysis)
    return latest
