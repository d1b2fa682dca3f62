"""Importing this package registers every table on Base.metadata."""

from database.models.users import User, Profile, UserType
from database.models.posts import Post
from database.models.resumes import Resume, Skill, ResumeSkill
from database.models.applies import Apply, Analysis
from database.models.reviews import Review, ReviewType

__all__ = [
    "User",
    "Profile",
    "UserType",
    "Post",
    "Resume",
    "Skill",
    "ResumeSkill",
    "Apply",
    "Analysis",
    "Review",
    "ReviewType",
]
