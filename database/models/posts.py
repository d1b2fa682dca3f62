"""
Recruitment postings.

Post CRUD belongs to another service; this one only reads posts to decide
whether they accept applies and who owns them.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    Date,
    DateTime,
    Integer,
    func,
    Text,
    Index,
    CheckConstraint,
    false,
)
from database.engine import Base, BigIntId, utcnow
from datetime import date, datetime, timezone


class Post(Base):
    """A team-recruitment listing owned by exactly one author."""

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    author_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str | None] = mapped_column(Text)
    requirement: Mapped[str | None] = mapped_column(Text)
    head_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    deadline: Mapped[date | None] = mapped_column(Date)
    is_done: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("head_count >= 1", name="ck_post_head_count_positive"),
        Index("idx_post_author", "author_id"),
    )

    def is_open(self, today: date | None = None) -> bool:
        """Open until closed by its author or past the deadline (inclusive)."""
        if self.is_done:
            return False
        if self.deadline is None:
            return True
        today = today or datetime.now(timezone.utc).date()
        return self.deadline >= today

    def scoring_context(self) -> str:
        """Text handed to the scoring collaborator alongside the resume."""
        parts = [self.title]
        if self.content:
            parts.append(self.content)
        if self.requirement:
            parts.append(f"Requirements: {self.requirement}")
        return "\n\n".join(parts)
