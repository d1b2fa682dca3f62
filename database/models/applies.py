"""
Apply and Analysis models.

An Apply is a candidate's submission to a posting. Analysis rows are the
asynchronously produced AI scores attached to it; they are append-only and
readers always take the newest one.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    Integer,
    func,
    Text,
    Index,
    UniqueConstraint,
    CheckConstraint,
    false,
)
from database.engine import Base, BigIntId, utcnow
from datetime import datetime


class Apply(Base):
    """
    A user's application to a post.

    One row per (user, post); the unique constraint closes the race between
    two concurrent submissions that both pass the existence pre-check.
    """

    __tablename__ = "applies"

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    resume_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("resumes.id", ondelete="SET NULL"),
        nullable=True,
    )
    reason: Mapped[str | None] = mapped_column(Text)
    is_selected: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_apply_user_post"),
        Index("idx_apply_post", "post_id"),
        Index("idx_apply_user_created", "user_id", "created_at"),
        Index("idx_apply_post_selected", "post_id", "is_selected"),
    )


class Analysis(Base):
    """AI scoring result for an apply. Several may exist; the newest wins."""

    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    apply_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("applies.id", ondelete="CASCADE"),
        nullable=False,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    result: Mapped[str] = mapped_column(Text, nullable=False)  # rationale
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="ck_analysis_score_range"),
        Index("idx_analysis_apply_created", "apply_id", "created_at"),
    )
