from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    ForeignKey,
    BigInteger,
    DateTime,
    Integer,
    func,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
    CheckConstraint,
)
from database.engine import Base, BigIntId, utcnow
from datetime import datetime
from enum import Enum as PyEnum


class ReviewType(str, PyEnum):
    PROFILE_REVIEW = "PROFILE_REVIEW"  # any member about another member's profile
    PEER_REVIEW = "PEER_REVIEW"  # between the two participants of a selected apply


class Review(Base):
    """
    Profile and peer reviews share one table; apply_id is set for peer reviews only.
    """

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    reviewer_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    reviewee_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(String(1000), nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer)
    review_type: Mapped[ReviewType] = mapped_column(
        SQLEnum(ReviewType, native_enum=False, length=20),
        nullable=False,
    )
    apply_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("applies.id", ondelete="CASCADE"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        # NULL apply ids never collide, so only peer reviews are constrained
        UniqueConstraint(
            "reviewer_id", "reviewee_id", "apply_id", name="uq_review_peer_triple"
        ),
        CheckConstraint("reviewer_id <> reviewee_id", name="ck_review_not_self"),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_review_rating_range",
        ),
        Index("idx_review_reviewee_type", "reviewee_id", "review_type"),
        Index("idx_review_reviewer", "reviewer_id"),
        Index("idx_review_apply", "apply_id"),
    )
