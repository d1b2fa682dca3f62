from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    func,
    Text,
    Enum as SQLEnum,
    false,
)
from database.engine import Base, BigIntId, utcnow
from datetime import datetime
from enum import Enum as PyEnum


# ==================== User Type ===================== #
class UserType(str, PyEnum):
    ADMIN = "admin"  # platform admin
    RECRUITER = "recruiter"  # member who mostly posts team recruitments
    CANDIDATE = "candidate"  # member who mostly applies


class User(Base):
    """
    Identity of a member. Owns posts, resumes and applies; reviewer or reviewee in reviews.
    """

    __tablename__: str = "users"
    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    username: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, index=True
    )
    role: Mapped[UserType] = mapped_column(
        SQLEnum(UserType, native_enum=False, length=20),
        nullable=False,
        default=UserType.CANDIDATE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )


class Profile(Base):
    """
    Public face of a user. Visibility is read here, never mutated.
    """

    __tablename__: str = "profiles"
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    nickname: Mapped[str | None] = mapped_column(String(100))
    image: Mapped[str | None] = mapped_column(String(500))
    introduction: Mapped[str | None] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
