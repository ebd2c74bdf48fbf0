"""
User account model.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tropicario.core.database import Base, utcnow

if TYPE_CHECKING:
    from tropicario.models.forum import Comment, Topic


class UserRole(str, PyEnum):
    """Account role."""

    USER = "user"
    ADMIN = "admin"


class UserStatus(str, PyEnum):
    """Account status. Disabled accounts are anonymized, never removed."""

    ACTIVE = "active"
    BANNED = "banned"
    DISABLED = "disabled"


class User(Base):
    """Forum account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(55), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))

    # Profile
    full_name: Mapped[str] = mapped_column(String(75), default="")
    avatar: Mapped[str] = mapped_column(String(500), default="")
    age: Mapped[int | None] = mapped_column(Integer)
    location: Mapped[str] = mapped_column(String(125), default="")
    bio: Mapped[str] = mapped_column(Text, default="")

    # Status
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), default=UserRole.USER)
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus), default=UserStatus.ACTIVE, index=True
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    # One-time tokens (SHA-256 hex, never the plaintext)
    verification_token: Mapped[str | None] = mapped_column(String(64), index=True)
    verification_token_expires: Mapped[datetime | None] = mapped_column(DateTime)
    password_reset_token: Mapped[str | None] = mapped_column(String(64), index=True)
    password_reset_token_expires: Mapped[datetime | None] = mapped_column(DateTime)

    # Stats
    posts_count: Mapped[int] = mapped_column(Integer, default=0)
    last_active: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    # Relationships
    topics: Mapped[list["Topic"]] = relationship(back_populates="author")
    comments: Mapped[list["Comment"]] = relationship(back_populates="author")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User {self.username}>"
