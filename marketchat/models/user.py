"""
User model - read-only view of the application's user directory.

Profiles are managed by the surrounding application; this service only
reads display names and avatars for rendering.
"""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from marketchat.models.base import Base, UUIDMixin
from marketchat.utils.datetime_utils import utc_now


class User(Base, UUIDMixin):
    """Directory entry for a marketplace user."""

    __tablename__ = "users"

    display_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Name shown to other users"
    )

    avatar_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Profile image URL"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, display_name={self.display_name})>"
