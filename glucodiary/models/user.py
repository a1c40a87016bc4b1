"""Local user and session models.

Used when the application runs without a remote backend, and for the
on-device session that keeps a local user signed in.
"""

import uuid
from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from glucodiary.models.base import Base, EpochMicros, TimestampMixin

SESSION_KEY = "current"


class User(Base, TimestampMixin):
    """Locally registered user.

    Attributes:
        id: Random UUID string
        name: Login name (trimmed)
        email: Email address (trimmed, lower-cased)
        password_hash: Bcrypt hash of the password
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name})>"


class Session(Base):
    """The single on-device session, keyed by a fixed constant."""

    __tablename__ = "session"

    id: Mapped[str] = mapped_column(
        String(16),
        primary_key=True,
        default=SESSION_KEY,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        EpochMicros,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Session(user_id={self.user_id}, expires_at={self.expires_at})>"
