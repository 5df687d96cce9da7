"""
SQLAlchemy ORM models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase

UQ_NORMALIZED_USERNAME = "uq_users_normalized_username"
UQ_NORMALIZED_EMAIL = "uq_users_normalized_email"


def normalize(value: str) -> str:
    """Case-insensitive key for usernames and emails."""
    return value.strip().casefold()


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("normalized_username", name=UQ_NORMALIZED_USERNAME),
        UniqueConstraint("normalized_email", name=UQ_NORMALIZED_EMAIL),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Shown as entered; uniqueness and lookups go through the normalized pair.
    username = Column(String(64), nullable=False)
    normalized_username = Column(String(256), nullable=False)
    email = Column(String(255), nullable=False)
    normalized_email = Column(String(1024), nullable=False)
    display_name = Column(String(128), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    image_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.id})>"
