from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    String,
    ForeignKey,
    TIMESTAMP,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =====================================================
# Base
# =====================================================

class Base(DeclarativeBase):
    pass


# =====================================================
# Identity
# =====================================================

class Profile(Base):
    __tablename__ = "profiles"

    # UUID rendered as text so ids match what the auth layer hands out
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
    )

    role: Mapped[str] = mapped_column(String, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('player','parent','coach','admin')",
            name="ck_profiles_role",
        ),
    )

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.role.capitalize()


class User(Base):
    """Login credentials; one row per profile."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id"),
        primary_key=True,
    )

    username: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=_utcnow,
        nullable=False,
    )


class ParentPlayerRelationship(Base):
    __tablename__ = "parent_player_relationships"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_id,
    )

    parent_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )

    player_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )

    relationship_type: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default="parent",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "parent_id",
            "player_id",
            name="uq_parent_player_relationship",
        ),
        CheckConstraint(
            "relationship_type IN ('parent','guardian','other')",
            name="ck_parent_player_relationship_type",
        ),
    )
