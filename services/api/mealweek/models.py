"""SQLAlchemy ORM models for MealWeek.

Tables:
- users: Identity-provider backed accounts (created on first sign-in)
- dishes: Planned meals, one row per dish per day, scoped to a user
- weekly_notes: Free-text note per user per week (keyed by the week's Monday)
"""

from __future__ import annotations

import uuid
import datetime as dt
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Text,
    Integer,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Account for an identity forwarded by the identity provider."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    dishes: Mapped[list["Dish"]] = relationship(
        "Dish", back_populates="user", cascade="all, delete-orphan"
    )
    weekly_notes: Mapped[list["WeeklyNote"]] = relationship(
        "WeeklyNote", back_populates="user", cascade="all, delete-orphan"
    )


class Dish(Base):
    """A planned meal assigned to one calendar day.

    `order` ranks dishes sharing the same `date`; it is not unique, gaps are
    allowed after cross-day moves and closed by the next in-lane reorder.
    """
    __tablename__ = "dishes"
    __table_args__ = (
        Index("ix_dishes_user_date", "user_id", "date"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="dishes")


class WeeklyNote(Base):
    """At most one note per user per week."""
    __tablename__ = "weekly_notes"
    __table_args__ = (
        UniqueConstraint("user_id", "week_start", name="uq_weekly_note_user_week"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    week_start: Mapped[dt.date] = mapped_column(Date, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="weekly_notes")
