"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror these definitions.

Key concepts:
- String UUID primary keys (the auth user id is the owner reference everywhere)
- every user-scoped table carries user_id (profiles: its own id)
- shareable tables add is_public; the gateway enforces who sees what
- generic JSON with a JSONB variant so the schema runs on Postgres and SQLite
"""

import datetime as dt
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


def today() -> dt.date:
    return datetime.now(timezone.utc).date()


JSONType = JSON().with_variant(JSONB(), "postgresql")


def _id_column() -> Mapped[str]:
    return mapped_column(String(36), primary_key=True, default=new_uuid)


def _owner_column() -> Mapped[str]:
    return mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )


def _created_at() -> Mapped[datetime]:
    return mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


# ══════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════


class User(Base):
    """An auth account. Its id is the Identity id every record points at."""

    __tablename__ = "users"

    id: Mapped[str] = _id_column()
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = _created_at()


class Profile(Base):
    """Display details for a user. Created alongside the account."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    email: Mapped[Optional[str]] = mapped_column(String(255))
    display_name: Mapped[Optional[str]] = mapped_column(String(100))
    avatar_url: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# ══════════════════════════════════════════════════════════════
# Owned records: private to their user
# ══════════════════════════════════════════════════════════════


class Workout(Base):
    __tablename__ = "workouts"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(50), default="Strength")
    duration: Mapped[int] = mapped_column(Integer, default=30)  # minutes
    calories: Mapped[int] = mapped_column(Integer, default=200)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    date: Mapped[dt.date] = mapped_column(Date, default=today)
    created_at: Mapped[datetime] = _created_at()


class WorkoutTemplate(Base):
    """Reusable workout plan in the user's library."""

    __tablename__ = "workout_library"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    goal: Mapped[Optional[str]] = mapped_column(String(50), default="Muscle gain")
    muscle_group: Mapped[Optional[str]] = mapped_column(String(50), default="Full body")
    cardio_mode: Mapped[Optional[str]] = mapped_column(String(50))
    estimated_duration: Mapped[int] = mapped_column(Integer, default=30)
    exercises: Mapped[list] = mapped_column(JSONType, default=list)
    created_at: Mapped[datetime] = _created_at()


class Goal(Base):
    __tablename__ = "goals"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    target: Mapped[float] = mapped_column(Float, nullable=False)
    current: Mapped[float] = mapped_column(Float, default=0)
    unit: Mapped[Optional[str]] = mapped_column(String(50))
    category: Mapped[str] = mapped_column(String(50), default="Fitness")
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = _created_at()


class Measurement(Base):
    __tablename__ = "measurements"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    date: Mapped[dt.date] = mapped_column(Date, default=today)
    weight: Mapped[Optional[float]] = mapped_column(Float)
    chest: Mapped[Optional[float]] = mapped_column(Float)
    waist: Mapped[Optional[float]] = mapped_column(Float)
    hips: Mapped[Optional[float]] = mapped_column(Float)
    arms: Mapped[Optional[float]] = mapped_column(Float)
    thighs: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[datetime] = _created_at()


class DailyLog(Base):
    """One wellness log per user per day."""

    __tablename__ = "daily_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_logs_user_date"),
    )

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    date: Mapped[dt.date] = mapped_column(Date, default=today)
    water_intake: Mapped[int] = mapped_column(Integer, default=0)  # glasses
    sleep_hours: Mapped[float] = mapped_column(Float, default=7)
    sleep_quality: Mapped[int] = mapped_column(Integer, default=3)  # 1-5
    mood: Mapped[str] = mapped_column(String(20), default="okay")
    energy: Mapped[int] = mapped_column(Integer, default=3)  # 1-5
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = _created_at()


class SobrietyTracker(Base):
    __tablename__ = "sobriety"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # alcohol | smoking
    start_date: Mapped[dt.date] = mapped_column(Date, default=today)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = _created_at()


# ══════════════════════════════════════════════════════════════
# Shareable records: owned, plus a public flag
# ══════════════════════════════════════════════════════════════


class BlogPost(Base):
    __tablename__ = "blog_posts"
    __table_args__ = (Index("ix_blog_posts_public_created", "is_public", "created_at"),)

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = _created_at()


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(50), default="Breakfast")
    description: Mapped[Optional[str]] = mapped_column(Text)
    calories: Mapped[int] = mapped_column(Integer, default=0)
    protein: Mapped[int] = mapped_column(Integer, default=0)  # grams
    prep_time: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    instructions: Mapped[Optional[str]] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = _created_at()


class GalleryItem(Base):
    __tablename__ = "gallery"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    title: Mapped[Optional[str]] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(10), default="photo")  # photo | video
    date: Mapped[dt.date] = mapped_column(Date, default=today)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = _created_at()


class TravelEntry(Base):
    __tablename__ = "travel"

    id: Mapped[str] = _id_column()
    user_id: Mapped[str] = _owner_column()
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    highlights: Mapped[Optional[str]] = mapped_column(Text)
    date_visited: Mapped[Optional[dt.date]] = mapped_column(Date)
    rating: Mapped[int] = mapped_column(Integer, default=5)
    would_return: Mapped[bool] = mapped_column(Boolean, default=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = _created_at()
