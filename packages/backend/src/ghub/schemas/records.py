"""Pydantic schemas for user-scoped records.

Learn: Separate "Create" schemas (input) from "Update" schemas (partial
input). Neither accepts user_id or id — ownership is attached by the
gateway, never by the client. Unknown fields are rejected (422).
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class _Input(BaseModel):
    model_config = {"extra": "forbid"}


# ─── Owned ──────────────────────────────────────────────

class WorkoutCreate(_Input):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = "Strength"
    duration: int = Field(30, ge=0)
    calories: int = Field(200, ge=0)
    notes: Optional[str] = None
    date: Optional[dt.date] = None


class WorkoutUpdate(_Input):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    date: Optional[dt.date] = None


class Exercise(BaseModel):
    name: str
    sets: int = 3
    reps: int = 10
    notes: str = ""


class WorkoutTemplateCreate(_Input):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    goal: str = "Muscle gain"
    muscle_group: str = "Full body"
    cardio_mode: Optional[str] = None
    estimated_duration: int = Field(30, ge=0)
    exercises: list[Exercise] = Field(default_factory=list)


class WorkoutTemplateUpdate(_Input):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    goal: Optional[str] = None
    muscle_group: Optional[str] = None
    cardio_mode: Optional[str] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
    exercises: Optional[list[Exercise]] = None


class GoalCreate(_Input):
    name: str = Field(..., min_length=1, max_length=200)
    target: float
    current: float = 0
    unit: Optional[str] = None
    category: str = "Fitness"
    completed: bool = False


class GoalUpdate(_Input):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    target: Optional[float] = None
    current: Optional[float] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    completed: Optional[bool] = None


class MeasurementCreate(_Input):
    date: Optional[dt.date] = None
    weight: Optional[float] = None
    chest: Optional[float] = None
    waist: Optional[float] = None
    hips: Optional[float] = None
    arms: Optional[float] = None
    thighs: Optional[float] = None


class MeasurementUpdate(MeasurementCreate):
    pass


class DailyLogCreate(_Input):
    date: Optional[dt.date] = None
    water_intake: int = Field(0, ge=0)
    sleep_hours: float = Field(7, ge=0, le=24)
    sleep_quality: int = Field(3, ge=1, le=5)
    mood: str = Field("okay", pattern=r"^(sad|meh|okay|good|great)$")
    energy: int = Field(3, ge=1, le=5)
    notes: Optional[str] = None


class DailyLogUpdate(_Input):
    water_intake: Optional[int] = Field(None, ge=0)
    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    sleep_quality: Optional[int] = Field(None, ge=1, le=5)
    mood: Optional[str] = Field(None, pattern=r"^(sad|meh|okay|good|great)$")
    energy: Optional[int] = Field(None, ge=1, le=5)
    notes: Optional[str] = None


class SobrietyCreate(_Input):
    type: str = Field(..., pattern=r"^(alcohol|smoking)$")
    start_date: Optional[dt.date] = None
    is_active: bool = True


class SobrietyUpdate(_Input):
    start_date: Optional[dt.date] = None
    is_active: Optional[bool] = None


class ProfileCreate(_Input):
    email: Optional[str] = None
    display_name: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = None


class ProfileUpdate(_Input):
    display_name: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = None


# ─── Shareable ──────────────────────────────────────────

class BlogPostCreate(_Input):
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = None
    is_public: bool = True


class BlogPostUpdate(_Input):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = None
    is_public: Optional[bool] = None


class RecipeCreate(_Input):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = "Breakfast"
    description: Optional[str] = None
    calories: int = Field(0, ge=0)
    protein: int = Field(0, ge=0)
    prep_time: int = Field(0, ge=0)
    instructions: Optional[str] = None
    is_public: bool = True


class RecipeUpdate(_Input):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = None
    description: Optional[str] = None
    calories: Optional[int] = Field(None, ge=0)
    protein: Optional[int] = Field(None, ge=0)
    prep_time: Optional[int] = Field(None, ge=0)
    instructions: Optional[str] = None
    is_public: Optional[bool] = None


class GalleryItemCreate(_Input):
    url: str = Field(..., min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    type: str = Field("photo", pattern=r"^(photo|video)$")
    date: Optional[dt.date] = None
    is_public: bool = True


class GalleryItemUpdate(_Input):
    title: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class TravelCreate(_Input):
    country: str = Field(..., min_length=1, max_length=100)
    city: Optional[str] = None
    description: Optional[str] = None
    highlights: Optional[str] = None
    date_visited: Optional[dt.date] = None
    rating: int = Field(5, ge=1, le=5)
    would_return: bool = True
    is_public: bool = True


class TravelUpdate(_Input):
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    city: Optional[str] = None
    description: Optional[str] = None
    highlights: Optional[str] = None
    date_visited: Optional[dt.date] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    would_return: Optional[bool] = None
    is_public: Optional[bool] = None


# table name → (create schema, update schema)
RECORD_SCHEMAS: dict[str, tuple[type[BaseModel], type[BaseModel]]] = {
    "workouts": (WorkoutCreate, WorkoutUpdate),
    "workout_library": (WorkoutTemplateCreate, WorkoutTemplateUpdate),
    "goals": (GoalCreate, GoalUpdate),
    "measurements": (MeasurementCreate, MeasurementUpdate),
    "daily_logs": (DailyLogCreate, DailyLogUpdate),
    "sobriety": (SobrietyCreate, SobrietyUpdate),
    "profiles": (ProfileCreate, ProfileUpdate),
    "blog_posts": (BlogPostCreate, BlogPostUpdate),
    "recipes": (RecipeCreate, RecipeUpdate),
    "gallery": (GalleryItemCreate, GalleryItemUpdate),
    "travel": (TravelCreate, TravelUpdate),
}
