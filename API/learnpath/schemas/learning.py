from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from learnpath.core.password import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from learnpath.schemas.generation import LessonContent, QuestionSpec, TopicSpec, WeekPlan


# ── Auth ────────────────────────────────────────────────────────────────────

class SignupRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    full_name: str = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)


class AuthResponse(BaseModel):
    token: str
    user_id: str
    email: str
    full_name: str | None
    is_admin: bool
    is_new_user: bool = False


# ── Onboarding ──────────────────────────────────────────────────────────────

class QuestionsRequest(BaseModel):
    goal: str = Field(min_length=1, max_length=2000)


class QuestionsResponse(BaseModel):
    goal: str
    questions: list[QuestionSpec]


class RoadmapRequest(BaseModel):
    goal: str = Field(min_length=1, max_length=2000)
    questions: list[QuestionSpec] = Field(default_factory=list)
    # question text -> chosen option
    answers: dict[str, str] = Field(default_factory=dict)


class AlterRoadmapRequest(BaseModel):
    request: str = Field(min_length=1, max_length=4000)


# ── Roadmap & lessons ───────────────────────────────────────────────────────

class LessonSummary(BaseModel):
    id: UUID
    week_number: int
    order_index: int
    title: str
    lesson_objective: str
    estimated_time: str
    completed: bool
    score: int
    unlocked: bool


class WeekView(BaseModel):
    week_number: int
    title: str
    topics: list[TopicSpec] = Field(default_factory=list)
    completed: int
    total: int
    progress_percent: int
    lessons: list[LessonSummary]


class RoadmapResponse(BaseModel):
    id: UUID
    title: str
    goal: str
    created_at: datetime | None
    completed_count: int
    total_count: int
    overall_percent: int
    weeks: list[WeekView]


class RoadmapDeleteResponse(BaseModel):
    roadmap_id: UUID
    deleted: bool


class LessonsResponse(BaseModel):
    roadmap_id: UUID | None
    weeks: list[WeekView]


class LessonDetail(BaseModel):
    lesson: LessonSummary
    content: LessonContent
    previous_lesson_id: UUID | None
    next_lesson_id: UUID | None


class CompleteLessonRequest(BaseModel):
    # One chosen option per assessment question, in order; None for skipped.
    answers: list[str | None]
    time_spent: int | None = Field(default=None, ge=0, description="Minutes spent on the lesson")


class CompleteLessonResponse(BaseModel):
    lesson_id: UUID
    score: int
    passed: bool
    first_completion: bool
    completed_lessons: int
    total_lessons: int
    average_accuracy: float
    next_lesson_id: UUID | None


# ── Dashboard & profile ─────────────────────────────────────────────────────

class DashboardResponse(BaseModel):
    has_roadmap: bool
    roadmap_id: UUID | None = None
    title: str | None = None
    goal: str | None = None
    completed_count: int = 0
    total_count: int = 0
    overall_percent: int = 0
    average_accuracy: float = 0.0
    total_time_spent: int = 0
    current_week: int = 1
    total_weeks: int = 0
    current_week_percent: int = 0
    current_week_plan: WeekPlan | None = None


class ProfileResponse(BaseModel):
    id: UUID
    email: str
    full_name: str | None
    avatar_url: str | None
    is_admin: bool
    goal: str | None
    preferences: dict
    created_at: datetime | None


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=1024)
    goal: str | None = Field(default=None, max_length=2000)
    preferences: dict | None = None
