"""Pydantic models for achievements and achievement toasts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AchievementDefinition(BaseModel):
    id: str
    name: str
    description: str
    category: str
    badge_icon: str | None = None
    points_required: int


class UserAchievement(BaseModel):
    id: str
    user_id: str
    achievement_id: str
    earned_at: datetime
    achievement: AchievementDefinition | None = None


class AchievementProgress(BaseModel):
    """A definition joined with the user's standing against it."""

    achievement: AchievementDefinition
    earned: bool
    earned_at: datetime | None = None
    progress: int
    progress_percentage: int


class AchievementStats(BaseModel):
    total: int
    earned: int
    percentage: int


class Toast(BaseModel):
    """Transient notification shown for a newly unlocked achievement."""

    title: str
    description: str
    duration_ms: int = 5000


# --- Responses ---


class AchievementListResponse(BaseModel):
    achievements: list[AchievementDefinition]


class UserAchievementListResponse(BaseModel):
    achievements: list[UserAchievement]


class AchievementProgressResponse(BaseModel):
    progress: list[AchievementProgress]


class AchievementCheckResponse(BaseModel):
    toasts: list[Toast]
