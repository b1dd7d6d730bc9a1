"""Pydantic models for profiles, activity feed and leaderboard."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    id: str
    email: str | None = None
    full_name: str
    avatar_url: str | None = None
    points: int = 0
    created_at: datetime | None = None


class ProfileRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=128)
    email: str | None = Field(default=None, max_length=320)
    avatar_url: str | None = Field(default=None, max_length=512)


class UserStats(BaseModel):
    id: str
    user_id: str
    total_points: int = 0
    games_played: int = 0
    study_sessions: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserActivity(BaseModel):
    id: str
    user_id: str
    activity_type: str
    activity_title: str
    points_earned: int
    timestamp: datetime


class ActivityFeedResponse(BaseModel):
    activities: list[UserActivity]


class LeaderboardEntry(BaseModel):
    rank: int
    id: str
    full_name: str
    avatar_url: str | None = None
    points: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


class PointsDrift(BaseModel):
    """Comparison of the two point aggregates against the activity ledger."""

    user_id: str
    user_points: int
    stats_total_points: int | None
    ledger_points: int
    in_sync: bool
    repaired: bool = False
