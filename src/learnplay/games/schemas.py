"""Pydantic models for the game catalog, scores and completion endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from learnplay.achievements.schemas import Toast


class Game(BaseModel):
    id: str
    title: str
    description: str
    category: str
    difficulty: str
    points_reward: int
    thumbnail_url: str | None = None
    instructions: str | None = None


class GameFilters(BaseModel):
    category: str | None = None
    difficulty: str | None = None
    search_query: str | None = None


class GameScore(BaseModel):
    id: str
    user_id: str
    game_id: str
    score: int
    completed_at: datetime | None = None


class ScorePlayer(BaseModel):
    id: str
    full_name: str | None = None
    avatar_url: str | None = None


class HighScoreEntry(BaseModel):
    id: str
    user_id: str
    game_id: str
    score: int
    completed_at: datetime | None = None
    user: ScorePlayer | None = None


class UserGameStats(BaseModel):
    total_games_played: int
    average_score: int
    highest_score: int


# --- Requests / responses ---


class CompleteGameRequest(BaseModel):
    score: float = Field(description="Percentage score; clamped to [0, 100]")
    time_elapsed: int = Field(default=0, ge=0, description="Seconds spent on the play-through")


class CompleteGameResponse(BaseModel):
    game_id: str
    points_earned: int
    achievements: list[Toast] = []


class GameListResponse(BaseModel):
    games: list[Game]


class CategoriesResponse(BaseModel):
    categories: list[str]


class HighScoresResponse(BaseModel):
    scores: list[HighScoreEntry]
