"""Pydantic models for study materials."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from learnplay.achievements.schemas import Toast


class StudyMaterial(BaseModel):
    id: str
    title: str
    description: str | None = None
    subject: str
    difficulty: str
    content: str | None = None
    points_reward: int


class StudyMaterialListResponse(BaseModel):
    materials: list[StudyMaterial]


class SubjectsResponse(BaseModel):
    subjects: list[str]


class CompleteStudyResponse(BaseModel):
    material_id: str
    points_earned: int
    achievements: list[Toast] = []


class Bookmark(BaseModel):
    id: str
    user_id: str
    study_material_id: str
    created_at: datetime


class BookmarkedMaterial(Bookmark):
    """A bookmark joined with its study material."""

    material: StudyMaterial | None = None


class BookmarkListResponse(BaseModel):
    bookmarks: list[BookmarkedMaterial]


class BookmarkStatus(BaseModel):
    material_id: str
    bookmarked: bool


class ProgressRequest(BaseModel):
    progress_percentage: int = Field(..., ge=0, le=100)
