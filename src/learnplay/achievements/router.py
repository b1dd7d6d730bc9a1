"""Achievement catalog, progress and unlock endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from learnplay.achievements.notifier import AchievementNotifier
from learnplay.achievements.schemas import (
    AchievementCheckResponse,
    AchievementListResponse,
    AchievementProgressResponse,
    AchievementStats,
    UserAchievementListResponse,
)
from learnplay.achievements.service import AchievementService
from learnplay.auth.dependencies import get_current_user_id
from learnplay.dependencies import get_achievement_service, get_notifier

router = APIRouter(prefix="/api/v1", tags=["Achievements"])


@router.get("/achievements", response_model=AchievementListResponse)
async def list_achievements(
    category: str | None = Query(None),
    achievements: AchievementService = Depends(get_achievement_service),
) -> AchievementListResponse:
    """All achievement definitions, lowest threshold first."""
    if category:
        return AchievementListResponse(achievements=await achievements.get_achievements_by_category(category))
    return AchievementListResponse(achievements=await achievements.get_all_achievements())


@router.get("/users/me/achievements", response_model=UserAchievementListResponse)
async def my_achievements(
    limit: int | None = Query(None, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    achievements: AchievementService = Depends(get_achievement_service),
) -> UserAchievementListResponse:
    """Earned achievements, newest first. ``limit`` returns only the most recent."""
    if limit is not None:
        earned = await achievements.get_recent_achievements(user_id, limit=limit)
    else:
        earned = await achievements.get_user_achievements(user_id)
    return UserAchievementListResponse(achievements=earned)


@router.get("/users/me/achievements/progress", response_model=AchievementProgressResponse)
async def my_achievement_progress(
    user_id: str = Depends(get_current_user_id),
    achievements: AchievementService = Depends(get_achievement_service),
) -> AchievementProgressResponse:
    return AchievementProgressResponse(progress=await achievements.get_user_achievement_progress(user_id))


@router.get("/users/me/achievements/stats", response_model=AchievementStats)
async def my_achievement_stats(
    user_id: str = Depends(get_current_user_id),
    achievements: AchievementService = Depends(get_achievement_service),
) -> AchievementStats:
    return await achievements.get_achievement_stats(user_id)


@router.post("/users/me/achievements/check", response_model=AchievementCheckResponse)
async def check_my_achievements(
    user_id: str = Depends(get_current_user_id),
    notifier: AchievementNotifier = Depends(get_notifier),
) -> AchievementCheckResponse:
    """Run the unlock pass for the caller and return the resulting toasts.

    Never fails on store errors; an unsuccessful pass returns no toasts.
    """
    toasts = await notifier.check_achievements(user_id)
    return AchievementCheckResponse(toasts=toasts)
