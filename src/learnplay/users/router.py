"""Profile, activity feed and leaderboard endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from learnplay.auth.dependencies import get_current_user_id
from learnplay.config import get_settings
from learnplay.dependencies import get_user_service
from learnplay.users.schemas import (
    ActivityFeedResponse,
    LeaderboardResponse,
    PointsDrift,
    ProfileRequest,
    UserProfile,
    UserStats,
)
from learnplay.users.service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(None, ge=1, le=100),
    users: UserService = Depends(get_user_service),
) -> LeaderboardResponse:
    limit = limit or get_settings().leaderboard_limit
    return LeaderboardResponse(entries=await users.get_leaderboard(limit))


@router.get("/me", response_model=UserProfile)
async def get_me(
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
) -> UserProfile:
    return await users.get_user(user_id)


@router.put("/me", response_model=UserProfile)
async def register_me(
    body: ProfileRequest,
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
) -> UserProfile:
    """Create or update the caller's profile. Also creates the stats row."""
    profile = await users.register_profile(
        user_id,
        full_name=body.full_name,
        email=body.email,
        avatar_url=body.avatar_url,
    )
    logger.info("profile_registered", user_id=user_id)
    return profile


@router.get("/me/stats", response_model=UserStats)
async def my_stats(
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
) -> UserStats:
    stats = await users.get_user_stats(user_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="No stats for this user")
    return stats


@router.get("/me/activities", response_model=ActivityFeedResponse)
async def my_activities(
    limit: int | None = Query(None, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
) -> ActivityFeedResponse:
    """Most recent activities first."""
    limit = limit or get_settings().activity_feed_limit
    return ActivityFeedResponse(activities=await users.get_user_activities(user_id, limit))


@router.post("/me/reconcile", response_model=PointsDrift)
async def reconcile_me(
    repair: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
) -> PointsDrift:
    """Compare the caller's point aggregates; optionally repair the stats row."""
    return await users.reconcile_user_points(user_id, repair=repair)
