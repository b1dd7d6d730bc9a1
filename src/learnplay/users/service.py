"""Profiles, activity feed, leaderboard and point reconciliation."""

from __future__ import annotations

import asyncio
import logging

from learnplay.db.models import utcnow
from learnplay.store import RecordNotFoundError, TableStore
from learnplay.users.schemas import LeaderboardEntry, PointsDrift, UserActivity, UserProfile, UserStats

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    async def register_profile(
        self,
        user_id: str,
        full_name: str,
        email: str | None = None,
        avatar_url: str | None = None,
    ) -> UserProfile:
        """Create or update the profile and make sure a stats row exists.

        Completion flows skip the stats update for users without a stats
        row, so this is where that row is created. Existing points and
        stats are left untouched.
        """
        row = await self.store.upsert(
            "users",
            {"id": user_id, "full_name": full_name, "email": email, "avatar_url": avatar_url},
            on_conflict=("id",),
        )
        await self.store.upsert("user_stats", {"user_id": user_id}, on_conflict=("user_id",))
        logger.info("Registered profile for %s", user_id)
        return UserProfile.model_validate(row)

    async def get_user(self, user_id: str) -> UserProfile:
        row = await self.store.select_one("users", filters={"id": user_id})
        if row is None:
            raise RecordNotFoundError(f"User not found: {user_id}", table="users", operation="select")
        return UserProfile.model_validate(row)

    async def get_user_stats(self, user_id: str) -> UserStats | None:
        row = await self.store.select_one("user_stats", filters={"user_id": user_id})
        return UserStats.model_validate(row) if row else None

    async def get_user_activities(self, user_id: str, limit: int = 50) -> list[UserActivity]:
        rows = await self.store.select(
            "user_activities",
            filters={"user_id": user_id},
            order_by="timestamp",
            ascending=False,
            limit=limit,
        )
        return [UserActivity.model_validate(r) for r in rows]

    async def get_leaderboard(self, limit: int = 50) -> list[LeaderboardEntry]:
        """Users by canonical points, highest first. Ties keep store order."""
        rows = await self.store.select("users", order_by="points", ascending=False, limit=limit)
        return [
            LeaderboardEntry(
                rank=position,
                id=r["id"],
                full_name=r["full_name"],
                avatar_url=r["avatar_url"],
                points=r["points"],
            )
            for position, r in enumerate(rows, start=1)
        ]

    async def reconcile_user_points(self, user_id: str, repair: bool = False) -> PointsDrift:
        """Compare ``users.points`` and ``user_stats.total_points`` with the activity ledger.

        ``users.points`` is incremented atomically and is treated as the
        reference. With ``repair=True`` a drifted stats row is overwritten
        with it.
        """
        user, stats, activities = await asyncio.gather(
            self.store.select_one("users", filters={"id": user_id}),
            self.store.select_one("user_stats", filters={"user_id": user_id}),
            self.store.select("user_activities", filters={"user_id": user_id}),
        )
        if user is None:
            raise RecordNotFoundError(f"User not found: {user_id}", table="users", operation="select")

        user_points = user["points"]
        stats_points = stats["total_points"] if stats else None
        ledger_points = sum(a["points_earned"] for a in activities)
        in_sync = user_points == ledger_points and stats_points in (None, user_points)

        drift = PointsDrift(
            user_id=user_id,
            user_points=user_points,
            stats_total_points=stats_points,
            ledger_points=ledger_points,
            in_sync=in_sync,
        )
        if in_sync:
            return drift

        logger.warning(
            "Point drift for %s: users.points=%d user_stats.total_points=%s ledger=%d",
            user_id,
            user_points,
            stats_points,
            ledger_points,
        )
        if repair and stats is not None and stats_points != user_points:
            await self.store.update(
                "user_stats",
                filters={"user_id": user_id},
                values={"total_points": user_points, "updated_at": utcnow()},
            )
            drift.repaired = True
        return drift
