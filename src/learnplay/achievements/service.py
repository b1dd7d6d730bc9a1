"""Achievement progress and the unlock pass.

Achievements are points thresholds against ``user_stats.total_points``.
Earning is recorded by inserting into ``user_achievements``, whose unique
(user_id, achievement_id) constraint is the only guard against double
unlocks: two concurrent passes may both try, one insert wins and the other
sees a ``UniqueViolationError``.
"""

from __future__ import annotations

import asyncio
import logging

from learnplay.achievements.schemas import (
    AchievementDefinition,
    AchievementProgress,
    AchievementStats,
    UserAchievement,
)
from learnplay.points import round_half_up
from learnplay.store import StoreError, TableStore, UniqueViolationError
from learnplay.users.schemas import UserStats

logger = logging.getLogger(__name__)


def compute_progress(total_points: int, points_required: int) -> tuple[int, int]:
    """Return ``(progress, progress_percentage)`` for one threshold.

    A zero threshold is always complete.

    >>> compute_progress(80, 100)
    (80, 80)
    >>> compute_progress(250, 100)
    (100, 100)
    >>> compute_progress(0, 0)
    (0, 100)
    """
    progress = min(total_points, points_required)
    if points_required <= 0:
        return progress, 100
    return progress, round_half_up(progress / points_required * 100)


class AchievementService:
    """Reads achievement state and unlocks thresholds the user has reached."""

    def __init__(self, store: TableStore) -> None:
        self.store = store

    async def get_all_achievements(self) -> list[AchievementDefinition]:
        rows = await self.store.select("achievement_definitions", order_by="points_required")
        return [AchievementDefinition.model_validate(r) for r in rows]

    async def get_achievements_by_category(self, category: str) -> list[AchievementDefinition]:
        rows = await self.store.select(
            "achievement_definitions",
            filters={"category": category},
            order_by="points_required",
        )
        return [AchievementDefinition.model_validate(r) for r in rows]

    async def get_user_achievements(self, user_id: str, limit: int | None = None) -> list[UserAchievement]:
        """Earned achievements, newest first, each with its definition."""
        rows = await self.store.select(
            "user_achievements",
            filters={"user_id": user_id},
            order_by="earned_at",
            ascending=False,
            limit=limit,
        )
        if not rows:
            return []

        definition_ids = list({r["achievement_id"] for r in rows})
        definitions = await self.store.select("achievement_definitions", filters={"id": definition_ids})
        by_id = {d["id"]: AchievementDefinition.model_validate(d) for d in definitions}
        return [UserAchievement(**r, achievement=by_id.get(r["achievement_id"])) for r in rows]

    async def get_recent_achievements(self, user_id: str, limit: int = 5) -> list[UserAchievement]:
        return await self.get_user_achievements(user_id, limit=limit)

    async def get_user_stats(self, user_id: str) -> UserStats | None:
        row = await self.store.select_one("user_stats", filters={"user_id": user_id})
        return UserStats.model_validate(row) if row else None

    async def get_user_achievement_progress(self, user_id: str) -> list[AchievementProgress]:
        """Every definition with the user's progress towards it.

        The three reads are independent and run concurrently. A user with
        no stats row counts as 0 points.
        """
        definitions, earned, stats = await asyncio.gather(
            self.get_all_achievements(),
            self.get_user_achievements(user_id),
            self.get_user_stats(user_id),
        )
        total_points = stats.total_points if stats else 0
        earned_at = {ua.achievement_id: ua.earned_at for ua in earned}

        progress_list = []
        for definition in definitions:
            progress, percentage = compute_progress(total_points, definition.points_required)
            progress_list.append(
                AchievementProgress(
                    achievement=definition,
                    earned=definition.id in earned_at,
                    earned_at=earned_at.get(definition.id),
                    progress=progress,
                    progress_percentage=percentage,
                )
            )
        return progress_list

    async def check_and_unlock_achievements(self, user_id: str) -> list[AchievementDefinition]:
        """Unlock every reached, unearned threshold in one pass.

        Returns the definitions unlocked by this call. A failed insert
        (already earned by a concurrent pass, or a store error) is logged
        and skipped; the pass carries on with the next definition.
        """
        progress = await self.get_user_achievement_progress(user_id)

        unlocked: list[AchievementDefinition] = []
        for item in progress:
            if item.earned or item.progress_percentage < 100:
                continue
            try:
                await self.store.insert(
                    "user_achievements",
                    {"user_id": user_id, "achievement_id": item.achievement.id},
                )
            except UniqueViolationError:
                logger.info("Achievement %s already earned by %s", item.achievement.name, user_id)
                continue
            except StoreError:
                logger.exception("Failed to unlock achievement %s for %s", item.achievement.name, user_id)
                continue
            logger.info("User %s unlocked achievement %s", user_id, item.achievement.name)
            unlocked.append(item.achievement)
        return unlocked

    async def get_achievement_stats(self, user_id: str) -> AchievementStats:
        definitions, earned = await asyncio.gather(
            self.get_all_achievements(),
            self.get_user_achievements(user_id),
        )
        total = len(definitions)
        earned_count = len(earned)
        percentage = round_half_up(earned_count / total * 100) if total else 0
        return AchievementStats(total=total, earned=earned_count, percentage=percentage)
