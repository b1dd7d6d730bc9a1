"""Study material catalog and the study completion flow."""

from __future__ import annotations

import logging

from learnplay.points import (
    CompletionError,
    add_user_points,
    completion_step,
    increment_user_stats,
    log_activity,
)
from learnplay.progress import UserProgress, get_progress, track_progress
from learnplay.store import RecordNotFoundError, TableStore
from learnplay.study.schemas import Bookmark, BookmarkedMaterial, StudyMaterial

logger = logging.getLogger(__name__)

STUDY_COMPLETED_ACTIVITY = "study_completed"
ITEM_TYPE = "study_material"

# Catalog difficulties sort by effort, not alphabetically
DIFFICULTY_ORDER = {"Easy": 0, "Medium": 1, "Hard": 2}


class StudyCompletionError(CompletionError):
    """``complete_study_session`` failed part-way."""


class StudyService:
    """Study material reads and completion."""

    def __init__(self, store: TableStore) -> None:
        self.store = store

    async def get_all_materials(
        self,
        subject: str | None = None,
        difficulty: str | None = None,
    ) -> list[StudyMaterial]:
        filters: dict[str, str] = {}
        if subject:
            filters["subject"] = subject
        if difficulty:
            filters["difficulty"] = difficulty
        rows = await self.store.select("study_materials", filters=filters, order_by="title")
        return [StudyMaterial.model_validate(r) for r in rows]

    async def get_material_by_id(self, material_id: str) -> StudyMaterial:
        row = await self.store.select_one("study_materials", filters={"id": material_id})
        if row is None:
            raise RecordNotFoundError(
                f"Study material not found: {material_id}", table="study_materials", operation="select"
            )
        return StudyMaterial.model_validate(row)

    async def get_subjects(self) -> list[str]:
        rows = await self.store.select("study_materials", order_by="subject")
        return sorted({r["subject"] for r in rows})

    async def get_recommended_materials(self, user_id: str, limit: int = 5) -> list[StudyMaterial]:
        """Materials the user has not completed yet, easiest first."""
        progress = await self.store.select(
            "user_progress",
            filters={"user_id": user_id, "item_type": ITEM_TYPE},
        )
        completed_ids = [p["item_id"] for p in progress if p["completed"]]

        rows = await self.store.select("study_materials", exclude={"id": completed_ids}, order_by="title")
        materials = [StudyMaterial.model_validate(r) for r in rows]
        materials.sort(key=lambda m: DIFFICULTY_ORDER.get(m.difficulty, len(DIFFICULTY_ORDER)))
        return materials[:limit]

    async def track_progress(self, user_id: str, material_id: str, progress_percentage: int) -> UserProgress:
        return await track_progress(self.store, user_id, ITEM_TYPE, material_id, progress_percentage)

    async def get_user_progress(self, user_id: str, material_id: str) -> UserProgress | None:
        return await get_progress(self.store, user_id, ITEM_TYPE, material_id)

    # --- Bookmarks ---

    async def get_user_bookmarks(self, user_id: str) -> list[BookmarkedMaterial]:
        """The user's bookmarks, newest first, each with its material."""
        rows = await self.store.select(
            "bookmarks",
            filters={"user_id": user_id},
            order_by="created_at",
            ascending=False,
        )
        if not rows:
            return []

        material_ids = list({r["study_material_id"] for r in rows})
        materials = {
            m["id"]: StudyMaterial.model_validate(m)
            for m in await self.store.select("study_materials", filters={"id": material_ids})
        }
        return [BookmarkedMaterial(**r, material=materials.get(r["study_material_id"])) for r in rows]

    async def add_bookmark(self, user_id: str, material_id: str) -> Bookmark:
        """Bookmark a material. Raises ``UniqueViolationError`` if it is already bookmarked."""
        row = await self.store.insert("bookmarks", {"user_id": user_id, "study_material_id": material_id})
        return Bookmark.model_validate(row)

    async def remove_bookmark(self, user_id: str, material_id: str) -> bool:
        """Drop a bookmark; returns False when there was none."""
        rows = await self.store.delete(
            "bookmarks",
            filters={"user_id": user_id, "study_material_id": material_id},
        )
        return bool(rows)

    async def is_bookmarked(self, user_id: str, material_id: str) -> bool:
        row = await self.store.select_one(
            "bookmarks",
            filters={"user_id": user_id, "study_material_id": material_id},
        )
        return row is not None

    # --- Completion ---

    async def complete_study_session(self, user_id: str, material_id: str, material: StudyMaterial) -> int:
        """Award a study material's full reward.

        Same ordering and failure semantics as ``GameService.complete_game``,
        without the score row: stats (``study_sessions``), user points,
        activity log, progress.
        """
        points_earned = material.points_reward

        with completion_step("user_stats", points_earned, StudyCompletionError):
            await increment_user_stats(self.store, user_id, points_earned, "study_sessions")

        with completion_step("add_user_points", points_earned, StudyCompletionError):
            await add_user_points(self.store, user_id, points_earned)

        with completion_step("user_activities", points_earned, StudyCompletionError):
            await log_activity(self.store, user_id, STUDY_COMPLETED_ACTIVITY, material.title, points_earned)

        with completion_step("user_progress", points_earned, StudyCompletionError):
            await self.track_progress(user_id, material_id, 100)

        logger.info("User %s completed study material %s: %d points", user_id, material_id, points_earned)
        return points_earned
