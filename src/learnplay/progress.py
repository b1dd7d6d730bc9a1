"""Per-item progress tracking shared by games and study materials."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from learnplay.db.models import utcnow
from learnplay.store import TableStore

ITEM_TYPES = frozenset({"game", "study_material"})


class UserProgress(BaseModel):
    id: str
    user_id: str
    item_type: str
    item_id: str
    progress_percentage: int
    completed: bool
    completed_at: datetime | None = None
    last_accessed_at: datetime | None = None


async def track_progress(
    store: TableStore,
    user_id: str,
    item_type: str,
    item_id: str,
    progress_percentage: int,
) -> UserProgress:
    """Upsert progress for (user, item_type, item_id).

    ``completed`` mirrors ``progress_percentage >= 100``. ``completed_at``
    is stamped on the first completed write and kept from then on, even if
    a later write lowers the percentage. The stamp is kept by the upsert
    itself, so racing first completions agree on one value.
    """
    if item_type not in ITEM_TYPES:
        raise ValueError(f"Invalid item type: {item_type}")

    completed = progress_percentage >= 100
    now = utcnow()

    row = await store.upsert(
        "user_progress",
        {
            "user_id": user_id,
            "item_type": item_type,
            "item_id": item_id,
            "progress_percentage": progress_percentage,
            "completed": completed,
            "completed_at": now if completed else None,
            "last_accessed_at": now,
        },
        on_conflict=("user_id", "item_type", "item_id"),
        keep_existing=("completed_at",),
    )
    return UserProgress.model_validate(row)


async def get_progress(store: TableStore, user_id: str, item_type: str, item_id: str) -> UserProgress | None:
    row = await store.select_one(
        "user_progress",
        filters={"user_id": user_id, "item_type": item_type, "item_id": item_id},
    )
    return UserProgress.model_validate(row) if row else None
