"""Point arithmetic and the shared point-accrual steps.

A completion flow writes to two aggregates: the ``user_stats`` row
(read-modify-write) and ``users.points`` (atomic ``add_user_points``
procedure). The two writes are separate store calls and are not atomic
with each other; ``learnplay.users.service.reconcile_user_points`` detects
drift between them.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from contextlib import contextmanager

from learnplay.db.models import utcnow
from learnplay.store import Row, StoreError, TableStore

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return math.floor(value + 0.5)


def clamp_percentage(score: float) -> float:
    return min(100.0, max(0.0, score))


def calculate_points(score: float, max_points: int) -> int:
    """Points for a percentage score against a catalog maximum.

    >>> calculate_points(50, 150)
    75
    >>> calculate_points(150, 100)
    100
    """
    return round_half_up(clamp_percentage(score) / 100 * max_points)


class CompletionError(Exception):
    """A completion flow failed part-way.

    Steps before ``step`` stay committed; nothing is rolled back.
    ``points_earned`` is the value the flow intended to award.
    """

    def __init__(self, step: str, points_earned: int) -> None:
        super().__init__(f"Completion failed at step '{step}' ({points_earned} points intended)")
        self.step = step
        self.points_earned = points_earned


@contextmanager
def completion_step(step: str, points_earned: int, error_cls: type[CompletionError]) -> Iterator[None]:
    """Turn a store failure inside a flow step into ``error_cls``."""
    try:
        yield
    except StoreError as exc:
        logger.error("Completion step %s failed: %s", step, exc)
        raise error_cls(step, points_earned) from exc


async def increment_user_stats(store: TableStore, user_id: str, points: int, counter: str) -> Row | None:
    """Add ``points`` to ``user_stats.total_points`` and bump ``counter``.

    Skipped (returns None) when the user has no stats row; the row is
    created at profile registration, never here.
    """
    stats = await store.select_one("user_stats", filters={"user_id": user_id})
    if stats is None:
        logger.info("No user_stats row for %s; skipping stats update", user_id)
        return None

    rows = await store.update(
        "user_stats",
        filters={"user_id": user_id},
        values={
            "total_points": stats["total_points"] + points,
            counter: stats[counter] + 1,
            "updated_at": utcnow(),
        },
    )
    return rows[0] if rows else None


async def add_user_points(store: TableStore, user_id: str, points: int) -> int | None:
    """Increment the canonical ``users.points`` counter server-side."""
    return await store.rpc("add_user_points", {"user_id": user_id, "points_to_add": points})


async def log_activity(store: TableStore, user_id: str, activity_type: str, title: str, points: int) -> Row:
    """Append a ``user_activities`` entry."""
    return await store.insert(
        "user_activities",
        {
            "user_id": user_id,
            "activity_type": activity_type,
            "activity_title": title,
            "points_earned": points,
        },
    )
