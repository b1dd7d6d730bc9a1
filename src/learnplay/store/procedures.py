"""Server-side procedures reachable through ``TableStore.rpc``.

Each procedure runs as a single statement inside the store's per-call
transaction, so it is atomic on its own.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from learnplay.db.models import User

Procedure = Callable[[AsyncSession, Mapping[str, Any]], Awaitable[Any]]

_users = User.__table__


async def add_user_points(session: AsyncSession, params: Mapping[str, Any]) -> int | None:
    """Atomically add ``points_to_add`` to ``users.points``.

    Returns the new total, or None when the user row does not exist.
    """
    result = await session.execute(
        update(_users)
        .where(_users.c.id == params["user_id"])
        .values(points=_users.c.points + int(params["points_to_add"]))
        .returning(_users.c.points)
    )
    return result.scalar_one_or_none()


DEFAULT_PROCEDURES: dict[str, Procedure] = {
    "add_user_points": add_user_points,
}
