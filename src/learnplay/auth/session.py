"""Explicit current-user context for long-running consumers.

Background loops such as the achievement poller read the signed-in user
from an ``AuthSession`` passed to them instead of a process-wide global.
Observers are told whenever the user changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

SessionListener = Callable[[str | None], None]


class AuthSession:
    """Holds the signed-in user id, or None when signed out."""

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id
        self._listeners: list[SessionListener] = []

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def set_user(self, user_id: str | None) -> None:
        if user_id == self._user_id:
            return
        self._user_id = user_id
        for listener in list(self._listeners):
            try:
                listener(user_id)
            except Exception:
                logger.exception("Auth session listener failed")

    def sign_out(self) -> None:
        self.set_user(None)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
