"""Turn newly unlocked achievements into toasts.

The notifier never raises: a failed unlock pass or a failing listener is
logged and the caller carries on. Listeners are registered with
``subscribe`` and receive ``(user_id, toast)``; they may be plain
functions or coroutines.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from learnplay.achievements.schemas import AchievementDefinition, Toast

if TYPE_CHECKING:
    from learnplay.achievements.service import AchievementService
    from learnplay.auth.session import AuthSession

logger = logging.getLogger(__name__)

TOAST_TITLE = "Achievement Unlocked!"

ToastListener = Callable[[str, Toast], Awaitable[None] | None]


class AchievementNotifier:
    """Runs the unlock pass for a user and fans the results out as toasts."""

    def __init__(self, achievements: AchievementService, toast_duration_ms: int = 5000) -> None:
        self.achievements = achievements
        self.toast_duration_ms = toast_duration_ms
        self._listeners: list[ToastListener] = []

    def subscribe(self, listener: ToastListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def build_toast(self, achievement: AchievementDefinition) -> Toast:
        return Toast(
            title=TOAST_TITLE,
            description=f"{achievement.name} - {achievement.description}",
            duration_ms=self.toast_duration_ms,
        )

    async def show_achievement_toast(self, user_id: str, achievement: AchievementDefinition) -> Toast:
        """Deliver one toast to every listener."""
        toast = self.build_toast(achievement)
        for listener in list(self._listeners):
            try:
                result = listener(user_id, toast)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Achievement toast listener failed for %s", user_id)
        return toast

    async def check_achievements(self, user_id: str | None) -> list[Toast]:
        """Unlock what the user has reached and toast each new achievement.

        Returns the toasts shown; empty when signed out or when the unlock
        pass failed.
        """
        if not user_id:
            return []

        try:
            unlocked = await self.achievements.check_and_unlock_achievements(user_id)
        except Exception:
            logger.exception("Error checking achievements for %s", user_id)
            return []

        return [await self.show_achievement_toast(user_id, a) for a in unlocked]

    async def run_poller(
        self,
        session: AuthSession,
        interval_seconds: float,
        stop_event: asyncio.Event,
    ) -> None:
        """Check the signed-in user's achievements every ``interval_seconds``.

        The user is re-read from ``session`` on each tick, so signing in or
        out takes effect on the next check. Returns once ``stop_event`` is set.
        """
        while not stop_event.is_set():
            await self.check_achievements(session.user_id)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                continue


class RedisToastPublisher:
    """Listener that publishes toasts to ``ws:user:{user_id}``.

    Subscribers on the per-user channel forward the payload to the user's
    open connections. Publish failures are logged only.
    """

    def __init__(self, redis: object | None) -> None:
        self.redis = redis

    async def __call__(self, user_id: str, toast: Toast) -> None:
        if self.redis is None:
            return

        payload = {
            "event": "achievement_unlocked",
            "data": toast.model_dump(),
        }
        try:
            await self.redis.publish(  # type: ignore[attr-defined]
                f"ws:user:{user_id}",
                json.dumps(payload),
            )
        except Exception:
            logger.warning("Failed to push achievement toast via ws:user:%s", user_id, exc_info=True)
