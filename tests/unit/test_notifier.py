"""Achievement toasts: delivery, error containment and polling."""

from __future__ import annotations

import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from learnplay.achievements.notifier import TOAST_TITLE, AchievementNotifier, RedisToastPublisher
from learnplay.achievements.schemas import AchievementDefinition, Toast
from learnplay.auth.session import AuthSession

pytestmark = pytest.mark.asyncio


def _definition(name: str, description: str, points: int) -> AchievementDefinition:
    return AchievementDefinition(
        id=f"ach-{points}",
        name=name,
        description=description,
        category="points",
        points_required=points,
    )


@pytest.fixture
def service() -> AsyncMock:
    mock = AsyncMock()
    mock.check_and_unlock_achievements.return_value = [
        _definition("Century Club", "Earn 100 points", 100),
        _definition("Rising Scholar", "Earn 1,000 points", 1000),
    ]
    return mock


async def test_one_toast_per_unlock(service):
    notifier = AchievementNotifier(service)
    received: list[tuple[str, Toast]] = []
    notifier.subscribe(lambda user_id, toast: received.append((user_id, toast)))

    toasts = await notifier.check_achievements("user-1")

    assert len(toasts) == 2
    assert toasts[0] == Toast(title=TOAST_TITLE, description="Century Club - Earn 100 points", duration_ms=5000)
    assert [t.description for _, t in received] == [
        "Century Club - Earn 100 points",
        "Rising Scholar - Earn 1,000 points",
    ]
    assert {user for user, _ in received} == {"user-1"}


async def test_no_user_is_noop(service):
    notifier = AchievementNotifier(service)

    assert await notifier.check_achievements(None) == []
    assert await notifier.check_achievements("") == []
    service.check_and_unlock_achievements.assert_not_called()


async def test_unlock_failure_is_logged_not_raised(service, caplog):
    service.check_and_unlock_achievements.side_effect = RuntimeError("store unreachable")
    notifier = AchievementNotifier(service)

    with caplog.at_level(logging.ERROR, logger="learnplay.achievements.notifier"):
        toasts = await notifier.check_achievements("user-1")

    assert toasts == []
    assert "Error checking achievements" in caplog.text


async def test_failing_listener_does_not_block_others(service):
    notifier = AchievementNotifier(service)
    broken = MagicMock(side_effect=RuntimeError("boom"))
    healthy = AsyncMock()
    notifier.subscribe(broken)
    notifier.subscribe(healthy)

    toasts = await notifier.check_achievements("user-1")

    assert len(toasts) == 2
    assert broken.call_count == 2
    assert healthy.await_count == 2


async def test_unsubscribe(service):
    notifier = AchievementNotifier(service)
    listener = MagicMock()
    unsubscribe = notifier.subscribe(listener)
    unsubscribe()
    unsubscribe()

    await notifier.check_achievements("user-1")

    listener.assert_not_called()


async def test_toast_duration_is_configurable(service):
    notifier = AchievementNotifier(service, toast_duration_ms=2500)
    toast = await notifier.show_achievement_toast("user-1", _definition("Welcome", "Join", 0))
    assert toast.duration_ms == 2500


class TestRedisToastPublisher:
    async def test_publishes_to_user_channel(self):
        redis = AsyncMock()
        publisher = RedisToastPublisher(redis)
        toast = Toast(title=TOAST_TITLE, description="Century Club - Earn 100 points")

        await publisher("user-1", toast)

        channel, payload = redis.publish.await_args.args
        assert channel == "ws:user:user-1"
        assert json.loads(payload) == {"event": "achievement_unlocked", "data": toast.model_dump()}

    async def test_publish_failure_is_swallowed(self):
        redis = AsyncMock()
        redis.publish.side_effect = ConnectionError("redis down")
        publisher = RedisToastPublisher(redis)

        await publisher("user-1", Toast(title=TOAST_TITLE, description="x"))

    async def test_no_redis_is_noop(self):
        await RedisToastPublisher(None)("user-1", Toast(title=TOAST_TITLE, description="x"))


class TestPoller:
    async def test_polls_signed_in_user_until_stopped(self, service):
        stop = asyncio.Event()
        calls: list[str] = []

        async def check(user_id):
            calls.append(user_id)
            if len(calls) == 2:
                stop.set()
            return []

        service.check_and_unlock_achievements.side_effect = check
        notifier = AchievementNotifier(service)

        await asyncio.wait_for(notifier.run_poller(AuthSession("user-1"), 0.01, stop), timeout=2)

        assert calls == ["user-1", "user-1"]

    async def test_follows_session_changes(self, service):
        stop = asyncio.Event()
        session = AuthSession(None)
        calls: list[str] = []

        async def check(user_id):
            calls.append(user_id)
            stop.set()
            return []

        service.check_and_unlock_achievements.side_effect = check
        notifier = AchievementNotifier(service)
        poller = asyncio.create_task(notifier.run_poller(session, 0.01, stop))

        await asyncio.sleep(0.05)
        assert calls == []
        session.set_user("user-2")
        await asyncio.wait_for(poller, timeout=2)

        assert calls == ["user-2"]
