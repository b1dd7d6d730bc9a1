"""Shared FastAPI dependencies."""

from fastapi import Depends

from learnplay.achievements.notifier import AchievementNotifier, RedisToastPublisher
from learnplay.achievements.service import AchievementService
from learnplay.config import get_settings
from learnplay.database import get_session_factory
from learnplay.games.service import GameService
from learnplay.redis_client import get_redis
from learnplay.store import SqlTableStore, TableStore
from learnplay.study.service import StudyService
from learnplay.users.service import UserService


def get_store() -> TableStore:
    """Table store over the application's session factory."""
    return SqlTableStore(get_session_factory())


def get_game_service(store: TableStore = Depends(get_store)) -> GameService:
    return GameService(store)


def get_study_service(store: TableStore = Depends(get_store)) -> StudyService:
    return StudyService(store)


def get_achievement_service(store: TableStore = Depends(get_store)) -> AchievementService:
    return AchievementService(store)


def get_user_service(store: TableStore = Depends(get_store)) -> UserService:
    return UserService(store)


def get_notifier(
    achievements: AchievementService = Depends(get_achievement_service),
) -> AchievementNotifier:
    """Per-request notifier; publishes toasts to Redis when it is available."""
    settings = get_settings()
    notifier = AchievementNotifier(achievements, toast_duration_ms=settings.achievement_toast_duration_ms)
    redis = get_redis()
    if redis is not None:
        notifier.subscribe(RedisToastPublisher(redis))
    return notifier
