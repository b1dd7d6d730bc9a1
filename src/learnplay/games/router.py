"""Game catalog, scores and completion endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from learnplay.achievements.notifier import AchievementNotifier
from learnplay.auth.dependencies import get_current_user_id
from learnplay.config import get_settings
from learnplay.dependencies import get_game_service, get_notifier
from learnplay.games.schemas import (
    CategoriesResponse,
    CompleteGameRequest,
    CompleteGameResponse,
    GameFilters,
    GameListResponse,
    GameScore,
    HighScoresResponse,
    UserGameStats,
)
from learnplay.games.schemas import Game as GameResponse
from learnplay.games.service import GameService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Games"])


@router.get("/games", response_model=GameListResponse)
async def list_games(
    category: str | None = Query(None),
    difficulty: str | None = Query(None),
    search: str | None = Query(None, max_length=100),
    games: GameService = Depends(get_game_service),
) -> GameListResponse:
    """List the game catalog, optionally filtered."""
    filters = GameFilters(category=category, difficulty=difficulty, search_query=search)
    return GameListResponse(games=await games.get_all_games(filters))


@router.get("/games/categories", response_model=CategoriesResponse)
async def list_categories(
    games: GameService = Depends(get_game_service),
) -> CategoriesResponse:
    return CategoriesResponse(categories=await games.get_categories())


@router.get("/games/stats/me", response_model=UserGameStats)
async def my_game_stats(
    user_id: str = Depends(get_current_user_id),
    games: GameService = Depends(get_game_service),
) -> UserGameStats:
    """Games played, average and best score across all games."""
    return await games.get_user_game_stats(user_id)


@router.get("/games/{game_id}", response_model=GameResponse)
async def get_game(
    game_id: str,
    games: GameService = Depends(get_game_service),
) -> GameResponse:
    return await games.get_game_by_id(game_id)


@router.post("/games/{game_id}/complete", response_model=CompleteGameResponse)
async def complete_game(
    game_id: str,
    body: CompleteGameRequest,
    user_id: str = Depends(get_current_user_id),
    games: GameService = Depends(get_game_service),
    notifier: AchievementNotifier = Depends(get_notifier),
) -> CompleteGameResponse:
    """Record a finished play-through, award points and check achievements.

    The response carries the toasts for any achievement this completion
    unlocked.
    """
    game = await games.get_game_by_id(game_id)
    points = await games.complete_game(user_id, game_id, body.score, game)
    logger.info("Game %s completed by %s in %ds", game_id, user_id, body.time_elapsed)
    toasts = await notifier.check_achievements(user_id)
    return CompleteGameResponse(game_id=game_id, points_earned=points, achievements=toasts)


@router.get("/games/{game_id}/scores", response_model=HighScoresResponse)
async def high_scores(
    game_id: str,
    limit: int | None = Query(None, ge=1, le=100),
    games: GameService = Depends(get_game_service),
) -> HighScoresResponse:
    limit = limit or get_settings().high_scores_limit
    return HighScoresResponse(scores=await games.get_high_scores(game_id, limit=limit))


@router.get("/games/{game_id}/scores/me", response_model=GameScore | None)
async def my_high_score(
    game_id: str,
    user_id: str = Depends(get_current_user_id),
    games: GameService = Depends(get_game_service),
) -> GameScore | None:
    """The caller's best score for a game, or null if never played."""
    return await games.get_user_high_score(user_id, game_id)
