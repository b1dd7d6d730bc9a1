"""Game catalog, scores and the game completion flow."""

from __future__ import annotations

import logging

from learnplay.games.schemas import (
    Game,
    GameFilters,
    GameScore,
    HighScoreEntry,
    ScorePlayer,
    UserGameStats,
)
from learnplay.points import (
    CompletionError,
    add_user_points,
    calculate_points,
    clamp_percentage,
    completion_step,
    increment_user_stats,
    log_activity,
    round_half_up,
)
from learnplay.progress import UserProgress, track_progress
from learnplay.store import RecordNotFoundError, TableStore

logger = logging.getLogger(__name__)

GAME_COMPLETED_ACTIVITY = "game_completed"


class GameCompletionError(CompletionError):
    """``complete_game`` failed after the score row was written."""


class GameService:
    """Game catalog reads and the multi-step completion flow."""

    def __init__(self, store: TableStore) -> None:
        self.store = store

    # --- Catalog ---

    async def get_all_games(self, filters: GameFilters | None = None) -> list[Game]:
        """List games, optionally filtered by category, difficulty and free-text search."""
        filters = filters or GameFilters()
        equality: dict[str, str] = {}
        if filters.category:
            equality["category"] = filters.category
        if filters.difficulty:
            equality["difficulty"] = filters.difficulty
        search = (filters.search_query, ("title", "description")) if filters.search_query else None

        rows = await self.store.select("games", filters=equality, search=search, order_by="title")
        return [Game.model_validate(r) for r in rows]

    async def get_game_by_id(self, game_id: str) -> Game:
        """Fetch one game. Raises ``RecordNotFoundError`` if missing."""
        row = await self.store.select_one("games", filters={"id": game_id})
        if row is None:
            raise RecordNotFoundError(f"Game not found: {game_id}", table="games", operation="select")
        return Game.model_validate(row)

    async def get_categories(self) -> list[str]:
        rows = await self.store.select("games", order_by="category")
        return sorted({r["category"] for r in rows})

    # --- Scores ---

    async def get_high_scores(self, game_id: str, limit: int = 10) -> list[HighScoreEntry]:
        """Top scores for a game, each with the player's public profile."""
        rows = await self.store.select(
            "game_scores",
            filters={"game_id": game_id},
            order_by="score",
            ascending=False,
            limit=limit,
        )
        if not rows:
            return []

        user_ids = list({r["user_id"] for r in rows})
        users = await self.store.select("users", filters={"id": user_ids})
        players = {
            u["id"]: ScorePlayer(id=u["id"], full_name=u["full_name"], avatar_url=u["avatar_url"])
            for u in users
        }
        return [HighScoreEntry(**r, user=players.get(r["user_id"])) for r in rows]

    async def get_user_high_score(self, user_id: str, game_id: str) -> GameScore | None:
        rows = await self.store.select(
            "game_scores",
            filters={"user_id": user_id, "game_id": game_id},
            order_by="score",
            ascending=False,
            limit=1,
        )
        return GameScore.model_validate(rows[0]) if rows else None

    async def save_game_score(self, user_id: str, game_id: str, score: int) -> GameScore:
        """Append a score row. Duplicates are expected; history is kept."""
        row = await self.store.insert(
            "game_scores",
            {"user_id": user_id, "game_id": game_id, "score": score},
        )
        return GameScore.model_validate(row)

    async def get_user_game_stats(self, user_id: str) -> UserGameStats:
        rows = await self.store.select("game_scores", filters={"user_id": user_id})
        scores = [r["score"] for r in rows]
        if not scores:
            return UserGameStats(total_games_played=0, average_score=0, highest_score=0)
        return UserGameStats(
            total_games_played=len(scores),
            average_score=round_half_up(sum(scores) / len(scores)),
            highest_score=max(scores),
        )

    # --- Progress ---

    async def track_progress(self, user_id: str, game_id: str, progress_percentage: int) -> UserProgress:
        return await track_progress(self.store, user_id, "game", game_id, progress_percentage)

    @staticmethod
    def calculate_points(score: float, max_points: int) -> int:
        return calculate_points(score, max_points)

    # --- Completion ---

    async def complete_game(self, user_id: str, game_id: str, raw_score: float, game: Game) -> int:
        """Record a finished play-through and award points.

        Steps run in order, one store call each:

        1. insert the score row
        2. bump ``user_stats`` (skipped when the user has no stats row)
        3. ``add_user_points`` on the user's canonical counter
        4. log a ``game_completed`` activity
        5. mark progress for the game at 100%

        There is no rollback. A failure in step 1 raises the ``StoreError``
        as is; a later failure raises ``GameCompletionError`` naming the
        step, with earlier steps left committed. Calling this twice for
        the same play-through awards the points twice.

        Returns the points earned, computed from ``raw_score`` and
        ``game.points_reward`` alone.
        """
        score = clamp_percentage(raw_score)
        points_earned = calculate_points(score, game.points_reward)

        await self.save_game_score(user_id, game_id, round_half_up(score))

        with completion_step("user_stats", points_earned, GameCompletionError):
            await increment_user_stats(self.store, user_id, points_earned, "games_played")

        with completion_step("add_user_points", points_earned, GameCompletionError):
            await add_user_points(self.store, user_id, points_earned)

        with completion_step("user_activities", points_earned, GameCompletionError):
            await log_activity(self.store, user_id, GAME_COMPLETED_ACTIVITY, game.title, points_earned)

        with completion_step("user_progress", points_earned, GameCompletionError):
            await self.track_progress(user_id, game_id, 100)

        logger.info("User %s completed game %s: %d points", user_id, game_id, points_earned)
        return points_earned
