"""Quiz play-through state machine.

A session moves through ``ANSWERING(i) -> SHOWING_EXPLANATION(i)`` for each
question and ends in ``FINISHED``, either after the last question or when
the time limit runs out. ``on_complete(score, time_elapsed)`` fires exactly
once, whichever path finishes the quiz first.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from learnplay.points import round_half_up

if TYPE_CHECKING:
    from learnplay.achievements.notifier import AchievementNotifier
    from learnplay.games.schemas import Game
    from learnplay.games.service import GameService

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[int, int], Awaitable[Any] | None]

# (minimum score, grade, message), checked top down
GRADES: tuple[tuple[int, str, str], ...] = (
    (100, "A+", "Perfect! You aced it!"),
    (90, "A", "Excellent performance!"),
    (80, "B+", "Great work!"),
    (70, "B", "Nice job!"),
    (60, "C+", "Good effort!"),
    (0, "C", "Keep studying!"),
)

_background_tasks: set[asyncio.Task[Any]] = set()


class QuizQuestion(BaseModel):
    question: str
    options: list[str] = Field(min_length=1)
    correct_answer: int
    explanation: str | None = None


class QuizPhase(str, enum.Enum):
    ANSWERING = "answering"
    SHOWING_EXPLANATION = "showing_explanation"
    FINISHED = "finished"


class QuizResult(BaseModel):
    final_score: int
    correct: int
    total: int
    time_elapsed: int
    average_time_per_question: int
    grade: str
    message: str


def grade_for(score: int) -> tuple[str, str]:
    """Letter grade and message for a 0-100 score."""
    for minimum, grade, message in GRADES:
        if score >= minimum:
            return grade, message
    return GRADES[-1][1], GRADES[-1][2]


def format_time(seconds: int) -> str:
    """Render seconds as ``m:ss``.

    >>> format_time(75)
    '1:15'
    >>> format_time(5)
    '0:05'
    """
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Quiz completion callback failed", exc_info=exc)


def _schedule(awaitable: Awaitable[Any]) -> None:
    """Run an async completion callback as a detached task on the running loop.

    Without a running loop the callback cannot run: it is closed and logged.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        logger.error("Quiz completion callback dropped: finish() was called outside the event loop")
        return

    task = asyncio.ensure_future(awaitable)
    _background_tasks.add(task)
    task.add_done_callback(_log_task_failure)


class QuizSession:
    """One play-through of a question list."""

    def __init__(
        self,
        questions: Sequence[QuizQuestion],
        on_complete: CompletionCallback,
        time_limit: int | None = None,
    ) -> None:
        self.questions = list(questions)
        self.on_complete = on_complete
        self.time_limit = time_limit

        self.phase = QuizPhase.ANSWERING if self.questions else QuizPhase.FINISHED
        self.current_index = 0
        self.selected_answer: int | None = None
        self.correct_count = 0
        self.time_elapsed = 0
        self.final_score: int | None = None

    @property
    def is_finished(self) -> bool:
        return self.phase is QuizPhase.FINISHED

    @property
    def current_question(self) -> QuizQuestion | None:
        if self.is_finished:
            return None
        return self.questions[self.current_index]

    @property
    def total(self) -> int:
        return len(self.questions)

    def select_answer(self, index: int) -> bool | None:
        """Answer the current question.

        Returns whether the answer was right, or None when the session is
        not waiting for an answer (already answered, or finished).
        """
        if self.phase is not QuizPhase.ANSWERING:
            return None

        self.selected_answer = index
        correct = index == self.questions[self.current_index].correct_answer
        if correct:
            self.correct_count += 1
        self.phase = QuizPhase.SHOWING_EXPLANATION
        return correct

    def advance(self) -> None:
        """Move past the explanation to the next question, or finish."""
        if self.phase is not QuizPhase.SHOWING_EXPLANATION:
            return

        if self.current_index < len(self.questions) - 1:
            self.current_index += 1
            self.selected_answer = None
            self.phase = QuizPhase.ANSWERING
        else:
            self.finish()

    def tick(self) -> None:
        """Count one second; finish when the time limit is reached."""
        if self.final_score is not None:
            return
        self.time_elapsed += 1
        if self.time_limit and self.time_elapsed >= self.time_limit:
            self.finish()

    def finish(self) -> int:
        """End the quiz and report the score. Safe to call more than once.

        An async ``on_complete`` is scheduled on the running event loop, so
        call this from inside the loop when the callback is a coroutine.
        """
        if self.final_score is not None:
            return self.final_score

        self.phase = QuizPhase.FINISHED
        self.final_score = round_half_up(self.correct_count / self.total * 100) if self.total else 0

        result = self.on_complete(self.final_score, self.time_elapsed)
        if inspect.isawaitable(result):
            _schedule(result)
        return self.final_score

    def result(self) -> QuizResult:
        """Summary of a finished session."""
        if self.final_score is None:
            msg = "Quiz is not finished"
            raise RuntimeError(msg)
        grade, message = grade_for(self.final_score)
        return QuizResult(
            final_score=self.final_score,
            correct=self.correct_count,
            total=self.total,
            time_elapsed=self.time_elapsed,
            average_time_per_question=self.time_elapsed // self.total if self.total else 0,
            grade=grade,
            message=message,
        )


async def run_ticker(session: QuizSession, interval: float = 1.0) -> None:
    """Call ``session.tick()`` every ``interval`` seconds until it finishes."""
    while not session.is_finished:
        await asyncio.sleep(interval)
        if session.is_finished:
            break
        session.tick()


def completion_handler(
    game_service: GameService,
    notifier: AchievementNotifier,
    user_id: str,
    game: Game,
) -> Callable[[int, int], Awaitable[int]]:
    """Build an ``on_complete`` that records the play-through and checks achievements."""

    async def on_complete(score: int, time_elapsed: int) -> int:
        points = await game_service.complete_game(user_id, game.id, score, game)
        logger.info("Quiz for %s finished in %s: %d points", game.title, format_time(time_elapsed), points)
        await notifier.check_achievements(user_id)
        return points

    return on_complete
