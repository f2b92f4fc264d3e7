# src/climb/session.py
from __future__ import annotations
import logging
import math
from typing import Any, Callable, List, Optional

from .config import (
    WIDTH, HEIGHT, PLAYER_SPAWN_Y_OFFSET, EXTEND_INTERVAL_S, CLEANUP_INTERVAL_S,
    EXTEND_RATE_PER_S, NEAR_TOP_PX, ANSWER_OFFSET_Y, HEIGHT_PER_QUESTION,
    QUESTION_FETCH_COUNT, CLEANUP_SCREENS, ANSWER_BASE_POINTS
)
from .physics import JumpPhysics, DEFAULT_PHYSICS
from .platforms import PlatformLifecycle, PlatformRecord
from .questions import Question, QuestionHeightTracker, load_question_pool
from .rng import SeededRandom
from .world import WorldBuilder, PatrolCallback

logger = logging.getLogger(__name__)


class GameSession:
    """
    One game: the live platforms, the path builder and the question tracker,
    advanced by a single `update(dt, player_y)` per frame.

    Periodic work (path extension, cleanup) runs off elapsed-time
    accumulators so it does not depend on frame rate. Everything happens on
    the caller's thread; there are no timers or callbacks from elsewhere.
    """
    def __init__(self,
                 screen_width: int = WIDTH, screen_height: int = HEIGHT,
                 physics: JumpPhysics = DEFAULT_PHYSICS,
                 seed: Optional[int] = None, rng=None,
                 on_platform_created: Optional[Callable[[PlatformRecord], Any]] = None,
                 on_platform_destroyed: Optional[Callable[[Any], None]] = None,
                 spawn_patrol_enemy: Optional[PatrolCallback] = None,
                 on_show_question: Optional[Callable[[Question], None]] = None,
                 height_per_question: float = HEIGHT_PER_QUESTION,
                 extend_interval_s: float = EXTEND_INTERVAL_S,
                 cleanup_interval_s: float = CLEANUP_INTERVAL_S,
                 extend_rate_per_s: float = EXTEND_RATE_PER_S,
                 score_multiplier: float = 1.0):
        self.rng = rng if rng is not None else SeededRandom(seed)
        self.seed = getattr(self.rng, "seed", seed)
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.physics = physics
        self.lifecycle = PlatformLifecycle(on_platform_created, on_platform_destroyed,
                                           screen_height=screen_height,
                                           cleanup_screens=CLEANUP_SCREENS)
        self.world = WorldBuilder(self.lifecycle, screen_width, screen_height, physics,
                                  self.rng, spawn_patrol_enemy)
        self.on_show_question = on_show_question
        self.height_per_question = height_per_question
        self.extend_interval_s = extend_interval_s
        self.cleanup_interval_s = cleanup_interval_s
        self.extend_rate_per_s = extend_rate_per_s

        self.tracker: Optional[QuestionHeightTracker] = None
        self.questions: List[Question] = []
        self.elapsed_since_extend = 0.0
        self.elapsed_since_cleanup = 0.0
        self.time_s = 0.0
        self.started = False
        self._pending_answers: List[PlatformRecord] = []
        self._pending_anchor = 0.0

        self.score_multiplier = score_multiplier
        self.score = 0
        self.questions_answered = 0
        self.correct_answers = 0

    @property
    def spawn_y(self) -> float:
        return float(self.screen_height - PLAYER_SPAWN_Y_OFFSET)

    def start(self, provider=None, question_count: int = QUESTION_FETCH_COUNT,
              player_y: Optional[float] = None) -> List[PlatformRecord]:
        """Load the question pool (once), build the starting world and arm the tracker."""
        assert not self.started, "session already started"
        self.questions = load_question_pool(provider, question_count)
        logger.info("Jump physics: %s", self.physics.info())

        created = self.world.build_initial_path()
        self.tracker = QuestionHeightTracker(
            start_y=self.spawn_y if player_y is None else player_y,
            questions=self.questions,
            height_per_question=self.height_per_question,
            on_show_question=self._show_question,
        )
        self.started = True
        return created

    def update(self, dt: float, player_y: float) -> List[PlatformRecord]:
        """Advance one tick. Returns platforms created during the tick."""
        if dt < 0:
            raise ValueError(f"dt must be >= 0, got {dt}")
        assert self.started, "call start() before update()"
        self.time_s += dt
        created: List[PlatformRecord] = []

        self.elapsed_since_extend += dt
        if self.elapsed_since_extend >= self.extend_interval_s:
            self.elapsed_since_extend = 0.0
            created += self.world.extend_path(player_y)
        elif self._near_top(player_y) and self.rng.random() < self._extend_probability(dt):
            created += self.world.extend_path(player_y)

        self.elapsed_since_cleanup += dt
        if self.elapsed_since_cleanup >= self.cleanup_interval_s:
            self.elapsed_since_cleanup = 0.0
            self.lifecycle.cleanup(player_y)
            self.world.prune_patrols()

        self._pending_answers = []
        self._pending_anchor = player_y - ANSWER_OFFSET_Y
        self.tracker.check_height(player_y)
        created += self._pending_answers
        return created

    def _near_top(self, player_y: float) -> bool:
        """Player is within NEAR_TOP_PX of the region one screen below the path tip."""
        return player_y < self.world.top_y + self.screen_height + NEAR_TOP_PX

    def _extend_probability(self, dt: float) -> float:
        # Poisson rate -> per-tick probability; independent of frame rate.
        return 1.0 - math.exp(-self.extend_rate_per_s * dt)

    def _show_question(self, question: Question):
        self._pending_answers = self.world.place_answer_platforms(question, self._pending_anchor)
        logger.debug("question %d shown with %d answer platforms", question.id,
                     len(self._pending_answers))
        if self.on_show_question is not None:
            self.on_show_question(question)

    def answer_selected(self, record: PlatformRecord) -> bool:
        """Collision signal: the player landed on an answer platform."""
        question = self._question_by_id(record.question_id)
        correct = self.lifecycle.resolve_answer(record)
        self._score_answer(question, correct)
        self.tracker.question_answered()
        return correct

    def question_answered(self, answer: str) -> bool:
        """
        UI signal: the active question was answered by picking `answer`.

        The matching answer platform goes through the same transition as a
        landing; if it is already gone the question's platforms are cleared.
        Returns whether the answer was correct (False with no active question).
        """
        if self.tracker is None or not self.tracker.has_active_question:
            logger.debug("answer %r ignored: no active question", answer)
            return False
        question = self.tracker.current_question
        record = next((p for p in self.lifecycle.answer_platforms(question.id)
                       if p.answer == answer), None)
        if record is not None:
            correct = self.lifecycle.resolve_answer(record)
        else:
            self.lifecycle.clear_question_platforms(question.id)
            correct = answer == question.correct
        self._score_answer(question, correct)
        self.tracker.question_answered()
        return correct

    def _question_by_id(self, question_id: Optional[int]) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)

    def _score_answer(self, question: Optional[Question], correct: bool) -> int:
        self.questions_answered += 1
        if not correct:
            return 0
        self.correct_answers += 1
        base = question.points if question is not None and question.points else ANSWER_BASE_POINTS
        points = math.floor(base * self.score_multiplier)
        self.score += points
        logger.debug("correct answer: +%d (score %d)", points, self.score)
        return points

    @property
    def platforms(self) -> List[PlatformRecord]:
        return self.lifecycle.records
