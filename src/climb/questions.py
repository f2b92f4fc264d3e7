# src/climb/questions.py
"""
Trivia questions: the data type, where they come from, and when to show them.

The pool is loaded once before gameplay through a provider; any failure (or
an empty result) degrades to DEFAULT_QUESTIONS so the height tracker always
has something to show. Providers raise QuestionSourceError; only
load_question_pool catches it.
"""
from __future__ import annotations
import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from .config import API_BASE_URL, API_TIMEOUT_S, HEIGHT_PER_QUESTION, QUESTION_FETCH_COUNT

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")


class QuestionSourceError(RuntimeError):
    """A provider could not produce questions (network, file or payload problem)."""


@dataclass(frozen=True)
class Question:
    id: int
    question: str
    answers: List[str]
    correct: str
    difficulty: str = "easy"
    subject: str = ""
    explanation: str = ""
    points: int = 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        """Build from the backend's JSON shape. Raises ValueError on malformed entries."""
        try:
            answers = [str(a) for a in data["answers"]]
            q = cls(
                id=int(data["id"]),
                question=str(data["question"]),
                answers=answers,
                correct=str(data["correct"]),
                difficulty=str(data.get("difficulty", "easy")).lower(),
                subject=str(data.get("subject", "")),
                explanation=str(data.get("explanation", "")),
                points=int(data.get("points", 100)),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed question entry: {e!r}") from e
        if len(q.answers) < 2:
            raise ValueError(f"Question {q.id} needs at least two answers")
        if q.correct not in q.answers:
            raise ValueError(f"Question {q.id}: correct answer {q.correct!r} not among answers")
        if q.difficulty not in DIFFICULTIES:
            raise ValueError(f"Question {q.id}: unknown difficulty {q.difficulty!r}")
        return q


DEFAULT_QUESTIONS: List[Question] = [
    Question(1, "When did World War II end?", ["1945", "1944", "1946", "1943"], "1945",
             "easy", "History", "World War II ended in 1945 with the surrender of Japan in September.", 100),
    Question(2, "What is the heaviest naturally occurring element?",
             ["Uranium", "Lead", "Plutonium", "Osmium"], "Uranium",
             "hard", "Chemistry", "Uranium is the heaviest naturally occurring element with atomic number 92.", 200),
    Question(3, "Which planet is closest to the Sun?", ["Venus", "Mercury", "Mars", "Earth"], "Mercury",
             "easy", "Science", "Mercury is the smallest planet and closest to the Sun in our solar system.", 100),
    Question(4, "What is the capital of Australia?", ["Sydney", "Melbourne", "Canberra", "Perth"], "Canberra",
             "medium", "Geography", "Canberra is the capital city of Australia.", 150),
    Question(5, "What is the value of pi rounded to two decimal places?", ["3.14", "3.16", "3.12", "3.18"], "3.14",
             "easy", "Mathematics", "Pi is approximately 3.14159, which rounds to 3.14.", 100),
]


def _parse_questions(entries: Any) -> List[Question]:
    if not isinstance(entries, list):
        raise QuestionSourceError(f"Expected a list of questions, got {type(entries).__name__}")
    try:
        return [Question.from_dict(e) for e in entries]
    except ValueError as e:
        raise QuestionSourceError(str(e)) from e


class HttpQuestionProvider:
    """Questions from the backend's REST resource (`{"success": bool, "data": [...]}`)."""

    def __init__(self, base_url: str = API_BASE_URL, timeout: float = API_TIMEOUT_S,
                 difficulty: Optional[str] = None, session: Optional[requests.Session] = None):
        if difficulty is not None and difficulty.lower() not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty!r} (expected one of {DIFFICULTIES})")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.difficulty = difficulty.lower() if difficulty else None
        self.session = session or requests.Session()

    def _url(self, count: int) -> str:
        if self.difficulty:
            return f"{self.base_url}/questions/difficulty/{self.difficulty}"
        return f"{self.base_url}/questions/random/{count}"

    def fetch_questions(self, count: int) -> List[Question]:
        url = self._url(count)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise QuestionSourceError(f"GET {url} failed: {e}") from e
        except ValueError as e:
            raise QuestionSourceError(f"GET {url} returned invalid JSON: {e}") from e

        if not isinstance(payload, dict) or not payload.get("success"):
            raise QuestionSourceError(f"GET {url} reported failure")
        return _parse_questions(payload.get("data"))[:count]


class JsonFileQuestionProvider:
    """Questions from a local JSON list (same entries as the backend's questions.json)."""

    def __init__(self, path, rng: Optional[random.Random] = None):
        self.path = Path(path)
        self.rng = rng or random.Random()

    def fetch_questions(self, count: int) -> List[Question]:
        try:
            entries = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise QuestionSourceError(f"Cannot read {self.path}: {e}") from e
        except ValueError as e:
            raise QuestionSourceError(f"{self.path} is not valid JSON: {e}") from e
        questions = _parse_questions(entries)
        self.rng.shuffle(questions)
        return questions[:count]


def load_question_pool(provider=None, count: int = QUESTION_FETCH_COUNT) -> List[Question]:
    """
    One-shot pool load. Never raises for provider problems: falls back to
    the built-in defaults and logs why.
    """
    if provider is None:
        return list(DEFAULT_QUESTIONS)
    try:
        questions = list(provider.fetch_questions(count))
    except QuestionSourceError as e:
        logger.warning("Failed to load questions (%s), using %d defaults", e, len(DEFAULT_QUESTIONS))
        return list(DEFAULT_QUESTIONS)
    if not questions:
        logger.warning("Question provider returned nothing, using %d defaults", len(DEFAULT_QUESTIONS))
        return list(DEFAULT_QUESTIONS)
    logger.info("Loaded %d questions", len(questions))
    return questions


@dataclass
class QuestionHeightTracker:
    """
    Decides from player height alone when the next question appears.

    Idle -> Active once the player has climbed `height_per_question` px past
    the last trigger. While Active nothing fires, however high the player
    goes; `question_answered()` returns to Idle and moves to the next
    question (wrapping).
    """
    start_y: float
    questions: Sequence[Question] = field(default_factory=list)
    height_per_question: float = HEIGHT_PER_QUESTION
    on_show_question: Optional[Callable[[Question], None]] = None

    last_question_height: float = field(init=False)
    next_trigger_height: float = field(init=False)
    has_active_question: bool = field(init=False, default=False)
    current_index: int = field(init=False, default=0)

    def __post_init__(self):
        assert self.height_per_question > 0, "height_per_question must be > 0"
        self.last_question_height = self.start_y
        self.next_trigger_height = self.start_y - self.height_per_question

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def check_height(self, player_y: float) -> Optional[Question]:
        """Returns the question shown by this call, or None."""
        if self.has_active_question or not self.questions:
            return None
        if player_y > self.next_trigger_height:
            return None
        return self._show(player_y)

    def _show(self, player_y: float) -> Question:
        self.has_active_question = True
        self.last_question_height = player_y
        self.next_trigger_height = player_y - self.height_per_question
        question = self.questions[self.current_index]
        if self.on_show_question is not None:
            self.on_show_question(question)
        return question

    def question_answered(self):
        if not self.has_active_question:
            return
        self.has_active_question = False
        self.current_index = (self.current_index + 1) % len(self.questions)
