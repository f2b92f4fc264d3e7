# src/climb/platforms.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional

from .config import HEIGHT, CLEANUP_SCREENS

logger = logging.getLogger(__name__)

NEUTRAL = "neutral"
CORRECT = "correct-answer"
INCORRECT = "incorrect-answer"
BREAKING = "breaking"
TRAMPOLINE = "trampoline"
APPROACH = "approach"
HELPER = "helper"

PLATFORM_KINDS = (NEUTRAL, CORRECT, INCORRECT, BREAKING, TRAMPOLINE, APPROACH, HELPER)
ANSWER_KINDS = (CORRECT, INCORRECT)


@dataclass
class PlatformRecord:
    id: int
    x: float
    y: float
    width: float
    height: float
    kind: str = NEUTRAL
    patrol: bool = False
    is_ground: bool = False
    anchor_id: Optional[int] = None     # path platforms: the platform it was placed from
    question_id: Optional[int] = None   # answer platforms only
    answer: Optional[str] = None
    handle: Any = None                  # whatever the creation callback returned

    @property
    def is_answer(self) -> bool:
        return self.kind in ANSWER_KINDS

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


def _noop_created(record: PlatformRecord) -> Any:
    return None


def _noop_destroyed(handle: Any) -> None:
    return None


class PlatformLifecycle:
    """
    Owns the live set of platforms for one session.

    Physical/visual instantiation is delegated to two callbacks; the handle
    returned on creation is stored on the record and handed back verbatim
    on destruction. Nothing else about it is inspected.
    """
    def __init__(self,
                 on_created: Optional[Callable[[PlatformRecord], Any]] = None,
                 on_destroyed: Optional[Callable[[Any], None]] = None,
                 screen_height: int = HEIGHT,
                 cleanup_screens: int = CLEANUP_SCREENS):
        self.on_created = on_created or _noop_created
        self.on_destroyed = on_destroyed or _noop_destroyed
        self.screen_height = screen_height
        self.cleanup_screens = cleanup_screens
        self._live: List[PlatformRecord] = []
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._live)

    def __iter__(self) -> Iterator[PlatformRecord]:
        return iter(list(self._live))

    def __contains__(self, record: PlatformRecord) -> bool:
        return any(p is record for p in self._live)

    @property
    def records(self) -> List[PlatformRecord]:
        return list(self._live)

    def create(self, x: float, y: float, width: float, height: float,
               kind: str = NEUTRAL, patrol: bool = False, is_ground: bool = False,
               anchor_id: Optional[int] = None, question_id: Optional[int] = None,
               answer: Optional[str] = None) -> PlatformRecord:
        if kind not in PLATFORM_KINDS:
            raise ValueError(f"Unknown platform kind: {kind!r}")
        record = PlatformRecord(
            id=self._next_id, x=x, y=y, width=width, height=height, kind=kind,
            patrol=patrol, is_ground=is_ground, anchor_id=anchor_id,
            question_id=question_id, answer=answer,
        )
        self._next_id += 1
        self._live.append(record)
        record.handle = self.on_created(record)
        return record

    def destroy(self, record: PlatformRecord) -> bool:
        """Remove one record. Returns False if it was not live (already destroyed)."""
        for i, p in enumerate(self._live):
            if p is record:
                del self._live[i]
                self.on_destroyed(record.handle)
                record.handle = None
                return True
        return False

    def cleanup(self, player_y: float) -> int:
        """
        Evict every platform more than `cleanup_screens` screens below the
        player. Answer platforms are left alone: they go through
        `resolve_answer` / `clear_question_platforms` instead.
        """
        threshold = player_y + self.cleanup_screens * self.screen_height
        doomed = [p for p in self._live if p.y > threshold and not p.is_answer]
        for p in doomed:
            self.destroy(p)
        if doomed:
            logger.debug("cleanup below y=%.0f removed %d platforms, %d live",
                         threshold, len(doomed), len(self._live))
        return len(doomed)

    def answer_platforms(self, question_id: Optional[int] = None) -> List[PlatformRecord]:
        return [p for p in self._live
                if p.is_answer and (question_id is None or p.question_id == question_id)]

    def clear_question_platforms(self, question_id: Optional[int] = None) -> int:
        doomed = self.answer_platforms(question_id)
        for p in doomed:
            self.destroy(p)
        return len(doomed)

    def resolve_answer(self, record: PlatformRecord) -> bool:
        """
        Apply the answer transition for a landed-on answer platform.

        Correct: the platform stays as a permanent neutral platform and its
        siblings go. Incorrect: every answer platform of the question goes.
        Returns whether the answer was correct.
        """
        if not record.is_answer:
            raise ValueError(f"Platform {record.id} is not an answer platform ({record.kind})")
        correct = record.kind == CORRECT
        for p in self.answer_platforms(record.question_id):
            if correct and p is record:
                continue
            self.destroy(p)
        if correct:
            record.kind = NEUTRAL
            record.question_id = None
            record.answer = None
        return correct
