# src/climb/placement.py
from __future__ import annotations
import logging
import math
from typing import Iterable, Optional, Sequence, Tuple

from .config import (
    PLACEMENT_ATTEMPTS, MIN_VERTICAL_SPACING, MIN_HORIZONTAL_SPACING,
    MIN_PLATFORM_EDGE_DISTANCE
)
from .physics import JumpPhysics, DEFAULT_PHYSICS
from .reachability import is_reachable, too_close, horizontal_window, clamp_to_edges
from .rng import SeededRandom

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# Horizontal nudges (in units of MIN_HORIZONTAL_SPACING) tried by the fallback
# when the straight-up spot is crowded.
FALLBACK_NUDGES = (0, 1, -1, 2, -2, 3, -3, 4, -4)


class PlacementGenerator:
    """
    Proposes the next platform position above an origin platform.

    Each attempt draws a vertical gap and an x inside the reachable window,
    then rejects crowded or unreachable candidates. The retry count is fixed,
    so a call always terminates; callers fall back to `fallback_position`
    on None.
    """
    def __init__(self, physics: JumpPhysics = DEFAULT_PHYSICS, rng=None,
                 attempts: int = PLACEMENT_ATTEMPTS,
                 edge: int = MIN_PLATFORM_EDGE_DISTANCE):
        assert attempts >= 1, "attempts must be >= 1"
        self.physics = physics
        self.rng = rng if rng is not None else SeededRandom()
        self.attempts = int(attempts)
        self.edge = edge

    def gap_range(self) -> Tuple[int, int]:
        lo = max(MIN_VERTICAL_SPACING, self.physics.optimal_vertical_gap() - 30)
        hi = self.physics.safe_jump_height() - self.physics.safety_margin
        return lo, max(lo, hi)

    def find_next_reachable_position(self, from_x: float, from_y: float,
                                     from_width: float, to_width: float,
                                     screen_width: float,
                                     placed: Iterable = ()) -> Optional[Position]:
        placed: Sequence = list(placed)
        gap_lo, gap_hi = self.gap_range()

        for _ in range(self.attempts):
            gap = self.rng.randint(gap_lo, gap_hi)
            target_y = int(from_y - gap)

            min_x, max_x = horizontal_window(from_x, from_width, to_width, screen_width,
                                             self.physics, self.edge)
            if min_x >= max_x:
                continue
            lo, hi = math.ceil(min_x), math.floor(max_x)
            if lo > hi:
                continue
            target_x = self.rng.randint(lo, hi)

            if too_close(target_x, target_y, placed):
                continue
            if is_reachable(from_x, from_y, target_x, target_y, from_width, to_width, self.physics):
                return target_x, target_y

        return None

    def fallback_position(self, from_x: float, from_y: float, from_width: float,
                          to_width: float, screen_width: float,
                          placed: Iterable = ()) -> Position:
        """
        Deterministic spot used when random proposals run out: straight above
        the origin (clamped to the edges) at the comfortable gap. Crowded spots
        are nudged sideways; if every nudge is blocked the clamped spot is used.
        """
        placed = list(placed)
        y = int(from_y - self.physics.optimal_vertical_gap())
        base = clamp_to_edges(from_x, to_width, screen_width, self.edge)
        for k in FALLBACK_NUDGES:
            x = int(round(clamp_to_edges(base + k * MIN_HORIZONTAL_SPACING, to_width,
                                         screen_width, self.edge)))
            if too_close(x, y, placed):
                continue
            if is_reachable(from_x, from_y, x, y, from_width, to_width, self.physics):
                return x, y
        logger.warning("fallback at y=%d: every nudge crowded, using clamped x=%.0f", y, base)
        return int(round(base)), y

    def next_position(self, from_x: float, from_y: float, from_width: float,
                      to_width: float, screen_width: float,
                      placed: Iterable = ()) -> Tuple[Position, bool]:
        """Generated position, or the fallback. Second item is True when the fallback was used."""
        placed = list(placed)
        pos = self.find_next_reachable_position(from_x, from_y, from_width, to_width,
                                                screen_width, placed)
        if pos is not None:
            return pos, False
        logger.warning("no reachable position from (%.0f, %.0f) after %d attempts, using fallback",
                       from_x, from_y, self.attempts)
        return self.fallback_position(from_x, from_y, from_width, to_width, screen_width, placed), True
