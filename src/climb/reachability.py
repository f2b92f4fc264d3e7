# src/climb/reachability.py
from __future__ import annotations
from typing import Iterable, Tuple

from .config import (
    MIN_PLATFORM_EDGE_DISTANCE, MIN_HORIZONTAL_SPACING, MIN_VERTICAL_SPACING
)
from .physics import JumpPhysics, DEFAULT_PHYSICS


def is_reachable(from_x: float, from_y: float, to_x: float, to_y: float,
                 from_width: float = 0, to_width: float = 0,
                 physics: JumpPhysics = DEFAULT_PHYSICS) -> bool:
    """
    Can a player standing on the `from` platform land on the `to` platform in one jump?

    Horizontal distance is measured between platform centers. Going up is
    limited by the safe jump height; going down is always allowed.
    """
    horizontal = abs(to_x + to_width / 2 - (from_x + from_width / 2))
    dy = to_y - from_y  # negative = destination above

    if horizontal > physics.safe_horizontal_distance():
        return False
    if dy < 0 and abs(dy) > physics.safe_jump_height():
        return False
    return True


def too_close(x: float, y: float, others: Iterable,
              min_dx: float = MIN_HORIZONTAL_SPACING,
              min_dy: float = MIN_VERTICAL_SPACING) -> bool:
    """True if (x, y) crowds any platform in `others` on both axes at once."""
    for p in others:
        if abs(p.x - x) < min_dx and abs(p.y - y) < min_dy:
            return True
    return False


def within_edges(x: float, width: float, screen_width: float,
                 edge: float = MIN_PLATFORM_EDGE_DISTANCE) -> bool:
    return edge <= x <= screen_width - width - edge


def clamp_to_edges(x: float, width: float, screen_width: float,
                   edge: float = MIN_PLATFORM_EDGE_DISTANCE) -> float:
    return max(edge, min(screen_width - width - edge, x))


def horizontal_window(from_x: float, from_width: float, to_width: float,
                      screen_width: float, physics: JumpPhysics = DEFAULT_PHYSICS,
                      edge: float = MIN_PLATFORM_EDGE_DISTANCE) -> Tuple[float, float]:
    """
    Range of left-edge x values for the next platform: the screen band (minus
    edge margins) intersected with the reachable band around the origin.
    Empty when min_x >= max_x.
    """
    reach = physics.safe_horizontal_distance()
    min_x = max(edge, from_x - reach)
    max_x = min(screen_width - to_width - edge, from_x + from_width + reach)
    return min_x, max_x
