# src/climb/physics.py
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict

from .config import (
    GRAVITY, PLAYER_HORIZONTAL_SPEED, JUMP_VELOCITY,
    PLATFORM_REACH_PERCENTAGE, PLATFORM_SAFETY_MARGIN, MIN_VERTICAL_GAP
)


@dataclass(frozen=True)
class JumpPhysics:
    """
    Jump envelope derived from gravity and launch speeds.

    Nothing here is cached: every value is recomputed from the five tunables,
    so a session built with a different instance sees a consistent envelope.
    The "safe" values are the reach-percentage derated ones; placement never
    uses the theoretical maximum.
    """
    gravity: float = GRAVITY
    horizontal_speed: float = PLAYER_HORIZONTAL_SPEED
    jump_velocity: float = JUMP_VELOCITY
    reach_percentage: float = PLATFORM_REACH_PERCENTAGE
    safety_margin: int = PLATFORM_SAFETY_MARGIN

    def __post_init__(self):
        if self.gravity <= 0:
            raise ValueError(f"gravity must be > 0, got {self.gravity}")
        if self.jump_velocity <= 0:
            raise ValueError(f"jump_velocity must be > 0, got {self.jump_velocity}")
        if not 0.0 < self.reach_percentage <= 1.0:
            raise ValueError(f"reach_percentage must be in (0, 1], got {self.reach_percentage}")

    def max_jump_height(self) -> int:
        """Kinematic peak height v^2 / 2g."""
        return math.floor(self.jump_velocity * self.jump_velocity / (2.0 * self.gravity))

    def time_to_peak(self) -> float:
        return self.jump_velocity / self.gravity

    def max_horizontal_distance(self) -> int:
        """Horizontal travel over a full up-and-down flight at run speed."""
        return math.floor(self.horizontal_speed * self.time_to_peak() * 2)

    def safe_jump_height(self) -> int:
        return math.floor(self.max_jump_height() * self.reach_percentage)

    def safe_horizontal_distance(self) -> int:
        return math.floor(self.max_horizontal_distance() * self.reach_percentage)

    def optimal_vertical_gap(self, min_gap: int = MIN_VERTICAL_GAP) -> int:
        """Comfortable gap: 70% of what is left below the safe height after the margin."""
        max_gap = self.safe_jump_height() - self.safety_margin
        return max(min_gap, math.floor(max_gap * 0.7))

    def info(self) -> Dict[str, float]:
        return {
            "gravity": self.gravity,
            "jump_velocity": self.jump_velocity,
            "max_jump_height": self.max_jump_height(),
            "max_horizontal_distance": self.max_horizontal_distance(),
            "safe_jump_height": self.safe_jump_height(),
            "safe_horizontal_distance": self.safe_horizontal_distance(),
            "reach_percentage": self.reach_percentage * 100,
            "time_to_peak": round(self.time_to_peak(), 2),
        }


DEFAULT_PHYSICS = JumpPhysics()
