# src/env/observations.py
from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
import numpy as np
import pygame

from src.climb.config import (
    WIDTH, HEIGHT, PLAYER_W, PLAYER_H, MAX_FALL_SPEED, MAX_PLATFORM_WIDTH
)

N_PLATFORMS_AHEAD = 3        # nearest platforms above the player's feet
OBS_SIZE = 4 + 3 * N_PLATFORMS_AHEAD

# Sentinel block for "no platform": centered, a full screen up, zero width
_MISSING = (0.0, 1.0, 0.0)


def _clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else (hi if x > hi else x)


def _platforms_above(feet_y: float, center_x: float,
                     platform_rects: Sequence[pygame.Rect]) -> List[Tuple[float, float, float]]:
    """(dx_norm, rise_norm, width_norm) for platforms whose top is above the feet, nearest first."""
    above = [r for r in platform_rects if r.top < feet_y]
    above.sort(key=lambda r: feet_y - r.top)
    feats = []
    for r in above[:N_PLATFORMS_AHEAD]:
        dx = _clamp((r.centerx - center_x) / float(WIDTH), -1.0, 1.0)
        rise = _clamp((feet_y - r.top) / float(HEIGHT), 0.0, 1.0)
        w = _clamp(r.width / float(MAX_PLATFORM_WIDTH), 0.0, 2.0)
        feats.append((dx, rise, w))
    return feats


def build_observation(player, platform_rects: Sequence[pygame.Rect],
                      horizontal_speed: Optional[float] = None) -> np.ndarray:
    """
    Returns a fixed (13,) float32 vector:
      [ x_norm, vx_norm, vy_norm, grounded,
        dx@1, rise@1, width@1,
        dx@2, rise@2, width@2,
        dx@3, rise@3, width@3 ]
    - x_norm in [0,1] over the screen width
    - vx_norm, vy_norm in [-1,1]
    - grounded is 0.0/1.0
    - per platform: center offset / WIDTH in [-1,1], rise above the feet / HEIGHT in [0,1],
      width / MAX_PLATFORM_WIDTH in [0,2]; missing platforms use (0, 1, 0)
    """
    speed = float(horizontal_speed or getattr(player.physics, "horizontal_speed", 1.0))
    x_norm = _clamp(float(player.x) / max(1.0, WIDTH - PLAYER_W), 0.0, 1.0)
    vx_norm = _clamp(float(player.vx) / max(1.0, speed), -1.0, 1.0)
    vy_norm = _clamp(float(player.vy) / MAX_FALL_SPEED, -1.0, 1.0)
    grounded = 1.0 if player.grounded else 0.0

    feats: List[float] = [x_norm, vx_norm, vy_norm, grounded]
    feet_y = float(player.y) + PLAYER_H
    center_x = float(player.x) + PLAYER_W / 2
    blocks = _platforms_above(feet_y, center_x, platform_rects)
    blocks += [_MISSING] * (N_PLATFORMS_AHEAD - len(blocks))
    for block in blocks:
        feats.extend(block)

    return np.asarray(feats, dtype=np.float32)


def observation_bounds() -> Tuple[np.ndarray, np.ndarray]:
    low = np.array([0.0, -1.0, -1.0, 0.0] + [-1.0, 0.0, 0.0] * N_PLATFORMS_AHEAD, dtype=np.float32)
    high = np.array([1.0, 1.0, 1.0, 1.0] + [1.0, 1.0, 2.0] * N_PLATFORMS_AHEAD, dtype=np.float32)
    return low, high
