# src/climb/player.py
from __future__ import annotations
import pygame
from dataclasses import dataclass
from typing import List, Optional
from .config import (
    PLAYER_W, PLAYER_H, MAX_FALL_SPEED
)
from .physics import JumpPhysics, DEFAULT_PHYSICS


@dataclass
class Player:
    """
    Minimal climber for headless play:
    - y grows downward, gravity pulls +y
    - platforms are one-way: the player lands on a top edge only while falling
    """
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    grounded: bool = False
    physics: JumpPhysics = DEFAULT_PHYSICS

    _support: Optional[pygame.Rect] = None   # rect we are standing on, if any

    @property
    def rect(self) -> pygame.Rect:
        return pygame.Rect(int(self.x), int(self.y), PLAYER_W, PLAYER_H)

    @property
    def feet_y(self) -> float:
        return self.y + PLAYER_H

    def _inner_rect(self, rect: pygame.Rect) -> pygame.Rect:
        r = rect.copy()
        # Side skin so grazing a platform corner does not count as a landing
        r.inflate_ip(-4, 0)
        return r

    def move(self, direction: int):
        """direction: -1 left, 0 stop, +1 right."""
        self.vx = float(direction) * self.physics.horizontal_speed

    def try_jump(self) -> bool:
        """Jump only from the ground. Returns True if performed."""
        if not self.grounded:
            return False
        self.vy = -self.physics.jump_velocity
        self.grounded = False
        self._support = None
        return True

    def bounce(self, velocity: float):
        """Forced launch (trampolines); works in the air too."""
        self.vy = -abs(velocity)
        self.grounded = False
        self._support = None

    def update_physics(self, dt: float, screen_width: Optional[int] = None):
        """Integrate motion under gravity, clamp fall speed and keep x on screen."""
        self.vy += self.physics.gravity * dt
        if self.vy > MAX_FALL_SPEED:
            self.vy = MAX_FALL_SPEED

        self.x += self.vx * dt
        self.y += self.vy * dt

        if screen_width is not None:
            self.x = max(0.0, min(float(screen_width - PLAYER_W), self.x))

    def resolve_collisions_with_platforms(self, prev_y: float,
                                          platforms: List[pygame.Rect]) -> Optional[pygame.Rect]:
        """
        Swept landing test against platform tops. Returns the rect landed on
        (or stood on), None while airborne.
        """
        EPS = 2
        me_before_bottom = prev_y + PLAYER_H
        me_now = self.rect

        if self.vy < 0.0:
            # Rising: pass through platforms from below
            self.grounded = False
            self._support = None
            return None

        for pr in platforms:
            pr_in = self._inner_rect(pr)
            if me_now.right <= pr_in.left or me_now.left >= pr_in.right:
                continue
            if me_before_bottom <= pr_in.top + EPS and me_now.bottom >= pr_in.top - EPS:
                self.y = pr_in.top - PLAYER_H
                self.vy = 0.0
                self.grounded = True
                self._support = pr
                return pr

        self.grounded = False
        self._support = None
        return None
