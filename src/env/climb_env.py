# src/env/climb_env.py
from __future__ import annotations
from typing import Optional, Tuple, Dict, Any, List
import numpy as np
import gymnasium as gym
import pygame

from src.climb.config import (
    WIDTH, HEIGHT, FPS, PLAYER_W, PLAYER_H, GROUND_Y_OFFSET,
    TRAMPOLINE_JUMP_VELOCITY, BREAK_DELAY_S
)
from src.climb.physics import JumpPhysics, DEFAULT_PHYSICS
from src.climb.platforms import PlatformRecord, BREAKING, TRAMPOLINE
from src.climb.player import Player
from src.climb.session import GameSession
from src.env.observations import build_observation, observation_bounds, OBS_SIZE

# action -> (horizontal direction, jump)
ACTIONS: Tuple[Tuple[int, bool], ...] = (
    (0, False),   # 0 NOOP
    (-1, False),  # 1 LEFT
    (1, False),   # 2 RIGHT
    (0, True),    # 3 JUMP
    (-1, True),   # 4 JUMP + LEFT
    (1, True),    # 5 JUMP + RIGHT
)


class ClimbEnv(gym.Env):
    """
    Quiz Climb Gymnasium environment (vector observations, no rendering).
    - Simulation at 60 Hz (internal).
    - Agent acts every `frame_skip` frames (default 4) -> 15 decisions/sec.
    - Observation: shape (13,), float32 (see observations.build_observation).

    The env is the physical layer for the session: every platform record gets
    a pygame.Rect body through the creation callback, and landings on answer
    platforms are reported back as collision signals.
    """
    metadata = {"render_modes": [], "render_fps": FPS}

    def __init__(self,
                 frame_skip: int = 4,
                 time_limit_seconds: Optional[float] = 60.0,
                 physics: JumpPhysics = DEFAULT_PHYSICS,
                 question_provider=None):
        super().__init__()
        assert frame_skip >= 1, "frame_skip must be >= 1"
        self.frame_skip = int(frame_skip)
        self.physics = physics
        self.question_provider = question_provider

        self.sim_fps = FPS
        self.dt = 1.0 / self.sim_fps

        self.time_limit_decisions = None
        if time_limit_seconds is not None:
            self.time_limit_decisions = int(self.sim_fps * time_limit_seconds / self.frame_skip)

        # --- Gym spaces ---
        self.action_space = gym.spaces.Discrete(len(ACTIONS))
        low, high = observation_bounds()
        self.observation_space = gym.spaces.Box(low=low, high=high, shape=(OBS_SIZE,), dtype=np.float32)

        # --- Runtime state ---
        self.session: Optional[GameSession] = None
        self.player: Optional[Player] = None
        self.alive: bool = True
        self.timestep: int = 0
        self.current_seed: Optional[int] = None
        self.start_y: float = 0.0
        self.best_y: float = 0.0
        self.camera_top: float = 0.0
        self.death_cause: Optional[str] = None
        self.patrol_spawns: List[Tuple[float, float, float, float, int]] = []

        # body id -> (rect, record)
        self._bodies: Dict[int, Tuple[pygame.Rect, PlatformRecord]] = {}
        # record id -> [record, seconds left]
        self._breaking: Dict[int, list] = {}

    # -------------------- Physical layer callbacks --------------------

    def _create_body(self, record: PlatformRecord) -> pygame.Rect:
        rect = pygame.Rect(int(record.x), int(record.y), int(record.width), int(record.height))
        self._bodies[id(rect)] = (rect, record)
        return rect

    def _destroy_body(self, handle: pygame.Rect):
        self._bodies.pop(id(handle), None)

    def _spawn_patrol(self, x: float, y: float, platform_x: float, platform_width: float, patrol_id: int):
        self.patrol_spawns.append((x, y, platform_x, platform_width, patrol_id))

    # -------------------- Core API --------------------

    def reset(self, *, seed: Optional[int] = None, options: Optional[Dict[str, Any]] = None):
        super().reset(seed=seed)

        # Same policy as the level seed elsewhere: explicit seed -> reproducible world
        level_seed = int(seed) if seed is not None else None

        self._bodies = {}
        self._breaking = {}
        self.patrol_spawns = []
        spawn_y = float(HEIGHT - GROUND_Y_OFFSET - PLAYER_H)

        self.session = GameSession(
            physics=self.physics, seed=level_seed,
            on_platform_created=self._create_body,
            on_platform_destroyed=self._destroy_body,
            spawn_patrol_enemy=self._spawn_patrol,
        )
        self.session.start(provider=self.question_provider, player_y=spawn_y)
        self.player = Player(x=WIDTH / 2 - PLAYER_W / 2, y=spawn_y, physics=self.physics)

        self.alive = True
        self.death_cause = None
        self.timestep = 0
        self.current_seed = self.session.seed
        self.start_y = spawn_y
        self.best_y = spawn_y
        self.camera_top = spawn_y - HEIGHT / 2

        return self._get_obs(), self._info(grounded=False)

    def step(self, action: int):
        assert self.action_space.contains(action), f"Invalid action {action}"
        assert self.session is not None and self.player is not None

        direction, jump = ACTIONS[int(action)]
        reward = 0.0
        grounded = False

        for _ in range(self.frame_skip):
            self.player.move(direction)
            if jump:
                self.player.try_jump()

            prev_y = self.player.y
            self.player.update_physics(self.dt, WIDTH)
            landed = self.player.resolve_collisions_with_platforms(prev_y, self._rects())
            grounded = landed is not None
            if landed is not None:
                self._on_landed(self._bodies[id(landed)][1])

            self._tick_breaking(self.dt)
            self.session.update(self.dt, self.player.y)

            self.camera_top = min(self.camera_top, self.player.y - HEIGHT / 2)
            if self.player.y < self.best_y:
                reward += (self.best_y - self.player.y) / 100.0
                self.best_y = self.player.y

            if self.player.y > self.camera_top + HEIGHT + 100:
                self.alive = False
                self.death_cause = "fell"
                reward -= 1.0
                break

        self.timestep += 1
        terminated = not self.alive
        truncated = (self.time_limit_decisions is not None) and (self.timestep >= self.time_limit_decisions)

        return self._get_obs(), float(reward), terminated, truncated, self._info(grounded)

    # -------------------- Helpers --------------------

    def _rects(self) -> List[pygame.Rect]:
        return [rect for rect, _ in self._bodies.values()]

    def _on_landed(self, record: PlatformRecord):
        if record.kind == TRAMPOLINE:
            self.player.bounce(TRAMPOLINE_JUMP_VELOCITY)
        elif record.kind == BREAKING and record.id not in self._breaking:
            self._breaking[record.id] = [record, BREAK_DELAY_S]
        elif record.is_answer:
            self.session.answer_selected(record)

    def _tick_breaking(self, dt: float):
        for rid in list(self._breaking):
            entry = self._breaking[rid]
            entry[1] -= dt
            if entry[1] <= 0.0:
                self.session.lifecycle.destroy(entry[0])
                del self._breaking[rid]

    def _get_obs(self) -> np.ndarray:
        assert self.player is not None
        return build_observation(self.player, self._rects())

    def height_climbed(self) -> float:
        return self.start_y - self.best_y

    def _info(self, grounded: bool) -> Dict[str, Any]:
        return {
            "seed": self.current_seed,
            "timestep": self.timestep,
            "height_px": self.height_climbed(),
            "grounded": grounded,
            "live_platforms": len(self.session.lifecycle) if self.session else 0,
            "questions_answered": self.session.questions_answered if self.session else 0,
            "correct_answers": self.session.correct_answers if self.session else 0,
            "score": self.session.score if self.session else 0,
            "patrols_spawned": len(self.patrol_spawns),
            "fallbacks": self.session.world.fallback_count if self.session else 0,
            "death_cause": self.death_cause,
        }

    def close(self):
        self._bodies = {}
        self._breaking = {}
