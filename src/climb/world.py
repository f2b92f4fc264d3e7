# src/climb/world.py
from __future__ import annotations
import logging
from typing import Callable, List, Optional, Set

from .config import (
    WIDTH, HEIGHT, MIN_PLATFORM_WIDTH, MAX_PLATFORM_WIDTH, PLATFORM_HEIGHT,
    MIN_PLATFORM_EDGE_DISTANCE, GROUND_W, GROUND_H, GROUND_Y_OFFSET,
    INITIAL_PATH_PLATFORMS, HELPER_OFFSETS, HELPER_EXTRA_WIDTH,
    SEGMENT_MIN_PLATFORMS, SEGMENT_MAX_PLATFORMS, ALT_ROUTES_MIN, ALT_ROUTES_MAX,
    ALT_ROUTE_MIN_RISE, PATROL_EVERY, PATROL_SPAWN_OFFSET, KIND_WEIGHTS,
    ANSWER_PLATFORM_W, ANSWER_PLATFORM_H, ANSWER_JITTER_Y, PLACEMENT_ATTEMPTS,
    MIN_VERTICAL_SPACING
)
from .physics import JumpPhysics, DEFAULT_PHYSICS
from .placement import PlacementGenerator
from .platforms import PlatformLifecycle, PlatformRecord, NEUTRAL, HELPER, CORRECT, INCORRECT
from .reachability import too_close, within_edges, clamp_to_edges
from .rng import SeededRandom

logger = logging.getLogger(__name__)

# spawn_patrol_enemy(x, y, platform_x, platform_width, patrol_id)
PatrolCallback = Callable[[float, float, float, float, int], None]


class WorldBuilder:
    """
    Builds the climbing path at game start and grows it as the player ascends.

    The path is a chain: each platform is placed relative to the previous
    one through the PlacementGenerator, with the deterministic fallback when
    it comes back empty, so every build step appends exactly one platform.
    Path platforms are always neutral; only the alternative-route platforms
    get hazardous kinds.
    """
    def __init__(self, lifecycle: PlatformLifecycle,
                 screen_width: int = WIDTH, screen_height: int = HEIGHT,
                 physics: JumpPhysics = DEFAULT_PHYSICS, rng=None,
                 spawn_patrol_enemy: Optional[PatrolCallback] = None,
                 patrol_every: int = PATROL_EVERY):
        assert patrol_every >= 1, "patrol_every must be >= 1"
        self.lifecycle = lifecycle
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.physics = physics
        self.rng = rng if rng is not None else SeededRandom()
        self.generator = PlacementGenerator(physics, self.rng)
        self.spawn_patrol_enemy = spawn_patrol_enemy
        self.patrol_every = int(patrol_every)

        self.platform_counter = 0          # path platforms placed by extend_path
        self.patrol_ids: Set[int] = set()  # record ids of live patrol platforms
        self._next_patrol_id = 0
        self.fallback_count = 0
        self.ground: Optional[PlatformRecord] = None
        self.path_tip: Optional[PlatformRecord] = None

    # -------------------- Initial world --------------------

    def build_initial_path(self) -> List[PlatformRecord]:
        w = min(GROUND_W, self.screen_width - 2 * MIN_PLATFORM_EDGE_DISTANCE)
        self.ground = self.lifecycle.create(
            self.screen_width / 2 - w / 2, self.screen_height - GROUND_Y_OFFSET,
            w, GROUND_H, NEUTRAL, is_ground=True,
        )
        path = self._build_chain(self.ground, INITIAL_PATH_PLATFORMS, extending=False)
        helpers = self._place_helpers()
        logger.debug("initial world: %d path platforms, %d helpers, tip y=%.0f",
                     len(path), len(helpers), self.path_tip.y)
        return [self.ground] + path + helpers

    def _place_helpers(self) -> List[PlatformRecord]:
        created = []
        for frac_x, rise in HELPER_OFFSETS:
            width = self.rng.randint(MIN_PLATFORM_WIDTH, MIN_PLATFORM_WIDTH + HELPER_EXTRA_WIDTH)
            x = int(round(clamp_to_edges(self.screen_width * frac_x - width / 2, width,
                                         self.screen_width)))
            y = self.screen_height - rise
            if too_close(x, y, self.lifecycle):
                continue
            created.append(self.lifecycle.create(x, y, width, PLATFORM_HEIGHT, HELPER))
        return created

    # -------------------- Procedural growth --------------------

    @property
    def top_y(self) -> float:
        """y of the highest path platform (smaller = higher)."""
        if self.path_tip is None:
            return float(self.screen_height)
        return self.path_tip.y

    def extend_path(self, player_y: float) -> List[PlatformRecord]:
        """
        Grow the path by one segment (5-8 chained platforms) plus a few
        alternative-route platforms in the new band.

        The chain continues from the current tip so the first new platform is
        reachable from a live one. The segment is skipped while the tip
        already sits a full screen above the target region (player_y - screen
        height), which bounds how far ahead of the player the world is built.
        """
        if self.path_tip is None:
            raise RuntimeError("build_initial_path() must run before extend_path()")

        target_y = player_y - self.screen_height
        if self.path_tip.y <= target_y - self.screen_height:
            logger.debug("extend skipped: tip y=%.0f already above target y=%.0f",
                         self.path_tip.y, target_y)
            return []

        band_bottom = self.path_tip.y
        count = self.rng.randint(SEGMENT_MIN_PLATFORMS, SEGMENT_MAX_PLATFORMS)
        path = self._build_chain(self.path_tip, count, extending=True)
        alts = self.generate_alternative_routes(band_bottom, self.path_tip.y)
        logger.debug("extended path by %d platforms (+%d alternatives), tip y=%.0f",
                     len(path), len(alts), self.path_tip.y)
        return path + alts

    def _build_chain(self, anchor: PlatformRecord, count: int,
                     extending: bool) -> List[PlatformRecord]:
        created = []
        last = anchor
        for _ in range(count):
            width = self.rng.randint(MIN_PLATFORM_WIDTH, MAX_PLATFORM_WIDTH)
            (x, y), fell_back = self.generator.next_position(
                last.x, last.y, last.width, width, self.screen_width, self.lifecycle)
            if fell_back:
                self.fallback_count += 1

            patrol = False
            if extending:
                self.platform_counter += 1
                patrol = self.platform_counter % self.patrol_every == 0

            record = self.lifecycle.create(x, y, width, PLATFORM_HEIGHT, NEUTRAL,
                                           patrol=patrol, anchor_id=last.id)
            if patrol:
                self._spawn_patrol(record)
            created.append(record)
            last = record
        self.path_tip = last
        return created

    def generate_alternative_routes(self, band_bottom: float, band_top: float) -> List[PlatformRecord]:
        """
        Scatter 2-4 platforms inside [band_top, band_bottom]. Only the screen
        edges and spacing are checked: these are extra routes, not part of the
        guaranteed path.
        """
        created = []
        x_lo = MIN_PLATFORM_EDGE_DISTANCE
        x_hi = self.screen_width - MAX_PLATFORM_WIDTH - MIN_PLATFORM_EDGE_DISTANCE
        if x_hi < x_lo:
            return created

        rise_hi = max(ALT_ROUTE_MIN_RISE, int(band_bottom - band_top))
        n = self.rng.randint(ALT_ROUTES_MIN, ALT_ROUTES_MAX)
        for _ in range(n):
            x = self.rng.randint(x_lo, x_hi)
            y = int(band_bottom - self.rng.randint(ALT_ROUTE_MIN_RISE, rise_hi))
            width = self.rng.randint(MIN_PLATFORM_WIDTH, MAX_PLATFORM_WIDTH)
            if not within_edges(x, width, self.screen_width):
                continue
            if too_close(x, y, self.lifecycle):
                continue
            kind = self.random_platform_kind()
            created.append(self.lifecycle.create(x, y, width, PLATFORM_HEIGHT, kind))
        return created

    def random_platform_kind(self) -> str:
        kinds = [k for k, _ in KIND_WEIGHTS]
        weights = [w for _, w in KIND_WEIGHTS]
        return self.rng.weighted_choice(kinds, weights)

    def _spawn_patrol(self, record: PlatformRecord):
        patrol_id = self._next_patrol_id
        self._next_patrol_id += 1
        self.patrol_ids.add(record.id)
        if self.spawn_patrol_enemy is not None:
            self.spawn_patrol_enemy(record.center_x, record.y - PATROL_SPAWN_OFFSET,
                                    record.x, record.width, patrol_id)

    def prune_patrols(self):
        """Forget patrol platforms that are no longer live."""
        live_ids = {p.id for p in self.lifecycle}
        self.patrol_ids &= live_ids

    # -------------------- Question platforms --------------------

    def place_answer_platforms(self, question, anchor_y: float) -> List[PlatformRecord]:
        """
        One platform per answer, spread evenly across the usable width at
        anchor_y with a little vertical jitter. The jitter is redrawn a few
        times to keep clear of existing platforms; after that the row slot
        steps outward past the jitter band until it is clear.
        """
        n = len(question.answers)
        usable = self.screen_width - 2 * MIN_PLATFORM_EDGE_DISTANCE
        width = min(ANSWER_PLATFORM_W, usable // max(1, n))
        spacing = (usable - n * width) / (n + 1)

        created = []
        for i, answer in enumerate(question.answers):
            x = int(MIN_PLATFORM_EDGE_DISTANCE + spacing + i * (width + spacing))
            y = self._answer_slot_y(x, anchor_y)
            kind = CORRECT if answer == question.correct else INCORRECT
            created.append(self.lifecycle.create(
                x, y, width, ANSWER_PLATFORM_H, kind,
                question_id=question.id, answer=answer,
            ))
        return created

    def _answer_slot_y(self, x: int, anchor_y: float) -> int:
        for _ in range(PLACEMENT_ATTEMPTS):
            y = int(anchor_y + self.rng.randint(-ANSWER_JITTER_Y, ANSWER_JITTER_Y))
            if not too_close(x, y, self.lifecycle):
                return y
        # A neighbour blocks at most two steps on each side, so this ends.
        step = 1
        while True:
            offset = ANSWER_JITTER_Y + step * MIN_VERTICAL_SPACING
            for y in (int(anchor_y - offset), int(anchor_y + offset)):
                if not too_close(x, y, self.lifecycle):
                    logger.debug("answer slot at x=%d moved to y=%d (anchor %.0f)", x, y, anchor_y)
                    return y
            step += 1
