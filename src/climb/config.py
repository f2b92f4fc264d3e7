import os

# --- Display ---
WIDTH = 800
HEIGHT = 600
FPS = 60

# --- Physics ---
GRAVITY = 300.0                   # px/s^2, pulls down (+y)
PLAYER_HORIZONTAL_SPEED = 200.0   # px/s
JUMP_VELOCITY = 1000.0            # px/s, initial upward speed
TRAMPOLINE_JUMP_VELOCITY = 1400.0
MAX_FALL_SPEED = 1200.0           # clamp on downward velocity

# --- Player ---
PLAYER_W = 32
PLAYER_H = 48
PLAYER_SPAWN_Y_OFFSET = 150       # spawn at HEIGHT - offset

# --- Platform generation ---
PLATFORM_REACH_PERCENTAGE = 0.5   # fraction of the kinematic max used for placement
PLATFORM_SAFETY_MARGIN = 30       # px kept below the safe jump height
MIN_PLATFORM_WIDTH = 150
MAX_PLATFORM_WIDTH = 200
PLATFORM_HEIGHT = 30
MIN_PLATFORM_EDGE_DISTANCE = 50
MIN_HORIZONTAL_SPACING = 50
MIN_VERTICAL_SPACING = 40
MIN_VERTICAL_GAP = 40             # floor for the "comfortable" gap
PLACEMENT_ATTEMPTS = 20

GROUND_W = 400
GROUND_H = 50
GROUND_Y_OFFSET = 60              # ground top = HEIGHT - offset

INITIAL_PATH_PLATFORMS = 6
HELPER_OFFSETS = ((0.5, 200), (0.45, 380), (0.15, 300))  # (x fraction of WIDTH, px above HEIGHT)
HELPER_EXTRA_WIDTH = 30

SEGMENT_MIN_PLATFORMS = 5
SEGMENT_MAX_PLATFORMS = 8
ALT_ROUTES_MIN = 2
ALT_ROUTES_MAX = 4
ALT_ROUTE_MIN_RISE = 100          # alt routes start at least this far above the band base

PATROL_EVERY = 15                 # every Nth extension platform hosts a patrol enemy
PATROL_SPAWN_OFFSET = 30          # enemy spawns this far above the platform top

# Kinds for non-path platforms (must sum to 1.0)
KIND_WEIGHTS = (
    ("neutral", 0.70),
    ("breaking", 0.15),
    ("trampoline", 0.15),
)

# --- Answer platforms ---
ANSWER_PLATFORM_W = 150
ANSWER_PLATFORM_H = 40
ANSWER_JITTER_Y = 50
ANSWER_OFFSET_Y = 200             # answer row sits this far above the player

# --- Session timing ---
EXTEND_INTERVAL_S = 3.0
CLEANUP_INTERVAL_S = 5.0
CLEANUP_SCREENS = 2               # platforms this many screens below the player are evicted
EXTEND_RATE_PER_S = 1.2           # near-top extension rate (2% per frame at 60 fps)
NEAR_TOP_PX = 200
BREAK_DELAY_S = 1.0

# --- Questions ---
HEIGHT_PER_QUESTION = 2000
QUESTION_FETCH_COUNT = 20
API_BASE_URL = os.environ.get("QUIZ_CLIMB_API_URL", "http://localhost:5001/api")
API_TIMEOUT_S = 5.0
ANSWER_BASE_POINTS = 100          # used when a question carries no points

SEED_DEFAULT = 12345
