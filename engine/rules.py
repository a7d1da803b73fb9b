from dataclasses import dataclass
from .errors import ConfigurationError

# Geometry (distance units along the lane axis)
LANE_COUNT = 5
LANE_LENGTH = 600.0
SPAWN_INSET = 40.0        # spawn edge distance from its own baseline
BASELINE_MARGIN = 10.0    # crossing this far from the far edge scores a hit
BASE_RADIUS = 20.0        # collision radius = BASE_RADIUS * archetype scale

# Lane resolution
ENGAGE_MARGIN = 10.0      # reach beyond touch distance
CHAIN_TOLERANCE = 15.0    # slack for a pair to count as connected
FOLLOW_BUFFER = 5.0       # follower spacing slack; must stay below CHAIN_TOLERANCE
CONTEST_STEP = 0.5        # boundary shift per step for the stronger stack
TICK_SPEED_FACTOR = 1.5   # move_speed multiplier per step

# Timing (simulation milliseconds)
FIXED_STEP_MS = 1000.0 / 60.0
MAX_FRAME_MS = 1000.0
BOT_INTERVAL_MS = 2000.0
REPLENISH_INTERVAL_MS = 3000.0
SPAWN_COOLDOWN_MS = 0.0

# Economy and health
INVENTORY_CAP = 9
INITIAL_STOCK = 1
MAX_HEALTH = 300


@dataclass(frozen=True)
class Rules:
    """Tuning table for one match. Defaults are the canonical scale."""
    lane_length: float = LANE_LENGTH
    spawn_inset: float = SPAWN_INSET
    baseline_margin: float = BASELINE_MARGIN
    base_radius: float = BASE_RADIUS
    engage_margin: float = ENGAGE_MARGIN
    chain_tolerance: float = CHAIN_TOLERANCE
    follow_buffer: float = FOLLOW_BUFFER
    contest_step: float = CONTEST_STEP
    tick_speed_factor: float = TICK_SPEED_FACTOR
    fixed_step_ms: float = FIXED_STEP_MS
    max_frame_ms: float = MAX_FRAME_MS
    bot_interval_ms: float = BOT_INTERVAL_MS
    replenish_interval_ms: float = REPLENISH_INTERVAL_MS
    spawn_cooldown_ms: float = SPAWN_COOLDOWN_MS
    inventory_cap: int = INVENTORY_CAP
    initial_stock: int = INITIAL_STOCK

    def __post_init__(self):
        positive = ("lane_length", "spawn_inset", "base_radius", "contest_step",
                    "tick_speed_factor", "fixed_step_ms", "max_frame_ms",
                    "bot_interval_ms", "replenish_interval_ms")
        for name in positive:
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        non_negative = ("baseline_margin", "engage_margin", "follow_buffer",
                        "spawn_cooldown_ms", "inventory_cap", "initial_stock")
        for name in non_negative:
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative, got {getattr(self, name)}")
        # A fully compressed chain sits exactly follow_buffer apart and must still count as connected
        if self.chain_tolerance <= self.follow_buffer:
            raise ConfigurationError(
                f"chain_tolerance ({self.chain_tolerance}) must exceed follow_buffer ({self.follow_buffer})")
        if self.initial_stock > self.inventory_cap:
            raise ConfigurationError("initial_stock exceeds inventory_cap")
        if not self.baseline_margin < self.spawn_inset < self.lane_length / 2:
            raise ConfigurationError("spawn_inset must lie between baseline_margin and mid-lane")

    @property
    def controlled_spawn(self) -> float:
        return self.lane_length - self.spawn_inset

    @property
    def opponent_spawn(self) -> float:
        return self.spawn_inset

    @property
    def midpoint(self) -> float:
        return self.lane_length / 2
