from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
from .errors import ConfigurationError, InvariantViolation, UnknownArchetype
from .rules import LANE_COUNT, MAX_HEALTH


class Side(Enum):
    """Which side owns a unit, queue or health pool."""
    CONTROLLED = "controlled"  # moves toward position 0
    OPPONENT = "opponent"      # moves toward lane_length

    @property
    def direction(self) -> int:
        return -1 if self is Side.CONTROLLED else 1

    @property
    def enemy(self) -> "Side":
        return Side.OPPONENT if self is Side.CONTROLLED else Side.CONTROLLED


class MatchState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


class RejectReason(Enum):
    NOT_RUNNING = "not_running"
    ON_COOLDOWN = "on_cooldown"
    OUT_OF_STOCK = "out_of_stock"


@dataclass(frozen=True)
class UnitArchetype:
    """Template defining characteristics of a unit type"""
    id: str
    label: str
    strength: int
    move_speed: float  # distance per fixed step, before tick_speed_factor
    scale: float       # collision radius multiplier


# Predefined unit types, cheapest first
UNIT_TYPES: Dict[str, UnitArchetype] = {
    "small": UnitArchetype(id="small", label="Light", strength=10, move_speed=1.6, scale=0.8),
    "medium": UnitArchetype(id="medium", label="Medium", strength=20, move_speed=1.2, scale=1.0),
    "heavy": UnitArchetype(id="heavy", label="Heavy", strength=30, move_speed=0.8, scale=1.3),
}

ARCHETYPE_IDS: Tuple[str, ...] = tuple(UNIT_TYPES)


def get_archetype(archetype_id: str) -> UnitArchetype:
    """Look up a catalog archetype by id."""
    try:
        return UNIT_TYPES[archetype_id]
    except KeyError:
        raise UnknownArchetype(archetype_id) from None


@dataclass
class Unit:
    id: int
    side: Side
    lane: int
    archetype: UnitArchetype
    position: float
    radius: float
    speed_scale: float = 1.0
    strength: int = field(init=False)

    def __post_init__(self):
        self.strength = self.archetype.strength
        if self.strength <= 0:
            raise InvariantViolation(f"unit {self.id} has non-positive strength {self.strength}")

    @property
    def move_speed(self) -> float:
        return self.archetype.move_speed * self.speed_scale


@dataclass
class Event:
    kind: str
    ts_ms: float
    data: Dict


@dataclass(frozen=True)
class SpawnResult:
    """Outcome of a spawn request. Rejections never raise."""
    accepted: bool
    reason: Optional[RejectReason] = None
    unit_id: Optional[int] = None

    @classmethod
    def ok(cls, unit_id: int) -> "SpawnResult":
        return cls(accepted=True, unit_id=unit_id)

    @classmethod
    def rejected(cls, reason: RejectReason) -> "SpawnResult":
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class LevelConfig:
    """Per-level tuning supplied by the host."""
    opponent_speed: float = 1.0
    opponent_aggression: float = 0.5
    starting_health: int = 100
    lane_count: int = LANE_COUNT
    counter_targeting: bool = False
    heavy_bias: bool = False
    max_health: int = MAX_HEALTH

    def __post_init__(self):
        if self.lane_count < 1:
            raise ConfigurationError(f"lane_count must be >= 1, got {self.lane_count}")
        if self.opponent_speed <= 0:
            raise ConfigurationError(f"opponent_speed must be positive, got {self.opponent_speed}")
        if not 0 < self.opponent_aggression <= 1:
            raise ConfigurationError(f"opponent_aggression must be in (0, 1], got {self.opponent_aggression}")
        if not 0 < self.starting_health <= self.max_health:
            raise ConfigurationError(
                f"starting_health must be in [1, {self.max_health}], got {self.starting_health}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LevelConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass(frozen=True)
class UnitView:
    id: int
    archetype_id: str
    position: float
    radius: float
    strength: int


@dataclass(frozen=True)
class LaneView:
    index: int
    controlled: Tuple[UnitView, ...]
    opponent: Tuple[UnitView, ...]
    controlled_strength: int
    opponent_strength: int
    engaging: bool


@dataclass(frozen=True)
class Snapshot:
    """Immutable read model handed to the presentation layer."""
    state: MatchState
    ts_ms: float
    controlled_health: int
    opponent_health: int
    max_health: int
    controlled_inventory: Dict[str, int]
    opponent_inventory: Dict[str, int]
    lanes: Tuple[LaneView, ...]
    winner: Optional[Side] = None

    def to_dict(self) -> Dict[str, Any]:
        def units(views: Tuple[UnitView, ...]) -> List[Dict[str, Any]]:
            return [{"id": v.id, "archetype": v.archetype_id, "position": v.position,
                     "radius": v.radius, "strength": v.strength} for v in views]

        return {
            "state": self.state.value,
            "ts_ms": self.ts_ms,
            "winner": self.winner.value if self.winner else None,
            "health": {"controlled": self.controlled_health, "opponent": self.opponent_health,
                       "max": self.max_health},
            "inventory": {"controlled": dict(self.controlled_inventory),
                          "opponent": dict(self.opponent_inventory)},
            "lanes": [{
                "index": lane.index,
                "engaging": lane.engaging,
                "strength": {"controlled": lane.controlled_strength, "opponent": lane.opponent_strength},
                "controlled": units(lane.controlled),
                "opponent": units(lane.opponent),
            } for lane in self.lanes],
        }
