from typing import Optional
from pydantic import BaseModel, Field
from engine.rules import LANE_COUNT, MAX_HEALTH

class LevelIn(BaseModel):
    """Level configuration supplied by the client."""
    opponent_speed: float = Field(default=1.0, gt=0)
    opponent_aggression: float = Field(default=0.5, gt=0, le=1)
    starting_health: int = Field(default=100, ge=1, le=MAX_HEALTH)
    lane_count: int = Field(default=LANE_COUNT, ge=1)
    counter_targeting: bool = False
    heavy_bias: bool = False

class StartRequest(BaseModel):
    """Match start request schema."""
    seed: int = 42
    level: LevelIn = Field(default_factory=LevelIn)

class SpawnIn(BaseModel):
    """Controlled-side spawn request."""
    lane: int = Field(ge=0)
    archetype: str

class SpawnOut(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    unit_id: Optional[int] = None

class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    events: list[dict]
