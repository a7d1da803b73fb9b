from typing import List, Optional, Sequence, Tuple
from .economy import Inventory
from .lane import Lane
from .model import UNIT_TYPES, Side
from .rng import DRNG


class LaneStrategy:
    """Picks the lane the opponent spawns into."""

    name = "base"

    def choose_lane(self, lanes: Sequence[Lane], rng: DRNG) -> int:
        raise NotImplementedError


class RandomLane(LaneStrategy):
    name = "random"

    def choose_lane(self, lanes: Sequence[Lane], rng: DRNG) -> int:
        return rng.integer(len(lanes))


class CounterMostAdvanced(LaneStrategy):
    """Answer the controlled unit that got furthest past mid-lane.

    With probability `bias` the threatened lane is chosen; otherwise, or when
    no controlled unit has crossed the midpoint, a random lane is used.
    """

    name = "counter"

    def __init__(self, bias: float):
        self.bias = bias

    def most_threatened(self, lanes: Sequence[Lane]) -> Optional[int]:
        best_lane: Optional[int] = None
        best_depth = 0.0
        for lane in lanes:
            lead = lane.leader(Side.CONTROLLED)
            if lead is None:
                continue
            depth = lane.rules.midpoint - lead.position
            if depth > best_depth:
                best_lane, best_depth = lane.index, depth
        return best_lane

    def choose_lane(self, lanes: Sequence[Lane], rng: DRNG) -> int:
        target = self.most_threatened(lanes)
        if target is not None and rng.bernoulli(self.bias):
            return target
        return rng.integer(len(lanes))


class OpponentPolicy:
    """Decides what the automated side spawns each time its timer fires."""

    def __init__(self, strategy: LaneStrategy, rng: DRNG, heavy_bias: bool = False):
        self.strategy = strategy
        self.heavy_bias = heavy_bias
        self._rng = rng

    def pick_archetype(self, inventory: Inventory) -> Optional[str]:
        available: List[str] = inventory.available()
        if not available:
            return None
        weights = [UNIT_TYPES[aid].strength for aid in available] if self.heavy_bias else None
        return self._rng.choice(available, weights)

    def decide(self, lanes: Sequence[Lane], inventory: Inventory) -> Optional[Tuple[int, str]]:
        """Return (lane_index, archetype_id), or None to skip when out of stock."""
        archetype_id = self.pick_archetype(inventory)
        if archetype_id is None:
            return None
        return self.strategy.choose_lane(lanes, self._rng), archetype_id
