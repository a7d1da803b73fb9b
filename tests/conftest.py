"""Shared pytest fixtures for lane engine tests."""
import itertools

import pytest

from engine.engine import Battlefield
from engine.lane import Lane
from engine.model import LevelConfig, Side, Unit, get_archetype
from engine.policy import LaneStrategy
from engine.rng import DRNG
from engine.rules import Rules


class FixedLane(LaneStrategy):
    """Lane strategy that always answers the same lane, to keep the opponent out of the way."""

    name = "fixed"

    def __init__(self, index: int):
        self.index = index

    def choose_lane(self, lanes, rng) -> int:
        return self.index


@pytest.fixture
def rules() -> Rules:
    return Rules()


@pytest.fixture
def make_unit(rules):
    """Factory for units placed at an explicit position."""
    ids = itertools.count()

    def _make(side: Side, archetype_id: str, position: float, lane: int = 0) -> Unit:
        archetype = get_archetype(archetype_id)
        return Unit(id=next(ids), side=side, lane=lane, archetype=archetype,
                    position=position, radius=rules.base_radius * archetype.scale)

    return _make


@pytest.fixture
def lane(rules) -> Lane:
    return Lane(0, rules)


@pytest.fixture
def fixed_lane():
    """Factory for a lane strategy pinned to one lane."""
    return FixedLane


@pytest.fixture
def make_battlefield(fixed_lane):
    """Battlefield whose opponent always spawns into the last lane."""

    def _make(lane_count: int = 2, health: int = 100, **rules_kw) -> Battlefield:
        level = LevelConfig(lane_count=lane_count, starting_health=health)
        return Battlefield(level, DRNG(7), Rules(**rules_kw), lane_strategy=fixed_lane(lane_count - 1))

    return _make
