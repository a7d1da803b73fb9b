import logging
from typing import List, Optional
from .engine import Battlefield
from .model import Event, LevelConfig, MatchState, RejectReason, Side, Snapshot, SpawnResult, get_archetype
from .policy import LaneStrategy
from .rng import DRNG
from .rules import Rules

logger = logging.getLogger(__name__)


class MatchController:
    """Owns one match: NOT_STARTED -> RUNNING <-> PAUSED -> ENDED."""

    def __init__(self, seed: int = 42, rules: Optional[Rules] = None,
                 lane_strategy: Optional[LaneStrategy] = None):
        self.seed = seed
        self.rules = rules or Rules()
        self.lane_strategy = lane_strategy
        self.state = MatchState.NOT_STARTED
        self.level: Optional[LevelConfig] = None
        self.battlefield: Optional[Battlefield] = None
        self.winner: Optional[Side] = None

    def start(self, level: LevelConfig) -> None:
        """Begin a fresh match with the given level."""
        self.level = level
        self.battlefield = Battlefield(level, DRNG(self.seed), self.rules, self.lane_strategy)
        self.winner = None
        self.state = MatchState.RUNNING
        logger.info(f"Match started: {level.lane_count} lanes, health {level.starting_health}, seed {self.seed}")

    def pause(self) -> bool:
        if self.state is not MatchState.RUNNING:
            return False
        self.state = MatchState.PAUSED
        logger.info("Match paused")
        return True

    def resume(self) -> bool:
        if self.state is not MatchState.PAUSED:
            return False
        self.state = MatchState.RUNNING
        logger.info("Match resumed")
        return True

    def reset(self) -> bool:
        """Restart with the last level. False if no level was ever started."""
        if self.level is None:
            return False
        self.start(self.level)
        return True

    @property
    def accepting_spawns(self) -> bool:
        return self.state in (MatchState.RUNNING, MatchState.PAUSED)

    def spawn_controlled(self, lane_index: int, archetype_id: str) -> SpawnResult:
        """Spawn request from the controlled side's input."""
        get_archetype(archetype_id)
        if not self.accepting_spawns:
            return SpawnResult.rejected(RejectReason.NOT_RUNNING)
        return self.battlefield.try_spawn_controlled(lane_index, archetype_id)

    def tick(self, dt_ms: float) -> List[Event]:
        """Host frame callback. No-op unless running."""
        if self.state is not MatchState.RUNNING:
            return []
        evts = self.battlefield.tick(dt_ms)
        if self.battlefield.loser is not None:
            self.winner = self.battlefield.loser.enemy
            self.state = MatchState.ENDED
            health = self.battlefield.health
            evts.append(Event("MatchEnded", self.battlefield.ts_ms,
                              {"winner": self.winner.value,
                               "controlled_hp": health[Side.CONTROLLED],
                               "opponent_hp": health[Side.OPPONENT]}))
            logger.info(f"Match ended, {self.winner.value} side wins")
        return evts

    def snapshot(self) -> Snapshot:
        """Return an immutable view of the current match."""
        bf = self.battlefield
        if bf is None:
            return Snapshot(state=self.state, ts_ms=0.0, controlled_health=0, opponent_health=0,
                            max_health=0, controlled_inventory={}, opponent_inventory={}, lanes=())
        return Snapshot(
            state=self.state,
            ts_ms=bf.ts_ms,
            controlled_health=bf.health[Side.CONTROLLED],
            opponent_health=bf.health[Side.OPPONENT],
            max_health=bf.level.max_health,
            controlled_inventory=bf.economy.inventory(Side.CONTROLLED).as_dict(),
            opponent_inventory=bf.economy.inventory(Side.OPPONENT).as_dict(),
            lanes=tuple(lane.view() for lane in bf.lanes),
            winner=self.winner,
        )
