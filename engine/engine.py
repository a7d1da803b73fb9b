import itertools
import logging
from typing import Dict, List, Optional
from .economy import SpawnEconomy
from .errors import ConfigurationError, InvariantViolation
from .lane import Lane
from .model import Event, LevelConfig, RejectReason, Side, SpawnResult, Unit, UnitArchetype, get_archetype
from .policy import CounterMostAdvanced, LaneStrategy, OpponentPolicy, RandomLane
from .rng import DRNG
from .rules import Rules

logger = logging.getLogger(__name__)


class Battlefield:
    """Deterministic lane simulation: lanes, health pools and the fixed-step clock."""

    def __init__(self, level: LevelConfig, rng: DRNG, rules: Optional[Rules] = None,
                 lane_strategy: Optional[LaneStrategy] = None):
        self.level = level
        self.rules = rules or Rules()
        self._rng = rng
        self.lanes: List[Lane] = [Lane(i, self.rules) for i in range(level.lane_count)]
        self.health: Dict[Side, int] = {side: level.starting_health for side in Side}
        self.economy = SpawnEconomy(self.rules, rng)
        if lane_strategy is None:
            if level.counter_targeting:
                lane_strategy = CounterMostAdvanced(level.opponent_aggression)
            else:
                lane_strategy = RandomLane()
        self.policy = OpponentPolicy(lane_strategy, rng, heavy_bias=level.heavy_bias)
        self.ts_ms = 0.0
        self.accumulator = 0.0
        self.bot_timer = 0.0
        self.replenish_timer = 0.0
        self.loser: Optional[Side] = None
        self._ids = itertools.count()
        self._pending: List[Event] = []

    def lane(self, index: int) -> Lane:
        if not 0 <= index < len(self.lanes):
            raise ConfigurationError(f"lane index {index} out of range [0, {len(self.lanes)})")
        return self.lanes[index]

    def _spawn(self, side: Side, lane: Lane, archetype: UnitArchetype) -> Unit:
        """Create a unit at the side's spawn edge and queue it in the lane."""
        if side is Side.CONTROLLED:
            position, speed_scale = self.rules.controlled_spawn, 1.0
        else:
            position, speed_scale = self.rules.opponent_spawn, self.level.opponent_speed
        unit = Unit(
            id=next(self._ids),
            side=side,
            lane=lane.index,
            archetype=archetype,
            position=position,
            radius=self.rules.base_radius * archetype.scale,
            speed_scale=speed_scale,
        )
        lane.add(unit)
        self._pending.append(Event("UnitSpawned", self.ts_ms,
                                   {"unit_id": unit.id, "side": side.value, "lane": lane.index,
                                    "archetype": archetype.id}))
        return unit

    def try_spawn_controlled(self, lane_index: int, archetype_id: str) -> SpawnResult:
        """Spawn for the controlled side if cooldown and stock allow."""
        archetype = get_archetype(archetype_id)
        lane = self.lane(lane_index)
        reason = self.economy.check_controlled(archetype_id, self.ts_ms)
        if reason is not None:
            logger.debug(f"Controlled spawn of {archetype_id} in lane {lane_index} rejected: {reason.value}")
            return SpawnResult.rejected(reason)
        self.economy.commit_controlled(archetype_id, self.ts_ms)
        unit = self._spawn(Side.CONTROLLED, lane, archetype)
        return SpawnResult.ok(unit.id)

    def spawn_opponent(self, lane_index: int, archetype_id: str) -> SpawnResult:
        """Spawn for the opponent side. Only stock-gated; the policy timer is its cooldown."""
        archetype = get_archetype(archetype_id)
        lane = self.lane(lane_index)
        if not self.economy.inventory(Side.OPPONENT).take(archetype_id):
            return SpawnResult.rejected(RejectReason.OUT_OF_STOCK)
        unit = self._spawn(Side.OPPONENT, lane, archetype)
        return SpawnResult.ok(unit.id)

    def damage(self, side: Side, amount: int) -> int:
        """Reduce a health pool, clipped at zero. Returns the new value."""
        if amount < 0:
            raise InvariantViolation(f"negative damage {amount} to {side.value}")
        self.health[side] = max(0, self.health[side] - amount)
        return self.health[side]

    def _opponent_turn(self) -> List[Event]:
        decision = self.policy.decide(self.lanes, self.economy.inventory(Side.OPPONENT))
        if decision is None:
            return []
        lane_index, archetype_id = decision
        self.spawn_opponent(lane_index, archetype_id)
        evts, self._pending = self._pending, []
        return evts

    def _resolve_lanes(self) -> List[Event]:
        evts: List[Event] = []
        hits: List[Unit] = []
        # Lanes are independent; damage is merged after all of them resolve
        for lane in self.lanes:
            outcome = lane.resolve()
            if outcome.stalemate_started:
                evts.append(Event("Stalemate", self.ts_ms, {"lane": lane.index}))
            hits.extend(outcome.hits)

        for u in hits:
            target = u.side.enemy
            hp = self.damage(target, u.strength)
            evts.append(Event("BaselineHit", self.ts_ms,
                              {"unit_id": u.id, "lane": u.lane, "side": u.side.value,
                               "target": target.value, "dmg": u.strength, "hp": hp}))
        return evts

    def _replenish(self) -> List[Event]:
        evts: List[Event] = []
        for side, archetype_id, added in self.economy.replenish():
            evts.append(Event("InventoryReplenished", self.ts_ms,
                              {"side": side.value, "archetype": archetype_id, "added": added,
                               "count": self.economy.inventory(side).counts[archetype_id]}))
        return evts

    def _check_game_over(self) -> None:
        # Both pools emptied on the same step: the controlled side loses
        if self.health[Side.CONTROLLED] <= 0:
            self.loser = Side.CONTROLLED
        elif self.health[Side.OPPONENT] <= 0:
            self.loser = Side.OPPONENT

    def step(self) -> List[Event]:
        """Advance the simulation by exactly one fixed step."""
        dt = self.rules.fixed_step_ms
        evts: List[Event] = []

        self.bot_timer += dt
        if self.bot_timer > self.rules.bot_interval_ms:
            evts += self._opponent_turn()
            self.bot_timer = 0.0

        evts += self._resolve_lanes()

        self.replenish_timer += dt
        if self.replenish_timer > self.rules.replenish_interval_ms:
            evts += self._replenish()
            self.replenish_timer = 0.0

        self._check_game_over()
        self.ts_ms += dt
        return evts

    def tick(self, dt_ms: float) -> List[Event]:
        """Feed wall-clock time; runs as many fixed steps as it covers."""
        evts, self._pending = self._pending, []
        if self.loser is not None:
            return evts
        self.accumulator += min(max(0.0, dt_ms), self.rules.max_frame_ms)
        while self.accumulator >= self.rules.fixed_step_ms:
            evts += self.step()
            self.accumulator -= self.rules.fixed_step_ms
            if self.loser is not None:
                break
        return evts
