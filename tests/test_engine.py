"""Tests for the battlefield clock, damage and the match lifecycle."""
import pytest

from engine.engine import Battlefield
from engine.errors import ConfigurationError, InvariantViolation, UnknownArchetype
from engine.match import MatchController
from engine.model import LevelConfig, MatchState, RejectReason, Side
from engine.rng import DRNG


def test_lone_heavy_walks_into_opponent_baseline(make_battlefield):
    """A heavy alone in its lane scores exactly its strength and is removed."""
    bf = make_battlefield()
    result = bf.try_spawn_controlled(0, "heavy")
    assert result.accepted

    hits = []
    for _ in range(1000):
        hits += [e for e in bf.step() if e.kind == "BaselineHit" and e.data["lane"] == 0]
        if not bf.lanes[0].controlled:
            break

    assert len(hits) == 1
    assert hits[0].data["dmg"] == 30
    assert bf.health[Side.OPPONENT] == 70
    assert bf.lanes[0].controlled == []


def test_spawn_places_units_on_their_edges(make_battlefield):
    bf = make_battlefield()
    bf.try_spawn_controlled(0, "small")
    bf.spawn_opponent(1, "medium")
    assert bf.lanes[0].controlled[0].position == bf.rules.controlled_spawn
    assert bf.lanes[1].opponent[0].position == bf.rules.opponent_spawn
    assert bf.economy.inventory(Side.OPPONENT).counts["medium"] == 0


def test_opponent_speed_multiplier_applies_to_opponent_units():
    level = LevelConfig(lane_count=1, opponent_speed=2.0)
    bf = Battlefield(level, DRNG(1))
    bf.spawn_opponent(0, "small")
    bf.try_spawn_controlled(0, "small")
    assert bf.lanes[0].opponent[0].move_speed == pytest.approx(3.2)
    assert bf.lanes[0].controlled[0].move_speed == pytest.approx(1.6)


def test_spawn_rejects_unknown_archetype_and_bad_lane(make_battlefield):
    bf = make_battlefield()
    with pytest.raises(UnknownArchetype):
        bf.try_spawn_controlled(0, "giant")
    with pytest.raises(ConfigurationError):
        bf.try_spawn_controlled(5, "small")


def test_out_of_stock_leaves_queue_unchanged(make_battlefield):
    bf = make_battlefield()
    bf.economy.inventory(Side.CONTROLLED).counts["small"] = 0
    result = bf.try_spawn_controlled(0, "small")
    assert not result.accepted
    assert result.reason is RejectReason.OUT_OF_STOCK
    assert bf.lanes[0].controlled == []


def test_cooldown_counts_simulation_time(make_battlefield):
    bf = make_battlefield(spawn_cooldown_ms=500.0)
    bf.economy.inventory(Side.CONTROLLED).counts["small"] = 5
    assert bf.try_spawn_controlled(0, "small").accepted
    assert bf.try_spawn_controlled(0, "small").reason is RejectReason.ON_COOLDOWN
    bf.tick(600.0)
    assert bf.try_spawn_controlled(0, "small").accepted


def test_damage_is_clipped_at_zero(make_battlefield):
    bf = make_battlefield()
    assert bf.damage(Side.OPPONENT, 1000) == 0
    assert bf.health[Side.OPPONENT] == 0


def test_negative_damage_is_a_defect(make_battlefield):
    bf = make_battlefield()
    with pytest.raises(InvariantViolation):
        bf.damage(Side.CONTROLLED, -5)


def test_tick_runs_whole_fixed_steps_only(make_battlefield):
    bf = make_battlefield()
    bf.tick(bf.rules.fixed_step_ms / 2)
    assert bf.ts_ms == 0.0
    bf.tick(bf.rules.fixed_step_ms / 2)
    assert bf.ts_ms == pytest.approx(bf.rules.fixed_step_ms)


def test_large_frame_is_clamped(make_battlefield):
    """A suspended host does not trigger a runaway catch-up."""
    bf = make_battlefield()
    bf.tick(60_000.0)
    assert bf.ts_ms <= bf.rules.max_frame_ms + 1e-6
    assert bf.ts_ms >= bf.rules.max_frame_ms - bf.rules.fixed_step_ms - 1e-6


def test_zero_tick_is_idempotent():
    match = MatchController(seed=3)
    match.start(LevelConfig(lane_count=3))
    match.spawn_controlled(1, "medium")
    match.tick(500.0)
    before = match.snapshot()
    for _ in range(10):
        match.tick(0)
    assert match.snapshot() == before


def test_opponent_spawns_on_its_interval(make_battlefield):
    bf = make_battlefield()
    spawned = []
    steps = int(bf.rules.bot_interval_ms / bf.rules.fixed_step_ms) + 2
    for _ in range(steps):
        spawned += [e for e in bf.step() if e.kind == "UnitSpawned"]
    assert len(spawned) == 1
    assert spawned[0].data["side"] == "opponent"
    assert spawned[0].data["lane"] == 1


def test_controlled_spawn_event_arrives_with_next_tick(make_battlefield):
    bf = make_battlefield()
    bf.try_spawn_controlled(0, "small")
    evts = bf.tick(0)
    assert [e.kind for e in evts] == ["UnitSpawned"]
    assert bf.tick(0) == []


def test_spawn_before_start_is_rejected():
    match = MatchController()
    result = match.spawn_controlled(0, "small")
    assert result.reason is RejectReason.NOT_RUNNING


def test_spawn_while_paused_is_accepted_but_time_is_frozen():
    match = MatchController()
    match.start(LevelConfig())
    assert match.pause()
    assert not match.pause()
    assert match.spawn_controlled(0, "small").accepted
    assert match.tick(1000.0) == []
    assert match.snapshot().ts_ms == 0.0
    assert match.resume()
    evts = match.tick(100.0)
    assert any(e.kind == "UnitSpawned" for e in evts)
    assert match.snapshot().ts_ms > 0.0


def test_simultaneous_zero_health_controlled_loses(fixed_lane):
    match = MatchController(lane_strategy=fixed_lane(1))
    match.start(LevelConfig(lane_count=2, starting_health=10))
    bf = match.battlefield
    bf.try_spawn_controlled(0, "small")
    bf.spawn_opponent(1, "small")
    bf.lanes[0].controlled[0].position = bf.rules.baseline_margin + 1.0
    bf.lanes[1].opponent[0].position = bf.rules.lane_length - bf.rules.baseline_margin - 1.0

    evts = match.tick(bf.rules.fixed_step_ms)

    assert match.state is MatchState.ENDED
    assert match.winner is Side.OPPONENT
    assert bf.health == {Side.CONTROLLED: 0, Side.OPPONENT: 0}
    assert evts[-1].kind == "MatchEnded"


def test_ended_match_ignores_ticks_and_spawns():
    match = MatchController()
    match.start(LevelConfig(starting_health=10))
    match.battlefield.damage(Side.OPPONENT, 10)
    match.tick(match.rules.fixed_step_ms)
    assert match.state is MatchState.ENDED
    assert match.winner is Side.CONTROLLED
    ts = match.snapshot().ts_ms
    assert match.tick(1000.0) == []
    assert match.snapshot().ts_ms == ts
    assert match.spawn_controlled(0, "small").reason is RejectReason.NOT_RUNNING


def test_reset_restarts_last_level():
    match = MatchController()
    assert not match.reset()
    match.start(LevelConfig(starting_health=150, lane_count=3))
    match.spawn_controlled(0, "small")
    match.tick(500.0)
    assert match.reset()
    snap = match.snapshot()
    assert snap.state is MatchState.RUNNING
    assert snap.ts_ms == 0.0
    assert snap.controlled_health == 150
    assert len(snap.lanes) == 3
    assert all(not lane.controlled and not lane.opponent for lane in snap.lanes)


def test_long_match_keeps_chains_and_health_consistent():
    """Followers never interpenetrate and health never rises over a busy match."""
    match = MatchController(seed=11)
    match.start(LevelConfig(lane_count=3, starting_health=300, counter_targeting=True,
                            opponent_aggression=0.8))
    rules = match.rules
    script = DRNG(99)
    last_health = dict(match.battlefield.health)

    for _ in range(3000):
        if match.state is MatchState.ENDED:
            break
        if script.bernoulli(0.05):
            match.spawn_controlled(script.integer(3), script.choice(["small", "medium", "heavy"]))
        match.tick(rules.fixed_step_ms)

        bf = match.battlefield
        for side in Side:
            assert 0 <= bf.health[side] <= last_health[side]
        last_health = dict(bf.health)

        for lane in bf.lanes:
            for q in (lane.controlled, lane.opponent):
                for ahead, u in zip(q, q[1:]):
                    ideal = u.radius + ahead.radius + rules.follow_buffer
                    assert abs(u.position - ahead.position) >= ideal - 1e-6
            for side in Side:
                assert lane.strength(side) <= sum(u.strength for u in lane.queue(side))


def test_head_on_stalemates_in_two_lanes_hold_without_damage(make_battlefield):
    """Equal mediums meeting in two lanes freeze in place and report one stalemate per lane."""
    bf = make_battlefield(bot_interval_ms=1e9)
    for side in Side:
        bf.economy.inventory(side).counts["medium"] = 2
    for lane in (0, 1):
        assert bf.try_spawn_controlled(lane, "medium").accepted
        assert bf.spawn_opponent(lane, "medium").accepted

    evts = []
    for _ in range(30):
        evts += bf.tick(300.0)
    frozen = [tuple(u.position for u in lane.controlled + lane.opponent) for lane in bf.lanes]
    for _ in range(30):
        evts += bf.tick(300.0)

    assert [tuple(u.position for u in lane.controlled + lane.opponent) for lane in bf.lanes] == frozen
    assert all(lane.engaging for lane in bf.lanes)
    assert bf.health == {Side.CONTROLLED: 100, Side.OPPONENT: 100}
    stalemates = [e.data["lane"] for e in evts if e.kind == "Stalemate"]
    assert sorted(stalemates) == [0, 1]


def test_replenish_timer_emits_one_event_per_side(make_battlefield):
    bf = make_battlefield(bot_interval_ms=1e9)
    steps = int(bf.rules.replenish_interval_ms / bf.rules.fixed_step_ms) + 2
    evts = []
    for _ in range(steps):
        evts += bf.step()
    replenished = [e for e in evts if e.kind == "InventoryReplenished"]
    assert [e.data["side"] for e in replenished] == ["controlled", "opponent"]
    for e in replenished:
        assert bf.economy.inventory(Side(e.data["side"])).counts[e.data["archetype"]] == e.data["count"]
