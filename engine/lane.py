from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from .errors import InvariantViolation
from .model import LaneView, Side, Unit, UnitView
from .rules import Rules


def stack_strength(units: Sequence[Unit], tolerance: float) -> int:
    """Sum strengths of the connected prefix of a leader-first queue.

    The leader always counts. Each following unit counts only while it sits
    within radius + radius + tolerance of the unit ahead; the first gap
    severs everything behind it.
    """
    if not units:
        return 0
    total = units[0].strength
    for prev, u in zip(units, units[1:]):
        if abs(u.position - prev.position) <= u.radius + prev.radius + tolerance:
            total += u.strength
        else:
            break
    return total


def leader_first(units: Sequence[Unit], side: Side) -> List[Unit]:
    """Order a queue so the most advanced unit comes first; ties go to the older unit."""
    if side is Side.CONTROLLED:
        return sorted(units, key=lambda u: (u.position, u.id))
    return sorted(units, key=lambda u: (-u.position, u.id))


@dataclass
class LaneOutcome:
    """What one resolve step produced. Damage is applied by the battlefield."""
    engaging: bool = False
    contest_winner: Optional[Side] = None
    hits: List[Unit] = field(default_factory=list)
    stalemate_started: bool = False  # first step of a stalemate episode

    @property
    def stalemate(self) -> bool:
        return self.engaging and self.contest_winner is None


class Lane:
    """One corridor holding a queue of units per side."""

    def __init__(self, index: int, rules: Rules):
        self.index = index
        self.rules = rules
        self.controlled: List[Unit] = []
        self.opponent: List[Unit] = []
        self.engaging = False
        self.stalemated = False

    def queue(self, side: Side) -> List[Unit]:
        return self.controlled if side is Side.CONTROLLED else self.opponent

    def add(self, unit: Unit) -> None:
        """Append a freshly spawned unit to its side's queue."""
        self._check_unit(unit, unit.side)
        self.queue(unit.side).append(unit)

    def leader(self, side: Side) -> Optional[Unit]:
        q = self.queue(side)
        if not q:
            return None
        return leader_first(q, side)[0]

    def strength(self, side: Side) -> int:
        return stack_strength(leader_first(self.queue(side), side), self.rules.chain_tolerance)

    def is_empty(self) -> bool:
        return not self.controlled and not self.opponent

    def _check_unit(self, unit: Unit, side: Side) -> None:
        if unit.side is not side:
            raise InvariantViolation(f"unit {unit.id} of {unit.side.value} in {side.value} queue of lane {self.index}")
        if unit.lane != self.index:
            raise InvariantViolation(f"unit {unit.id} belongs to lane {unit.lane}, found in lane {self.index}")
        if unit.strength <= 0:
            raise InvariantViolation(f"unit {unit.id} has non-positive strength {unit.strength}")

    def check_invariants(self) -> None:
        for side in Side:
            for u in self.queue(side):
                self._check_unit(u, side)

    def _step_size(self, unit: Unit) -> float:
        return unit.move_speed * self.rules.tick_speed_factor

    def _engaged(self, p_lead: Optional[Unit], b_lead: Optional[Unit]) -> bool:
        if p_lead is None or b_lead is None:
            return False
        gap = abs(p_lead.position - b_lead.position)
        return gap < p_lead.radius + b_lead.radius + self.rules.engage_margin

    def _follow(self, units: List[Unit], side: Side) -> None:
        """Pull every non-leader toward its ideal spacing behind the unit ahead."""
        d = side.direction
        for ahead, u in zip(units, units[1:]):
            ideal_dist = u.radius + ahead.radius + self.rules.follow_buffer
            ideal_pos = ahead.position - d * ideal_dist
            behind_by = (ideal_pos - u.position) * d
            if behind_by > 0:
                step = self._step_size(u)
                if step >= behind_by:
                    u.position = ideal_pos
                else:
                    u.position += d * step
            else:
                # No interpenetration: never closer than the ideal spacing
                u.position = ideal_pos

    def _collect_hits(self) -> List[Unit]:
        hits: List[Unit] = []
        goal = {
            Side.CONTROLLED: lambda pos: pos < self.rules.baseline_margin,
            Side.OPPONENT: lambda pos: pos > self.rules.lane_length - self.rules.baseline_margin,
        }
        for side in (Side.CONTROLLED, Side.OPPONENT):
            q = self.queue(side)
            crossed = goal[side]
            for i in range(len(q) - 1, -1, -1):
                if crossed(q[i].position):
                    hits.append(q.pop(i))
        return hits

    def resolve(self) -> LaneOutcome:
        """Advance this lane by one fixed step."""
        if __debug__:
            self.check_invariants()
        outcome = LaneOutcome()
        if self.is_empty():
            self.engaging = False
            self.stalemated = False
            return outcome

        self.controlled[:] = leader_first(self.controlled, Side.CONTROLLED)
        self.opponent[:] = leader_first(self.opponent, Side.OPPONENT)
        p_lead = self.controlled[0] if self.controlled else None
        b_lead = self.opponent[0] if self.opponent else None

        outcome.engaging = self._engaged(p_lead, b_lead)
        if outcome.engaging:
            p_push = stack_strength(self.controlled, self.rules.chain_tolerance)
            b_push = stack_strength(self.opponent, self.rules.chain_tolerance)
            if p_push != b_push:
                winner = Side.CONTROLLED if p_push > b_push else Side.OPPONENT
                shift = winner.direction * self.rules.contest_step
                p_lead.position += shift
                b_lead.position += shift
                outcome.contest_winner = winner
        else:
            for lead in (p_lead, b_lead):
                if lead is not None:
                    lead.position += lead.side.direction * self._step_size(lead)

        self._follow(self.controlled, Side.CONTROLLED)
        self._follow(self.opponent, Side.OPPONENT)

        outcome.hits = self._collect_hits()
        outcome.stalemate_started = outcome.stalemate and not self.stalemated
        self.engaging = outcome.engaging
        self.stalemated = outcome.stalemate
        return outcome

    def view(self) -> LaneView:
        def views(units: List[Unit]) -> tuple:
            return tuple(UnitView(id=u.id, archetype_id=u.archetype.id, position=u.position,
                                  radius=u.radius, strength=u.strength) for u in units)

        p = leader_first(self.controlled, Side.CONTROLLED)
        b = leader_first(self.opponent, Side.OPPONENT)
        return LaneView(
            index=self.index,
            controlled=views(p),
            opponent=views(b),
            controlled_strength=stack_strength(p, self.rules.chain_tolerance),
            opponent_strength=stack_strength(b, self.rules.chain_tolerance),
            engaging=self.engaging,
        )
