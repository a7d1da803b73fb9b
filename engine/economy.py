import logging
from typing import Dict, List, Optional, Tuple
from .model import ARCHETYPE_IDS, RejectReason, Side
from .rng import DRNG
from .rules import Rules

logger = logging.getLogger(__name__)


class Inventory:
    """Per-side stock of spawnable units, capped per archetype."""

    def __init__(self, cap: int, initial: int):
        self.cap = cap
        self.counts: Dict[str, int] = {aid: initial for aid in ARCHETYPE_IDS}

    def available(self) -> List[str]:
        """Archetype ids with stock left, in catalog order."""
        return [aid for aid in ARCHETYPE_IDS if self.counts[aid] > 0]

    def has(self, archetype_id: str) -> bool:
        return self.counts.get(archetype_id, 0) > 0

    def take(self, archetype_id: str) -> bool:
        if not self.has(archetype_id):
            return False
        self.counts[archetype_id] -= 1
        return True

    def add(self, archetype_id: str) -> bool:
        """Add one unit of stock. Dropped (returns False) when already at cap."""
        if self.counts[archetype_id] >= self.cap:
            return False
        self.counts[archetype_id] += 1
        return True

    def as_dict(self) -> Dict[str, int]:
        return dict(self.counts)


class SpawnEconomy:
    """Inventories for both sides plus the controlled side's spawn cooldown."""

    def __init__(self, rules: Rules, rng: DRNG):
        self.rules = rules
        self._rng = rng
        self.inventories: Dict[Side, Inventory] = {
            side: Inventory(rules.inventory_cap, rules.initial_stock) for side in Side
        }
        self.last_spawn_ms: Optional[float] = None

    def inventory(self, side: Side) -> Inventory:
        return self.inventories[side]

    def check_controlled(self, archetype_id: str, now_ms: float) -> Optional[RejectReason]:
        """Return why a controlled spawn would be refused right now, or None."""
        if self.last_spawn_ms is not None and now_ms - self.last_spawn_ms < self.rules.spawn_cooldown_ms:
            return RejectReason.ON_COOLDOWN
        if not self.inventories[Side.CONTROLLED].has(archetype_id):
            return RejectReason.OUT_OF_STOCK
        return None

    def commit_controlled(self, archetype_id: str, now_ms: float) -> None:
        self.inventories[Side.CONTROLLED].take(archetype_id)
        self.last_spawn_ms = now_ms

    def replenish(self) -> List[Tuple[Side, str, bool]]:
        """Grant one random archetype to each side; returns (side, archetype, added)."""
        results = []
        for side in (Side.CONTROLLED, Side.OPPONENT):
            aid = self._rng.choice(ARCHETYPE_IDS)
            added = self.inventories[side].add(aid)
            if not added:
                logger.debug(f"{side.value} stock of {aid} at cap, replenish dropped")
            results.append((side, aid, added))
        return results
