from typing import Optional, Sequence, TypeVar
import numpy as np

T = TypeVar("T")


class DRNG:
    """Deterministic Random Number Generator wrapper."""

    def __init__(self, seed: int):
        self.g = np.random.Generator(np.random.PCG64(seed))

    def bernoulli(self, p: float) -> bool:
        """Return True with probability p."""
        return bool(self.g.random() < p)

    def integer(self, n: int) -> int:
        """Return a random int in [0, n)."""
        return int(self.g.integers(0, n))

    def choice(self, items: Sequence[T], weights: Optional[Sequence[float]] = None) -> T:
        """Pick one item, uniformly or proportionally to weights."""
        if not items:
            raise ValueError("choice from empty sequence")
        if weights is None:
            return items[self.integer(len(items))]
        w = np.asarray(weights, dtype=float)
        idx = int(self.g.choice(len(items), p=w / w.sum()))
        return items[idx]
