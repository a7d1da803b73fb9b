import asyncio
import logging
from typing import List
from engine.match import MatchController
from engine.model import Event, LevelConfig, Snapshot, SpawnResult
from .eventlog import EventLog

logger = logging.getLogger(__name__)

class TickRunner:
    """Async host loop that feeds frame time into a match on a fixed cadence."""

    def __init__(self, match: MatchController, frame_ms: int = 50, time_compression: float = 1.0):
        self.match = match
        self.frame_ms = frame_ms
        self.time_compression = time_compression
        self.sleep_s = (frame_ms / 1000.0) / max(1.0, time_compression)
        self.events = EventLog()
        self._task: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    async def start(self):
        """Start the tick loop."""
        if self._task:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        """Stop the tick loop gracefully."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self):
        """Main tick loop - advance the match, log events."""
        while True:
            async with self._lock:
                evts: List[Event] = self.match.tick(self.frame_ms)
            if evts:
                logger.debug(f"[TickRunner] Frame produced {len(evts)} events")
                self.events.append_many(evts)
            await asyncio.sleep(self.sleep_s)

    async def spawn(self, lane: int, archetype_id: str) -> SpawnResult:
        """Apply a controlled spawn between ticks."""
        async with self._lock:
            return self.match.spawn_controlled(lane, archetype_id)

    async def start_match(self, level: LevelConfig) -> None:
        async with self._lock:
            self.match.start(level)
            self.events.clear()

    async def pause(self) -> bool:
        async with self._lock:
            return self.match.pause()

    async def resume(self) -> bool:
        async with self._lock:
            return self.match.resume()

    async def reset(self) -> bool:
        async with self._lock:
            ok = self.match.reset()
            if ok:
                self.events.clear()
            return ok

    async def snapshot(self) -> Snapshot:
        """Get current match snapshot (serialised with ticks)."""
        async with self._lock:
            return self.match.snapshot()

    def set_time_compression(self, time_compression: float):
        """Update time compression factor (1.0 = real-time, higher = faster)."""
        self.time_compression = max(0.1, min(1000.0, time_compression))
        self.sleep_s = (self.frame_ms / 1000.0) / max(1.0, self.time_compression)
        logger.info(f"[TickRunner] Time compression set to {self.time_compression}x (sleep: {self.sleep_s:.4f}s)")
