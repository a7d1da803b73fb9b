import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from engine.errors import ConfigurationError
from engine.match import MatchController
from engine.model import UNIT_TYPES, LevelConfig
from runtime.runner import TickRunner
from .schemas import EventsResponse, SpawnIn, SpawnOut, StartRequest

logger = logging.getLogger(__name__)

app = FastAPI(title="Lane Push Engine API")
runner: TickRunner | None = None

# Enable CORS for development (front end runs on a different port)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:5174", "http://localhost:5175"],  # Vite dev server
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(ConfigurationError)
async def configuration_error(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

def _require_runner() -> TickRunner:
    if not runner:
        raise HTTPException(400, "Match not started")
    return runner

@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "message": "Lane Push Engine API",
        "docs": "/docs",
        "archetypes": {aid: {"label": a.label, "strength": a.strength} for aid, a in UNIT_TYPES.items()},
    }

@app.on_event("shutdown")
async def shutdown():
    """Stop the tick loop on app shutdown."""
    global runner
    if runner:
        await runner.stop()

@app.post("/match/start")
async def start_match(req: StartRequest):
    """Start a new match with the given level and seed."""
    await shutdown()
    global runner
    level = LevelConfig(**req.level.model_dump())
    runner = TickRunner(MatchController(seed=req.seed))
    await runner.start_match(level)
    await runner.start()
    logger.info(f"[API] Match started with seed {req.seed}")
    return {"state": runner.match.state.value, "lanes": level.lane_count}

@app.post("/match/pause")
async def pause_match():
    r = _require_runner()
    ok = await r.pause()
    return {"ok": ok, "state": r.match.state.value}

@app.post("/match/resume")
async def resume_match():
    r = _require_runner()
    ok = await r.resume()
    return {"ok": ok, "state": r.match.state.value}

@app.post("/match/reset")
async def reset_match():
    """Restart the current level from scratch."""
    r = _require_runner()
    ok = await r.reset()
    return {"ok": ok, "state": r.match.state.value}

@app.post("/match/spawn", response_model=SpawnOut)
async def spawn(req: SpawnIn):
    """Spawn a controlled unit. Rejections are reported, not raised."""
    r = _require_runner()
    result = await r.spawn(req.lane, req.archetype)
    return SpawnOut(
        accepted=result.accepted,
        reason=result.reason.value if result.reason else None,
        unit_id=result.unit_id,
    )

@app.get("/match/state")
async def get_state():
    """Get current match snapshot."""
    r = _require_runner()
    snap = await r.snapshot()
    return snap.to_dict()

@app.get("/match/events")
async def get_events(since: int = 0, limit: int = 500):
    """Get events since offset."""
    r = _require_runner()
    evts, next_offset = r.events.since(since, limit)
    return EventsResponse(
        next_offset=next_offset,
        events=[{"kind": e.kind, "ts_ms": e.ts_ms, "data": e.data} for e in evts]
    )

@app.post("/match/time-control")
async def set_time_control(time_compression: float):
    """Set simulation time compression (1.0 = real-time, higher = faster)."""
    r = _require_runner()
    r.set_time_compression(time_compression)
    return {"time_compression": r.time_compression}

@app.get("/match/time-control")
async def get_time_control():
    """Get current time compression setting."""
    r = _require_runner()
    return {"time_compression": r.time_compression}
