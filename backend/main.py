"""
FastAPI backend for the Rescue live incident feed.
Hosts one feed session and streams its changes over a WebSocket.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
import logging

from backend.feed_ws import feed_update_manager
from backend.models.feed import FeedResponse, FeedStatus, ViewerLocationOut
from incident_feed.config import FeedConfig
from incident_feed.session import FeedSession, build_session

logger = logging.getLogger(__name__)


def _snapshot_payload(app: FastAPI) -> dict:
    session: Optional[FeedSession] = getattr(app.state, "session", None)
    if session is None:
        return {"incidents": [], "total": 0}
    return FeedResponse.from_snapshot(session.snapshot()).model_dump(mode="json")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    config = FeedConfig.from_env()
    app.state.config = config
    app.state.session = None

    feed_update_manager.snapshot_provider = lambda: _snapshot_payload(app)
    await feed_update_manager.start()

    if config.autostart:
        session = build_session(config, sink=feed_update_manager)
        app.state.session = session
        await session.mount()
        logger.info("Feed session mounted")
    else:
        logger.info("FEED_AUTOSTART disabled, no feed session started")

    yield

    session = app.state.session
    if session is not None:
        await session.unmount()
        app.state.session = None
        logger.info("Feed session unmounted")

    await feed_update_manager.stop()
    feed_update_manager.snapshot_provider = None


app = FastAPI(
    title="Rescue Feed API",
    description="Live nearby incident feed for officers",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_session(request: Request) -> FeedSession:
    session = getattr(request.app.state, "session", None)
    if session is None or not session.mounted:
        raise HTTPException(status_code=503, detail="Feed session is not running")
    return session


# =====================
# Feed Endpoints
# =====================


@app.get("/api/feed", response_model=FeedResponse)
async def get_feed(request: Request):
    """Visible incidents, most recent first."""
    session = _require_session(request)
    return FeedResponse.from_snapshot(session.snapshot())


@app.get("/api/feed/status", response_model=FeedStatus)
async def get_feed_status(request: Request):
    """Readiness, queue and dedup state of the running session."""
    session = _require_session(request)
    snapshot = session.snapshot()
    error = session.last_fetch_error
    return FeedStatus(
        mounted=snapshot.mounted,
        ready=snapshot.ready,
        readiness=snapshot.readiness,
        pending=snapshot.pending,
        registered=snapshot.registered,
        visible=len(snapshot.incidents),
        viewer_location=ViewerLocationOut.from_location(snapshot.viewer_location),
        stats=snapshot.stats,
        last_fetch_error=str(error) if error else None,
        scheduler_running=session.scheduler.running,
        refresh_runs=session.scheduler.runs,
        ws_clients=feed_update_manager.client_count,
    )


@app.post("/api/feed/refresh")
async def refresh_feed(request: Request):
    """Re-fetch nearby incidents now instead of waiting for the next cycle."""
    session = _require_session(request)
    created = await session.refresh()
    error = session.last_fetch_error
    return {
        "success": error is None,
        "new_incidents": len(created),
        "error": str(error) if error else None,
    }


# =====================
# WebSocket: Feed Updates
# =====================


@app.websocket("/ws/feed")
async def websocket_feed(ws: WebSocket):
    """Real-time incident feed stream."""
    await feed_update_manager.connect(ws)
    try:
        while True:
            # Keep connection alive; client may send pings
            await ws.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await feed_update_manager.disconnect(ws)


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    session = getattr(request.app.state, "session", None)
    status = {"status": "healthy", "feed": "disabled"}
    if session is not None:
        status["feed"] = "ready" if session.reconciler.is_ready else "degraded"
    return status


if __name__ == "__main__":
    import uvicorn
    config = FeedConfig.from_env()
    uvicorn.run(app, host=config.host, port=config.port)
