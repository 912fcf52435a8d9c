"""
Collage Studio Main Application
===============================

FastAPI entry point for the collage admission service.

Endpoints:
    GET  /               - Service information
    GET  /health         - Liveness probe
    GET  /state          - Latest delivered collage state + UI affordances
    GET  /metrics        - Admission and broadcast metrics
    GET  /preview.png    - Rendered collage preview
    GET  /thumbnail.png  - Navigation icon thumbnail
    POST /clear          - Reset working set and fingerprint cache
    POST /save           - Store the preview through the photo writer
    WS   /ws/candidates  - One picker session (ends on "done" or when full)
    WS   /ws/collage     - Throttled collage states, latest replayed on connect
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response

from collage_studio.config import settings
from collage_studio.exceptions import ImageDecodeError
from collage_studio.models.decision import AdmissionDecision
from collage_studio.models.output import CollageSnapshot, SaveResult
from collage_studio.models.state import CollageState
from collage_studio.models.ui_state import derive_ui_state
from collage_studio.session import CollageSession
from collage_studio.source import CandidateSource, encode_image_png


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_session: Optional[CollageSession] = None
_startup_time: float = 0.0
_active_pickers: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_session() -> CollageSession:
    if _session is None:
        raise RuntimeError("Collage session not initialized")
    return _session


def to_snapshot(state: CollageState, capacity: int) -> CollageSnapshot:
    """Convert a delivered state to its wire form."""
    return CollageSnapshot(
        revision=state.revision,
        timestamp=time.time(),
        image_ids=state.image_ids,
        ui=derive_ui_state(state.count, capacity),
    )


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _session, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    _session = CollageSession.from_settings(settings)
    _session.start()

    yield

    logger.info("Shutting down...")
    _session.close()
    _session = None
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Collage Studio",
    description="Admission and distribution core for photo collages",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "Collage Studio",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "capacity": settings.collage.capacity,
        "fingerprint_strategy": settings.fingerprint.strategy,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe - always 200 while the process is up."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/state")
async def state() -> JSONResponse:
    """Latest delivered collage state."""
    session = get_session()
    latest = session.channel.latest
    if latest is None:
        return JSONResponse({"error": "No state delivered yet"}, status_code=503)

    snapshot = to_snapshot(latest, session.working_set.capacity)
    return JSONResponse(snapshot.model_dump(mode="json"))


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    session = get_session()
    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "active_pickers": _active_pickers,
        **session.metrics(),
    })


@app.get("/preview.png")
async def preview() -> Response:
    """Rendered collage preview."""
    image = get_session().preview.latest_preview
    if image is None:
        return JSONResponse({"error": "No preview available yet"}, status_code=503)
    return _png_response(image)


@app.get("/thumbnail.png")
async def thumbnail() -> Response:
    """Navigation icon thumbnail of the preview."""
    image = get_session().preview.thumbnail()
    if image is None:
        return JSONResponse({"error": "No preview available yet"}, status_code=503)
    return _png_response(image)


@app.post("/clear")
async def clear() -> JSONResponse:
    """Reset the collage. A new picker session may follow."""
    session = get_session()
    session.clear()
    return JSONResponse({"status": "cleared", "revision": session.revision})


@app.post("/save")
async def save() -> JSONResponse:
    """
    Save the current preview.

    Allowed only while the UI state enables saving. A writer failure is
    returned as an error message; the collage is kept for a retry.
    """
    session = get_session()
    if not session.ui.state.save_enabled:
        result = SaveResult.failed(
            "Saving needs an even, non-zero number of photos"
        )
        return JSONResponse(result.model_dump(mode="json"), status_code=409)

    result = await session.save()
    status_code = 200 if result.success else 502
    return JSONResponse(result.model_dump(mode="json"), status_code=status_code)


def _png_response(image) -> Response:
    try:
        content = encode_image_png(image)
    except ImageDecodeError as e:
        logger.error(f"Preview encoding failed: {e}")
        return JSONResponse({"error": "Preview encoding failed"}, status_code=500)
    return Response(content=content, media_type="image/png")


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/candidates")
async def candidate_stream(websocket: WebSocket) -> None:
    """
    One picker session.

    Candidates are admitted in arrival order. When the working set is full
    the server announces it and closes the connection. A picker that sends
    {"event": "done"} receives a session_complete summary instead.
    """
    global _active_pickers

    await websocket.accept()
    _active_pickers += 1
    logger.info("Picker connected to /ws/candidates")

    source = CandidateSource(websocket)
    try:
        session = get_session()
        decision = await session.run_candidates(source)
        if decision is AdmissionDecision.REJECTED_CAPACITY:
            await websocket.send_json({"event": "session_closed", "reason": "capacity"})
            await websocket.close(code=1000)
        elif source.finished_by_picker:
            await websocket.send_json({
                "event": "session_complete",
                "photo_count": len(session.working_set),
            })
            await websocket.close(code=1000)
    except WebSocketDisconnect:
        logger.info("Picker disconnected mid-session")
    finally:
        _active_pickers -= 1
        logger.info(f"Picker session ended: {source.metrics.to_dict()}")


@app.websocket("/ws/collage")
async def collage_stream(websocket: WebSocket) -> None:
    """Throttled collage states; the latest one is sent on connect."""
    await websocket.accept()
    logger.info("Client connected to /ws/collage")

    session = get_session()
    queue: asyncio.Queue[CollageState] = asyncio.Queue()
    subscription = session.subscribe(queue.put_nowait)
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))

    try:
        while not disconnected.done():
            next_state = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {next_state, disconnected},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if next_state not in done:
                next_state.cancel()
                break

            snapshot = to_snapshot(next_state.result(), session.working_set.capacity)
            await websocket.send_json(snapshot.model_dump(mode="json"))
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        subscription.dispose()
        disconnected.cancel()
        logger.info("Client disconnected from /ws/collage")


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Drain client frames until the client goes away."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "collage_studio.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
