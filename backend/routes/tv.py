# backend/routes/tv.py
import asyncio
import json
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from config import settings
from database import get_db, SessionLocal
from utils.state_observer import StateObserver
from utils.table_board import build_tv_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tv", tags=["TV"])

KEEP_ALIVE_SECONDS = 15.0


# Workshop floor display; read-only and shown without signing in
@router.get("/board")
def tv_board(db: Session = Depends(get_db)):
    return build_tv_snapshot(db)


def _snapshot_json() -> str:
    db = SessionLocal()
    try:
        return json.dumps(jsonable_encoder(build_tv_snapshot(db)))
    finally:
        db.close()


@router.get("/stream")
async def tv_stream(request: Request):
    """Server-sent events: one `snapshot` event whenever the board may have changed.

    Changes published by the API trigger a recompute straight away; a timer
    recomputes every TV_POLL_INTERVAL_SECONDS to catch anything missed.
    """
    snapshots: asyncio.Queue = asyncio.Queue(maxsize=1)

    async def on_change():
        payload = await run_in_threadpool(_snapshot_json)
        # Only the newest snapshot matters to a slow client
        if snapshots.full():
            snapshots.get_nowait()
        snapshots.put_nowait(payload)

    observer = StateObserver(request.app.state.change_feed, on_change, interval=settings.TV_POLL_INTERVAL_SECONDS)

    async def events():
        await observer.start()
        last = None
        try:
            while not await request.is_disconnected():
                try:
                    payload = await asyncio.wait_for(snapshots.get(), timeout=KEEP_ALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                if payload != last:
                    last = payload
                    yield f"event: snapshot\ndata: {payload}\n\n"
        finally:
            await observer.stop()
            logger.debug("TV stream closed")

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
