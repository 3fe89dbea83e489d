"""
Queue Stream Route for songqueue.

Provides /queue/stream, a Server-Sent Events feed for broadcast overlays:
- On connect: a `retry` hint, then the current snapshot
- Afterwards: one snapshot per state change
- Keep-alive pings come from sse-starlette

The connection stays open until the client leaves; the generator's cleanup
unsubscribes the observer whether it ends by disconnect, cancellation or the
notifier dropping it.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator

from fastapi import APIRouter, FastAPI, Request
from sse_starlette.sse import EventSourceResponse

if TYPE_CHECKING:
    from songqueue.core.commands import QueueService
    from songqueue.core.notifier import ObserverHandle

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stream"])

STREAM_PING_INTERVAL = 15  # seconds


def register_stream_routes(app: FastAPI) -> None:
    """Register the stream route at /queue/stream and /api/queue/stream."""
    app.include_router(router)
    app.include_router(router, prefix="/api")


async def snapshot_events(
    service: QueueService,
    retry_ms: int,
) -> AsyncIterator[dict[str, Any]]:
    """
    Yield SSE event dicts for one observer until it is closed.

    Subscribing happens when the stream starts, so the first snapshot is the
    state at that moment and no observer exists without a consumer.
    """
    handle: ObserverHandle = service.subscribe()
    logger.info("Stream opened for observer %d", handle.observer_id)
    try:
        yield {"retry": retry_ms}
        while True:
            snapshot = await handle.next_snapshot()
            if snapshot is None:
                break
            yield {"data": json.dumps(snapshot.to_dict(), ensure_ascii=False)}
    finally:
        service.unsubscribe(handle)
        logger.info("Stream closed for observer %d", handle.observer_id)


@router.get("/queue/stream")
async def queue_stream(request: Request) -> EventSourceResponse:
    """Long-lived snapshot feed for overlays."""
    service: QueueService = request.app.state.queue_service
    retry_ms: int = request.app.state.settings.stream_retry_ms

    return EventSourceResponse(
        snapshot_events(service, retry_ms),
        ping=STREAM_PING_INTERVAL,
    )
