import json
import logging

from aiohttp import web

from ...models.client import ConnectionEventVO
from ..services.observer import ConnectionObserver

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()


@routes.get("/events")
async def handle_events(request: web.Request) -> web.StreamResponse:
    # Endpoint: GET /events
    # Purpose: Server sent events for connection state changes.
    # Response: stream of ConnectionEventVO
    observer: ConnectionObserver = request.app["connection_observer"]
    queue = observer.subscribe()
    response = web.StreamResponse(
        headers={"Content-Type": "text/event-stream", "Cache-Control": "no-cache"}
    )
    try:
        await response.prepare(request)
        await response.write(b": connected\n\n")
        while (event := await queue.get()) is not None:
            vo = ConnectionEventVO(
                is_registered=event.is_registered,
                state=event.state,
                timestamp=event.timestamp,
            )
            payload = json.dumps(vo.to_dict())
            await response.write(f"event: network-state\ndata: {payload}\n\n".encode())
    except ConnectionResetError:
        logger.debug("Event subscriber disconnected")
    finally:
        observer.unsubscribe(queue)
    return response
