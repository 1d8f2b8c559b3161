from aiohttp import web

from ..dispatcher import Dispatcher
from ..operations import GetClientStats
from .common import request_context, respond

routes = web.RouteTableDef()


@routes.get("/clientStats")
async def handle_client_stats(request: web.Request) -> web.Response:
    # Endpoint: GET /clientStats
    # Purpose: Count of network requests issued by the authenticated session.
    # Response: ClientStatsVO
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(GetClientStats(**request_context(request)))
    return respond(result)
