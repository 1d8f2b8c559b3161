"""Helpers shared by the route handlers."""

import json
import logging
from typing import Any

from aiohttp import web

from ..dispatcher import DispatchResult
from ..errors import InvalidParameterException, LauncherException
from ..services.auth import CallerContext

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


def request_context(request: web.Request) -> dict[str, Any]:
    """Fields every operation built from this request carries."""
    caller: CallerContext = request["caller"]
    return {"request_id": request["request_id"], "caller": caller}


async def read_json(request: web.Request) -> tuple[dict[str, Any], LauncherException | None]:
    """Read a JSON object body.

    A missing body is an empty object. A body that isn't a JSON object is
    returned as an error instead of being raised, so the operation can
    still check the caller first.
    """
    # read() returns the cached bytes when the trace log already read the body.
    body = await request.read()
    if not body:
        return {}, None
    try:
        data = json.loads(body)
    except ValueError:
        logger.debug("Request %s has a malformed body", request["request_id"])
        return {}, InvalidParameterException("body")
    if not isinstance(data, dict):
        return {}, InvalidParameterException("body")
    return data, None


def respond(result: DispatchResult) -> web.Response:
    headers = {REQUEST_ID_HEADER: result.request_id}
    if result.body is None:
        return web.Response(status=result.status, headers=headers)
    return web.json_response(result.body, status=result.status, headers=headers)
