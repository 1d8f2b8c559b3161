from aiohttp import web

from ..dispatcher import Dispatcher
from ..operations import Clean, Connect, CreateAccount, Login
from .common import read_json, request_context, respond

routes = web.RouteTableDef()


@routes.post("/connect")
async def handle_connect(request: web.Request) -> web.Response:
    # Endpoint: POST /connect
    # Purpose: Open the anonymous session against the network.
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(Connect(**request_context(request)))
    return respond(result)


@routes.post("/auth/account")
async def handle_create_account(request: web.Request) -> web.Response:
    # Endpoint: POST /auth/account
    # Purpose: Create a network account and log in with it.
    data, body_error = await read_json(request)
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(
        CreateAccount(
            **request_context(request),
            body_error=body_error,
            keyword=data.get("keyword"),
            pin=data.get("pin"),
            password=data.get("password"),
        )
    )
    return respond(result)


@routes.post("/auth/login")
async def handle_login(request: web.Request) -> web.Response:
    # Endpoint: POST /auth/login
    # Purpose: Open the authenticated session of an existing account.
    data, body_error = await read_json(request)
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(
        Login(
            **request_context(request),
            body_error=body_error,
            keyword=data.get("keyword"),
            pin=data.get("pin"),
            password=data.get("password"),
        )
    )
    return respond(result)


@routes.delete("/auth/login")
async def handle_logout(request: web.Request) -> web.Response:
    # Endpoint: DELETE /auth/login
    # Purpose: Close open files and drop the authenticated session.
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(Clean(**request_context(request)))
    return respond(result)
