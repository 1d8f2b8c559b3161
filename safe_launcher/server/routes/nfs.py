import logging

from aiohttp import web

from ..dispatcher import Dispatcher
from ..operations import (
    CreateDirectory,
    CreateFile,
    DeleteDirectory,
    GetDirectory,
    ModifyDirectory,
    MoveOrCopyDirectory,
)
from .common import read_json, request_context, respond

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()

FILE_CHUNK_SIZE = 64 * 1024


@routes.post("/nfs/directory/{rootPath}")
@routes.post("/nfs/directory/{rootPath}/{path:.*}")
async def handle_create_directory(request: web.Request) -> web.Response:
    # Endpoint: POST /nfs/directory/{rootPath}/{path}
    # Purpose: Create a directory and any missing parents.
    data, body_error = await read_json(request)
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(
        CreateDirectory(
            **request_context(request),
            body_error=body_error,
            root_path=request.match_info["rootPath"],
            path=request.match_info.get("path"),
            metadata=data.get("metadata"),
            is_private=data.get("isPrivate"),
        )
    )
    return respond(result)


@routes.get("/nfs/directory/{rootPath}")
@routes.get("/nfs/directory/{rootPath}/{path:.*}")
async def handle_get_directory(request: web.Request) -> web.Response:
    # Endpoint: GET /nfs/directory/{rootPath}/{path}
    # Purpose: Read a directory with its sub directories and files.
    # Response: DirectoryResponse
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(
        GetDirectory(
            **request_context(request),
            root_path=request.match_info["rootPath"],
            path=request.match_info.get("path"),
        )
    )
    return respond(result)


@routes.delete("/nfs/directory/{rootPath}")
@routes.delete("/nfs/directory/{rootPath}/{path:.*}")
async def handle_delete_directory(request: web.Request) -> web.Response:
    # Endpoint: DELETE /nfs/directory/{rootPath}/{path}
    # Purpose: Delete a directory and its contents.
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(
        DeleteDirectory(
            **request_context(request),
            root_path=request.match_info["rootPath"],
            path=request.match_info.get("path"),
        )
    )
    return respond(result)


@routes.put("/nfs/directory/{rootPath}")
@routes.put("/nfs/directory/{rootPath}/{path:.*}")
async def handle_modify_directory(request: web.Request) -> web.Response:
    # Endpoint: PUT /nfs/directory/{rootPath}/{path}
    # Purpose: Rename a directory or replace its metadata.
    data, body_error = await read_json(request)
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(
        ModifyDirectory(
            **request_context(request),
            body_error=body_error,
            root_path=request.match_info["rootPath"],
            path=request.match_info.get("path"),
            name=data.get("name"),
            metadata=data.get("metadata"),
        )
    )
    return respond(result)


@routes.post("/nfs/movedir")
async def handle_move_directory(request: web.Request) -> web.Response:
    # Endpoint: POST /nfs/movedir
    # Purpose: Move or copy a directory into another directory.
    data, body_error = await read_json(request)
    dispatcher: Dispatcher = request.app["dispatcher"]
    result = await dispatcher.dispatch(
        MoveOrCopyDirectory(
            **request_context(request),
            body_error=body_error,
            src_root_path=data.get("srcRootPath"),
            src_path=data.get("srcPath"),
            dest_root_path=data.get("destRootPath"),
            dest_path=data.get("destPath"),
            action=data.get("action"),
        )
    )
    return respond(result)


@routes.post("/nfs/file/{rootPath}/{path:.*}")
async def handle_create_file(request: web.Request) -> web.Response:
    # Endpoint: POST /nfs/file/{rootPath}/{path}?metadata=...
    # Purpose: Create a file from the raw request body.
    dispatcher: Dispatcher = request.app["dispatcher"]
    content = request.content.iter_chunked(FILE_CHUNK_SIZE) if request.can_read_body else None
    result = await dispatcher.dispatch(
        CreateFile(
            **request_context(request),
            root_path=request.match_info["rootPath"],
            path=request.match_info.get("path"),
            metadata=request.query.get("metadata"),
            content=content,
        )
    )
    return respond(result)
