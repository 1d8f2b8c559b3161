"""Routing of operations to the services that run them."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..models.client import ClientStatsVO
from ..network import LibraryLoadError, NativeCode, NetworkClient
from ..network.errors import DESCRIPTIONS
from .errors import (
    InternalErrorException,
    InvalidParameterException,
    LauncherException,
    UnauthorisedException,
)
from .operations import (
    Clean,
    Connect,
    CreateAccount,
    CreateDirectory,
    CreateFile,
    DeleteDirectory,
    GetClientStats,
    GetDirectory,
    Login,
    ModifyDirectory,
    MoveOrCopyDirectory,
    Operation,
)
from .services.auth import CallerContext
from .services.client import ClientHandleManager
from .services.directory import DirectoryService, NfsContext, native_errors
from .services.observer import ClientKind
from .services.writers import WriterRegistry
from .utils import paths
from .utils.paths import MutationKind

logger = logging.getLogger(__name__)

MODULE_NOT_FOUND = "Module not found"


@dataclass
class DispatchResult:
    """Outcome of one operation."""

    request_id: str
    status: int = 200
    body: dict[str, Any] | None = None
    error: LauncherException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _library_load_error() -> InternalErrorException:
    return InternalErrorException(
        DESCRIPTIONS[NativeCode.LIB_LOAD_ERROR], native_code=int(NativeCode.LIB_LOAD_ERROR)
    )


def _credentials(op: Login | CreateAccount) -> tuple[str, str, str]:
    if op.body_error is not None:
        raise op.body_error
    paths.require_fields(keyword=op.keyword, pin=op.pin, password=op.password)
    for name in ("keyword", "pin", "password"):
        if not isinstance(getattr(op, name), str):
            raise InvalidParameterException(name)
    return op.keyword, op.pin, op.password


class Dispatcher:
    """Runs operations and turns their outcome into a `DispatchResult`.

    Operations that touch the network namespace check the caller before
    anything else, then validate their fields, then run against the
    authenticated client handle.
    """

    def __init__(
        self,
        manager: ClientHandleManager,
        directory_service: DirectoryService,
        writers: WriterRegistry,
    ) -> None:
        self._manager = manager
        self._directory = directory_service
        self._writers = writers
        self._routes: dict[type[Operation], Callable[[Any], Awaitable[dict | None]]] = {
            Connect: self._connect,
            CreateAccount: self._create_account,
            Login: self._login,
            Clean: self._clean,
            GetClientStats: self._client_stats,
            CreateDirectory: self._create_directory,
            GetDirectory: self._get_directory,
            DeleteDirectory: self._delete_directory,
            ModifyDirectory: self._modify_directory,
            MoveOrCopyDirectory: self._move_or_copy,
            CreateFile: self._create_file,
        }

    async def dispatch(self, op: Operation) -> DispatchResult:
        """Run an operation. Never raises."""
        try:
            handler = self._routes.get(type(op))
            if handler is None:
                raise InternalErrorException(MODULE_NOT_FOUND)
            body = await handler(op)
        except LauncherException as err:
            logger.info(
                "Request %s (%s) failed: %s %s",
                op.request_id,
                op.module,
                err.kind.value,
                err.description,
            )
            return DispatchResult(
                request_id=op.request_id,
                status=err.status,
                body=err.to_response().to_dict(),
                error=err,
            )
        except Exception as err:
            logger.exception("Unexpected error in request %s", op.request_id)
            wrapped = InternalErrorException(str(err) or err.__class__.__name__)
            return DispatchResult(
                request_id=op.request_id,
                status=wrapped.status,
                body=wrapped.to_response().to_dict(),
                error=wrapped,
            )
        return DispatchResult(request_id=op.request_id, body=body)

    async def clean_up(self) -> None:
        """Close open writers, then release every client handle."""
        await self._writers.close_all()
        await self._manager.release_all()

    async def _authorised_client(self, op: Operation) -> NetworkClient:
        """Resolve the client handle of an authorised caller.

        Runs before any validation of the request.
        """
        if not op.caller.is_authorised:
            raise UnauthorisedException()
        client = await self._manager.acquire(ClientKind.AUTHENTICATED)
        if client is None:
            raise UnauthorisedException()
        if op.body_error is not None:
            raise op.body_error
        return client

    async def _nfs_context(self, caller: CallerContext, client: NetworkClient) -> NfsContext:
        if caller.app is None:
            raise UnauthorisedException()
        with native_errors():
            app_dir_key = await client.get_app_dir_key(
                caller.app.name, caller.app.id, caller.app.vendor
            )
            drive_key = (
                await client.get_safe_drive_key() if caller.has_drive_access else None
            )
        return NfsContext(client=client, app_dir_key=app_dir_key, safe_drive_key=drive_key)

    async def _connect(self, op: Connect) -> None:
        if await self._manager.acquire(ClientKind.ANONYMOUS) is None:
            raise _library_load_error()
        return None

    async def _create_account(self, op: CreateAccount) -> None:
        keyword, pin, password = _credentials(op)
        try:
            with native_errors():
                await self._manager.create_account(keyword, pin, password)
        except LibraryLoadError:
            raise _library_load_error() from None
        return None

    async def _login(self, op: Login) -> None:
        keyword, pin, password = _credentials(op)
        try:
            with native_errors():
                await self._manager.login(keyword, pin, password)
        except LibraryLoadError:
            raise _library_load_error() from None
        return None

    async def _clean(self, op: Clean) -> None:
        await self._writers.close_all()
        await self._manager.release(ClientKind.AUTHENTICATED)
        return None

    async def _client_stats(self, op: GetClientStats) -> dict:
        client = await self._authorised_client(op)
        with native_errors():
            stats = await client.get_stats()
        return ClientStatsVO(
            get=stats.gets, put=stats.puts, post=stats.posts, delete=stats.deletes
        ).to_dict()

    async def _create_directory(self, op: CreateDirectory) -> None:
        client = await self._authorised_client(op)
        path = paths.resolve(op.root_path, op.path, MutationKind.CREATE)
        metadata = paths.validate_metadata(op.metadata)
        is_private = paths.validate_is_private(op.is_private)
        ctx = await self._nfs_context(op.caller, client)
        await self._directory.create(ctx, path, metadata, is_private)
        return None

    async def _get_directory(self, op: GetDirectory) -> dict:
        client = await self._authorised_client(op)
        path = paths.resolve(op.root_path, op.path, MutationKind.READ)
        ctx = await self._nfs_context(op.caller, client)
        response = await self._directory.get(ctx, path)
        return response.to_dict()

    async def _delete_directory(self, op: DeleteDirectory) -> None:
        client = await self._authorised_client(op)
        path = paths.resolve(op.root_path, op.path, MutationKind.DELETE)
        ctx = await self._nfs_context(op.caller, client)
        await self._directory.delete(ctx, path)
        return None

    async def _modify_directory(self, op: ModifyDirectory) -> None:
        client = await self._authorised_client(op)
        path = paths.resolve(op.root_path, op.path, MutationKind.MODIFY)
        name, metadata = paths.validate_modify_fields(op.name, op.metadata)
        ctx = await self._nfs_context(op.caller, client)
        await self._directory.modify(ctx, path, name, metadata)
        return None

    async def _move_or_copy(self, op: MoveOrCopyDirectory) -> None:
        client = await self._authorised_client(op)
        paths.require_fields(
            srcRootPath=op.src_root_path,
            srcPath=op.src_path,
            destRootPath=op.dest_root_path,
            destPath=op.dest_path,
        )
        src = paths.resolve(
            op.src_root_path, op.src_path, MutationKind.MOVE_SOURCE, root_field="srcRootPath"
        )
        dest = paths.resolve(
            op.dest_root_path,
            op.dest_path,
            MutationKind.MOVE_DESTINATION,
            root_field="destRootPath",
        )
        action = paths.resolve_action(op.action)
        ctx = await self._nfs_context(op.caller, client)
        await self._directory.move_or_copy(ctx, src, dest, action)
        return None

    async def _create_file(self, op: CreateFile) -> None:
        client = await self._authorised_client(op)
        path = paths.resolve(op.root_path, op.path, MutationKind.CREATE)
        metadata = paths.validate_metadata(op.metadata)
        ctx = await self._nfs_context(op.caller, client)
        await self._directory.create_file(ctx, path, op.content, metadata)
        return None
