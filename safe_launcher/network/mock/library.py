"""A local, database backed stand-in for the native network client.

The mock keeps accounts and the directory tree in a SQLite database so the
launcher can be run and tested without a connection to the network.
"""

import asyncio
import hashlib
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..base import (
    ClientStats,
    ConnectionState,
    DirectoryContents,
    DirectoryEntry,
    FileEntry,
    NativeLibrary,
    NativeWriter,
    NetworkClient,
    ObserverCallback,
)
from ..errors import NativeCode, NativeError
from .models import AccountDO, AppDO, DirectoryDO, FileDO
from .session import DatabaseSessionManager
from .vfs import VirtualFileSystem, now_ms

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DRIVE_ROOT_NAME = "SAFEDrive-Root-Dir"
USER_ROOT_NAME = "User-Root-Dir"


def _hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def _to_directory_entry(node: DirectoryDO) -> DirectoryEntry:
    return DirectoryEntry(
        name=node.name,
        metadata=node.user_metadata,
        is_private=node.is_private,
        is_versioned=node.is_versioned,
        created_on=node.created_on,
        modified_on=node.modified_on,
    )


def _to_file_entry(node: FileDO) -> FileEntry:
    return FileEntry(
        name=node.name,
        size=node.size,
        metadata=node.user_metadata,
        created_on=node.created_on,
        modified_on=node.modified_on,
    )


class MockWriter(NativeWriter):
    """Buffers file content in memory until closed."""

    def __init__(
        self, client: "MockClient", dir_id: int, name: str, metadata: str
    ) -> None:
        self._client = client
        self._dir_id = dir_id
        self._name = name
        self._metadata = metadata
        self._buffer = bytearray()
        self._closed = False

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise NativeError(NativeCode.OPERATION_FORBIDDEN, "Writer is closed")
        self._buffer.extend(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._client._commit_file(
            self._dir_id, self._name, self._metadata, bytes(self._buffer)
        )


class MockClient(NetworkClient):
    """A session against the mock vault."""

    def __init__(self, library: "MockLibrary", account_id: int | None) -> None:
        self._library = library
        self._account_id = account_id
        self._observer: ObserverCallback | None = None
        self._stats = ClientStats()
        self._closed = False

    @property
    def is_registered(self) -> bool:
        return self._account_id is not None

    def register_network_event_observer(self, callback: ObserverCallback | None) -> None:
        self._observer = callback
        if callback is not None and not self._closed:
            self.emit(ConnectionState.CONNECTED)

    def emit(self, state: ConnectionState) -> None:
        """Report a connection state change to the registered observer."""
        if (observer := self._observer) is not None:
            observer(int(state))

    def _require_account(self) -> int:
        if self._closed or self._account_id is None:
            raise NativeError(NativeCode.OPERATION_FORBIDDEN)
        return self._account_id

    async def _start_directory(self, vfs: VirtualFileSystem, dir_key: str) -> DirectoryDO:
        """Resolve a directory key, which must belong to this account."""
        account_id = self._require_account()
        try:
            dir_id = int(dir_key)
        except (TypeError, ValueError):
            raise NativeError(NativeCode.PERMISSION_DENIED) from None
        node = await vfs.get_directory(dir_id)
        if node is None or node.account_id != account_id:
            raise NativeError(NativeCode.PERMISSION_DENIED)
        return node

    async def _resolve(
        self, vfs: VirtualFileSystem, dir_key: str, path: Sequence[str]
    ) -> DirectoryDO:
        start = await self._start_directory(vfs, dir_key)
        node = await vfs.resolve_path(start.id, path)
        if node is None:
            raise NativeError(NativeCode.DIRECTORY_NOT_FOUND)
        return node

    async def get_app_dir_key(self, app_name: str, app_id: str, vendor: str) -> str:
        account_id = self._require_account()
        async with self._library.transaction() as session:
            result = await session.execute(
                select(AppDO).where(
                    AppDO.account_id == account_id,
                    AppDO.app_id == app_id,
                    AppDO.vendor == vendor,
                )
            )
            if (app := result.scalar_one_or_none()) is not None:
                return str(app.dir_id)

            account = await session.get(AccountDO, account_id)
            if account is None:
                raise NativeError(NativeCode.OPERATION_FORBIDDEN)
            vfs = VirtualFileSystem(session)
            app_root = await vfs.create_directory(
                account_id, account.root_dir_id, f"{app_name}-Root-Dir"
            )
            session.add(
                AppDO(
                    account_id=account_id,
                    app_id=app_id,
                    vendor=vendor,
                    dir_id=app_root.id,
                )
            )
            await session.commit()
            self._stats.posts += 1
            logger.info("Created root directory for app %s (%s)", app_name, vendor)
            return str(app_root.id)

    async def get_safe_drive_key(self) -> str:
        account_id = self._require_account()
        async with self._library.session_manager.session() as session:
            account = await session.get(AccountDO, account_id)
            if account is None or account.drive_dir_id is None:
                raise NativeError(NativeCode.OPERATION_FORBIDDEN)
            return str(account.drive_dir_id)

    async def create_directory(
        self, dir_key: str, path: Sequence[str], metadata: str, is_private: bool
    ) -> None:
        async with self._library.transaction() as session:
            vfs = VirtualFileSystem(session)
            start = await self._start_directory(vfs, dir_key)
            await vfs.ensure_directory_path(
                start.account_id, start.id, path, metadata, is_private
            )
            await session.commit()
        self._stats.posts += 1

    async def get_directory(self, dir_key: str, path: Sequence[str]) -> DirectoryContents:
        async with self._library.session_manager.session() as session:
            vfs = VirtualFileSystem(session)
            node = await self._resolve(vfs, dir_key, path)
            dirs, files = await vfs.list_children(node.id)
            contents = DirectoryContents(
                info=_to_directory_entry(node),
                sub_directories=[_to_directory_entry(d) for d in dirs],
                files=[_to_file_entry(f) for f in files],
            )
        self._stats.gets += 1
        return contents

    async def delete_directory(self, dir_key: str, path: Sequence[str]) -> None:
        if not path:
            raise NativeError(NativeCode.INVALID_PATH)
        async with self._library.transaction() as session:
            vfs = VirtualFileSystem(session)
            node = await self._resolve(vfs, dir_key, path)
            await vfs.delete_tree(node)
            await session.commit()
        self._stats.deletes += 1

    async def modify_directory(
        self,
        dir_key: str,
        path: Sequence[str],
        name: str | None,
        metadata: str | None,
    ) -> None:
        if not path:
            raise NativeError(NativeCode.INVALID_PATH)
        if name is not None and (not name or "/" in name):
            raise NativeError(NativeCode.INVALID_PATH)
        async with self._library.transaction() as session:
            vfs = VirtualFileSystem(session)
            node = await self._resolve(vfs, dir_key, path)
            if name is not None and name != node.name:
                if node.parent_id is not None and (
                    await vfs.get_child(node.parent_id, name) is not None
                ):
                    raise NativeError(NativeCode.DIRECTORY_ALREADY_EXISTS)
                node.name = name
            if metadata is not None:
                node.user_metadata = metadata
            node.modified_on = max(node.modified_on, now_ms())
            await vfs.flush(NativeCode.DIRECTORY_ALREADY_EXISTS)
            await session.commit()
        self._stats.puts += 1

    async def move_directory(
        self,
        src_key: str,
        src_path: Sequence[str],
        dest_key: str,
        dest_path: Sequence[str],
        retain_source: bool,
    ) -> None:
        if not src_path:
            raise NativeError(NativeCode.INVALID_PATH)
        async with self._library.transaction() as session:
            vfs = VirtualFileSystem(session)
            src = await self._resolve(vfs, src_key, src_path)
            dest = await self._resolve(vfs, dest_key, dest_path)
            if await vfs.is_ancestor(src.id, dest.id):
                raise NativeError(NativeCode.DESTINATION_AND_SOURCE_ARE_SAME)
            if await vfs.get_child(dest.id, src.name) is not None:
                raise NativeError(NativeCode.DIRECTORY_ALREADY_EXISTS)
            if retain_source:
                await vfs.copy_tree(src, dest.id)
            else:
                src.parent_id = dest.id
                src.modified_on = max(src.modified_on, now_ms())
                await vfs.flush(NativeCode.DIRECTORY_ALREADY_EXISTS)
            await session.commit()
        self._stats.puts += 1

    async def get_nfs_writer(
        self, dir_key: str, path: Sequence[str], metadata: str
    ) -> NativeWriter:
        if not path:
            raise NativeError(NativeCode.INVALID_PATH)
        async with self._library.session_manager.session() as session:
            vfs = VirtualFileSystem(session)
            parent = await self._resolve(vfs, dir_key, path[:-1])
            if await vfs.get_file(parent.id, path[-1]) is not None:
                raise NativeError(NativeCode.FILE_ALREADY_EXISTS)
        return MockWriter(self, parent.id, path[-1], metadata)

    async def _commit_file(
        self, dir_id: int, name: str, metadata: str, content: bytes
    ) -> None:
        async with self._library.transaction() as session:
            vfs = VirtualFileSystem(session)
            if await vfs.get_directory(dir_id) is None:
                raise NativeError(NativeCode.DIRECTORY_NOT_FOUND)
            await vfs.create_file(dir_id, name, metadata, content)
            await session.commit()
        self._stats.posts += 1

    async def get_stats(self) -> ClientStats:
        return ClientStats(
            gets=self._stats.gets,
            puts=self._stats.puts,
            posts=self._stats.posts,
            deletes=self._stats.deletes,
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.emit(ConnectionState.TERMINATED)
        self._observer = None


class MockLibrary(NativeLibrary):
    """Native library backed by a local database."""

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL) -> None:
        self.session_manager = DatabaseSessionManager(database_url)
        self._schema_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._schema_ready = False
        self._closed = False

    def init_logging(self) -> int:
        logger.debug("Mock network library initialized")
        return 0

    async def _ensure_schema(self) -> None:
        async with self._schema_lock:
            if not self._schema_ready:
                await self.session_manager.create_all()
                self._schema_ready = True

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session for a change to the vault.

        Changes are applied one at a time so a lookup and the insert that
        depends on it can't interleave with another request.
        """
        async with self._write_lock:
            async with self.session_manager.session() as session:
                yield session

    async def create_unregistered_client(self) -> NetworkClient:
        await self._ensure_schema()
        return MockClient(self, None)

    async def create_account(self, keyword: str, pin: str, password: str) -> NetworkClient:
        await self._ensure_schema()
        async with self.transaction() as session:
            result = await session.execute(
                select(AccountDO).where(AccountDO.keyword == keyword)
            )
            if result.scalar_one_or_none() is not None:
                raise NativeError(NativeCode.ACCOUNT_EXISTS)

            account = AccountDO(
                keyword=keyword, pin=pin, password_sha256=_hash_password(password)
            )
            session.add(account)
            await session.flush()

            vfs = VirtualFileSystem(session)
            root = await vfs.create_directory(account.id, None, USER_ROOT_NAME)
            drive = await vfs.create_directory(account.id, root.id, DRIVE_ROOT_NAME)
            account.root_dir_id = root.id
            account.drive_dir_id = drive.id
            await session.commit()
            account_id = account.id
        logger.info("Created account %s", keyword)
        return MockClient(self, account_id)

    async def log_in(self, keyword: str, pin: str, password: str) -> NetworkClient:
        await self._ensure_schema()
        async with self.session_manager.session() as session:
            result = await session.execute(
                select(AccountDO).where(AccountDO.keyword == keyword)
            )
            account = result.scalar_one_or_none()
            if (
                account is None
                or account.pin != pin
                or account.password_sha256 != _hash_password(password)
            ):
                raise NativeError(NativeCode.INVALID_CREDENTIALS)
            account_id = account.id
        return MockClient(self, account_id)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.session_manager.close()
