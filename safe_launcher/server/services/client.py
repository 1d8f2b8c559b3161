"""Lifecycle of the native library and its client handles."""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from ...network import (
    ConnectionState,
    LibraryLoadError,
    NativeLibrary,
    NetworkClient,
)
from .observer import ClientKind, ConnectionObserver
from .writers import WriterRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "ManagerState",
    "LibraryFactory",
    "ClientHandleManager",
]

LibraryFactory = Callable[[], NativeLibrary]


class ManagerState(str, Enum):
    """State of the native library within a manager."""

    UNINITIALIZED = "uninitialized"
    LIBRARY_LOADED = "library_loaded"
    LIBRARY_LOAD_ERROR = "library_load_error"


class ClientHandleManager:
    """Owns the anonymous and authenticated client handles.

    The library is loaded lazily on first use. At most one handle of each
    kind is alive at a time. Loading the library and creating handles is
    serialized, so concurrent callers wait for the attempt in progress and
    share its outcome instead of creating duplicates. A cached handle is
    returned without taking the lock.
    """

    def __init__(
        self,
        library_factory: LibraryFactory,
        observer: ConnectionObserver,
        writers: WriterRegistry | None = None,
    ) -> None:
        """Initialize the client handle manager.

        Writers in the registry are opened on the authenticated handle and
        are closed before that handle is dropped.
        """
        self._library_factory = library_factory
        self._observer = observer
        self._writers = writers
        self._library: NativeLibrary | None = None
        self._state = ManagerState.UNINITIALIZED
        self._handles: dict[ClientKind, NetworkClient] = {}
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ManagerState:
        return self._state

    def get(self, kind: ClientKind) -> NetworkClient | None:
        """Return the cached handle of a kind without creating one."""
        return self._handles.get(kind)

    def is_open(self, kind: ClientKind) -> bool:
        return kind in self._handles

    def _load_library(self) -> NativeLibrary | None:
        """Load the library once. Must be called with the lock held.

        A failure is reported as a disconnection of the anonymous handle
        and leaves the manager in LIBRARY_LOAD_ERROR until the next attempt.
        """
        if self._library is not None:
            return self._library
        try:
            library = self._library_factory()
        except Exception as err:
            logger.error("Failed to load native library: %s", err)
            self._state = ManagerState.LIBRARY_LOAD_ERROR
            self._observer.publish(ClientKind.ANONYMOUS, ConnectionState.LIB_LOAD_ERROR)
            return None
        self._library = library
        self._state = ManagerState.LIBRARY_LOADED
        return library

    def _attach(self, kind: ClientKind, handle: NetworkClient) -> None:
        handle.register_network_event_observer(self._observer.callback(kind))
        self._handles[kind] = handle

    async def acquire(self, kind: ClientKind = ClientKind.ANONYMOUS) -> NetworkClient | None:
        """Return the handle of a kind, creating an anonymous one on demand.

        An authenticated handle only exists after `login` or
        `create_account`; None is returned otherwise. None is also returned
        when the library can't be loaded.
        """
        if (handle := self._handles.get(kind)) is not None:
            return handle
        async with self._lock:
            if (handle := self._handles.get(kind)) is not None:
                return handle
            if kind == ClientKind.AUTHENTICATED:
                return None
            if (library := self._load_library()) is None:
                return None
            handle = await library.create_unregistered_client()
            self._attach(kind, handle)
            logger.info("Created anonymous client handle")
            return handle

    async def login(self, keyword: str, pin: str, password: str) -> NetworkClient:
        """Open the authenticated handle for an existing account.

        Replaces any authenticated handle already open.
        """
        async with self._lock:
            if (library := self._load_library()) is None:
                raise LibraryLoadError("Native library is not loaded")
            handle = await library.log_in(keyword, pin, password)
            await self._release_locked(ClientKind.AUTHENTICATED)
            self._attach(ClientKind.AUTHENTICATED, handle)
            logger.info("Logged in as %s", keyword)
            return handle

    async def create_account(self, keyword: str, pin: str, password: str) -> NetworkClient:
        """Create an account and open the authenticated handle for it."""
        async with self._lock:
            if (library := self._load_library()) is None:
                raise LibraryLoadError("Native library is not loaded")
            handle = await library.create_account(keyword, pin, password)
            await self._release_locked(ClientKind.AUTHENTICATED)
            self._attach(ClientKind.AUTHENTICATED, handle)
            logger.info("Created account %s", keyword)
            return handle

    async def _release_locked(self, kind: ClientKind) -> None:
        if kind not in self._handles:
            return
        if kind == ClientKind.AUTHENTICATED and self._writers is not None:
            await self._writers.close_all()
        handle = self._handles.pop(kind)
        try:
            await handle.close()
        finally:
            handle.register_network_event_observer(None)
        logger.info("Released %s client handle", kind.value)

    async def release(self, kind: ClientKind) -> None:
        """Destroy the cached handle of a kind. No-op if none is open."""
        async with self._lock:
            await self._release_locked(kind)

    async def release_all(self) -> None:
        async with self._lock:
            for kind in list(self._handles):
                await self._release_locked(kind)

    async def close(self) -> None:
        """Release all handles and unload the library."""
        await self.release_all()
        async with self._lock:
            if self._library is not None:
                await self._library.close()
                self._library = None
            self._state = ManagerState.UNINITIALIZED
