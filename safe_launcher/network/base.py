"""Boundary of the native network client.

The launcher never talks to the storage network directly. It loads a native
library, asks it for client handles and calls operations on those handles.
Everything the launcher needs from the library is described by the abstract
classes in this module.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    "ConnectionState",
    "ObserverCallback",
    "DirectoryEntry",
    "FileEntry",
    "DirectoryContents",
    "ClientStats",
    "NativeWriter",
    "NetworkClient",
    "NativeLibrary",
    "LibraryLoadError",
    "load_library",
]


class ConnectionState(IntEnum):
    """Connection states reported through a network event observer."""

    CONNECTED = 0
    DISCONNECTED = 1
    TERMINATED = 2
    LIB_LOAD_ERROR = -2


ObserverCallback = Callable[[int], None]
"""Callback invoked by the native layer with a `ConnectionState` value.

The native layer may call it from any thread.
"""


@dataclass
class DirectoryEntry:
    """Attributes of a directory as stored on the network."""

    name: str
    metadata: str
    is_private: bool
    is_versioned: bool
    created_on: int
    """Creation time in epoch milliseconds."""

    modified_on: int
    """Last modification time in epoch milliseconds."""


@dataclass
class FileEntry:
    """Attributes of a file as stored on the network."""

    name: str
    size: int
    metadata: str
    created_on: int
    modified_on: int


@dataclass
class DirectoryContents:
    """A directory together with its immediate children."""

    info: DirectoryEntry
    sub_directories: list[DirectoryEntry] = field(default_factory=list)
    files: list[FileEntry] = field(default_factory=list)


@dataclass
class ClientStats:
    """Counters of network requests issued by a client handle."""

    gets: int = 0
    puts: int = 0
    posts: int = 0
    deletes: int = 0


class NativeWriter(ABC):
    """An open writer that streams content into a new file."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Append bytes to the file."""

    @abstractmethod
    async def close(self) -> None:
        """Flush the content and commit the file to its directory."""


class NetworkClient(ABC):
    """An open session against the network.

    Directory paths are passed as sequences of segments relative to a
    directory key. An empty sequence addresses the directory of the key
    itself. Failures raise `NativeError`.
    """

    @property
    @abstractmethod
    def is_registered(self) -> bool:
        """Return True if the session is bound to an account."""

    @abstractmethod
    def register_network_event_observer(self, callback: ObserverCallback | None) -> None:
        """Attach (or clear, with None) the connection state callback."""

    @abstractmethod
    async def get_app_dir_key(self, app_name: str, app_id: str, vendor: str) -> str:
        """Return the key of the application root, creating it if needed."""

    @abstractmethod
    async def get_safe_drive_key(self) -> str:
        """Return the key of the shared drive root."""

    @abstractmethod
    async def create_directory(
        self, dir_key: str, path: Sequence[str], metadata: str, is_private: bool
    ) -> None:
        """Create the leaf directory and any missing parents."""

    @abstractmethod
    async def get_directory(self, dir_key: str, path: Sequence[str]) -> DirectoryContents:
        """Read a directory and its immediate children."""

    @abstractmethod
    async def delete_directory(self, dir_key: str, path: Sequence[str]) -> None:
        """Delete a directory and everything below it."""

    @abstractmethod
    async def modify_directory(
        self,
        dir_key: str,
        path: Sequence[str],
        name: str | None,
        metadata: str | None,
    ) -> None:
        """Rename a directory and/or replace its metadata in one update."""

    @abstractmethod
    async def move_directory(
        self,
        src_key: str,
        src_path: Sequence[str],
        dest_key: str,
        dest_path: Sequence[str],
        retain_source: bool,
    ) -> None:
        """Re-parent (or duplicate, when retain_source) a directory subtree."""

    @abstractmethod
    async def get_nfs_writer(
        self, dir_key: str, path: Sequence[str], metadata: str
    ) -> NativeWriter:
        """Open a writer for a new file at path."""

    @abstractmethod
    async def get_stats(self) -> ClientStats:
        """Return request counters for this session."""

    @abstractmethod
    async def close(self) -> None:
        """Drop the session. The handle must not be used afterwards."""


class NativeLibrary(ABC):
    """A loaded native client library."""

    @abstractmethod
    def init_logging(self) -> int:
        """Initialize the library. Returns 0 on success."""

    @abstractmethod
    async def create_unregistered_client(self) -> NetworkClient:
        """Create an anonymous session."""

    @abstractmethod
    async def create_account(self, keyword: str, pin: str, password: str) -> NetworkClient:
        """Create a new account and return a session bound to it."""

    @abstractmethod
    async def log_in(self, keyword: str, pin: str, password: str) -> NetworkClient:
        """Return a session bound to an existing account."""

    async def close(self) -> None:
        """Release library wide resources."""


class LibraryLoadError(Exception):
    """Raised when the native library can't be loaded or initialized."""


def load_library(path: str, **kwargs: Any) -> NativeLibrary:
    """Load a native library from a `module:attribute` path.

    The attribute is called with `kwargs` and must return a `NativeLibrary`.
    """
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise LibraryLoadError(f"Invalid library path: {path}")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as err:
        raise LibraryLoadError(f"Unable to load library {path}: {err}") from err

    library = factory(**kwargs)
    if not isinstance(library, NativeLibrary):
        raise LibraryLoadError(f"{path} is not a native library")
    if (code := library.init_logging()) != 0:
        raise LibraryLoadError(f"Library initialization failed with code {code}")
    logger.info("Loaded native library %s", path)
    return library
