"""Native network client boundary."""

from .base import (
    ClientStats,
    ConnectionState,
    DirectoryContents,
    DirectoryEntry,
    FileEntry,
    LibraryLoadError,
    NativeLibrary,
    NativeWriter,
    NetworkClient,
    ObserverCallback,
    load_library,
)
from .errors import NativeCode, NativeError

__all__ = [
    "ClientStats",
    "ConnectionState",
    "DirectoryContents",
    "DirectoryEntry",
    "FileEntry",
    "LibraryLoadError",
    "NativeCode",
    "NativeError",
    "NativeLibrary",
    "NativeWriter",
    "NetworkClient",
    "ObserverCallback",
    "load_library",
]
