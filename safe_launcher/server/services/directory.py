"""Directory operations against a client handle."""

import logging
from collections.abc import AsyncIterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from ...models.nfs import DirectoryResponse
from ...network import NativeError, NetworkClient
from ..errors import PermissionDeniedException, from_native_error
from ..utils.paths import FileOrDirAction, RootKind, ValidatedPath
from .writers import WriterRegistry

logger = logging.getLogger(__name__)


@dataclass
class NfsContext:
    """The handle and root keys an operation runs with."""

    client: NetworkClient
    app_dir_key: str
    safe_drive_key: str | None = None
    """Only set when the caller holds the drive grant."""


@contextmanager
def native_errors() -> Iterator[None]:
    """Translate native failures into request errors."""
    try:
        yield
    except NativeError as err:
        raise from_native_error(err) from err


class DirectoryService:
    """Create, read, modify, move and delete directories.

    Paths are validated before they reach this service. Every operation
    addresses its target relative to the root key of the path, so the app
    root and the drive root are separate namespaces.
    """

    def __init__(self, writers: WriterRegistry) -> None:
        self._writers = writers

    @staticmethod
    def _root_key(ctx: NfsContext, root: RootKind) -> str:
        if root == RootKind.DRIVE:
            if ctx.safe_drive_key is None:
                raise PermissionDeniedException()
            return ctx.safe_drive_key
        return ctx.app_dir_key

    async def create(
        self,
        ctx: NfsContext,
        path: ValidatedPath,
        metadata: str | None = None,
        is_private: bool = False,
    ) -> None:
        """Create a directory, along with any missing parents."""
        key = self._root_key(ctx, path.root)
        with native_errors():
            await ctx.client.create_directory(
                key, path.parts, metadata or "", is_private
            )
        logger.info("Created directory %s", path)

    async def get(self, ctx: NfsContext, path: ValidatedPath) -> DirectoryResponse:
        key = self._root_key(ctx, path.root)
        with native_errors():
            contents = await ctx.client.get_directory(key, path.parts)
        return DirectoryResponse.from_contents(contents)

    async def delete(self, ctx: NfsContext, path: ValidatedPath) -> None:
        """Delete a directory and everything below it."""
        key = self._root_key(ctx, path.root)
        with native_errors():
            await ctx.client.delete_directory(key, path.parts)
        logger.info("Deleted directory %s", path)

    async def modify(
        self,
        ctx: NfsContext,
        path: ValidatedPath,
        name: str | None = None,
        metadata: str | None = None,
    ) -> None:
        """Rename a directory and/or replace its metadata."""
        key = self._root_key(ctx, path.root)
        with native_errors():
            await ctx.client.modify_directory(key, path.parts, name, metadata)
        logger.info("Modified directory %s", path)

    async def move_or_copy(
        self,
        ctx: NfsContext,
        src: ValidatedPath,
        dest: ValidatedPath,
        action: FileOrDirAction = FileOrDirAction.MOVE,
    ) -> None:
        """Move or copy a directory into the destination directory.

        The source keeps its name. The source is looked up before the
        destination, so a missing source is reported even when the
        destination is missing too.
        """
        src_key = self._root_key(ctx, src.root)
        dest_key = self._root_key(ctx, dest.root)
        with native_errors():
            await ctx.client.move_directory(
                src_key,
                src.parts,
                dest_key,
                dest.parts,
                retain_source=action == FileOrDirAction.COPY,
            )
        logger.info("%s directory %s to %s", action.value.title(), src, dest)

    async def create_file(
        self,
        ctx: NfsContext,
        path: ValidatedPath,
        content: AsyncIterable[bytes] | None,
        metadata: str | None = None,
    ) -> int:
        """Write a new file from a stream of chunks. Returns its size."""
        key = self._root_key(ctx, path.root)
        size = 0
        with native_errors():
            writer = await ctx.client.get_nfs_writer(key, path.parts, metadata or "")
            async with self._writers.track(writer):
                if content is not None:
                    async for chunk in content:
                        await writer.write(chunk)
                        size += len(chunk)
        logger.info("Created file %s (%d bytes)", path, size)
        return size
