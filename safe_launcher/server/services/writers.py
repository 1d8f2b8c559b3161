"""Tracking of open native file writers."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ...network import NativeError, NativeWriter

logger = logging.getLogger(__name__)


class WriterRegistry:
    """Keeps the native writers that are still open.

    A client handle must not be released while one of its writers is open,
    so cleanup closes everything registered here first.
    """

    def __init__(self) -> None:
        self._writers: set[NativeWriter] = set()

    def __len__(self) -> int:
        return len(self._writers)

    def register(self, writer: NativeWriter) -> None:
        self._writers.add(writer)

    def unregister(self, writer: NativeWriter) -> None:
        self._writers.discard(writer)

    @asynccontextmanager
    async def track(self, writer: NativeWriter) -> AsyncIterator[NativeWriter]:
        """Register a writer for the duration of the block.

        The writer is closed when the block exits normally. On error it is
        only unregistered, the partial content is discarded by the native
        layer.
        """
        self.register(writer)
        try:
            yield writer
            await writer.close()
        finally:
            self.unregister(writer)

    async def close_all(self) -> None:
        """Close every open writer. Failures are logged and skipped."""
        writers = list(self._writers)
        self._writers.clear()
        for writer in writers:
            try:
                await writer.close()
            except NativeError as err:
                logger.warning("Failed to close writer: %s", err)
        if writers:
            logger.info("Closed %d open writers", len(writers))
