"""Connection state notifications from the native layer.

The native library reports connection state changes through a plain
callback that may run on any thread. The observer hands every event to the
event loop and forwards it to subscriber queues, so a callback never waits on
request processing and request processing never waits on a callback.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum

from ...network import ConnectionState, ObserverCallback

logger = logging.getLogger(__name__)

MAX_PENDING_EVENTS = 100

__all__ = [
    "ClientKind",
    "ConnectionEvent",
    "ConnectionObserver",
]


class ClientKind(str, Enum):
    """Kinds of client handles."""

    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass
class ConnectionEvent:
    """A connection state change of one client handle kind."""

    kind: ClientKind
    state: int
    timestamp: float

    @property
    def is_registered(self) -> bool:
        return self.kind == ClientKind.AUTHENTICATED


def _end_subscription(queue: asyncio.Queue[ConnectionEvent | None]) -> None:
    if queue.full():
        # Make room for the end marker.
        queue.get_nowait()
    queue.put_nowait(None)


class ConnectionObserver:
    """Fan out connection events to subscribers.

    Each handle kind has its own inbox and a single task draining it, so
    events of the same kind are delivered in the order the native layer
    emitted them.
    """

    def __init__(self, max_pending: int = MAX_PENDING_EVENTS) -> None:
        self._max_pending = max_pending
        self._loop: asyncio.AbstractEventLoop | None = None
        self._inbox: dict[ClientKind, asyncio.Queue[ConnectionEvent]] = {}
        self._pumps: dict[ClientKind, asyncio.Task] = {}
        self._subscribers: list[asyncio.Queue[ConnectionEvent | None]] = []
        self.last_state: dict[ClientKind, int] = {}

    @property
    def is_running(self) -> bool:
        return bool(self._pumps)

    async def start(self) -> None:
        """Start forwarding events on the running loop."""
        if self._pumps:
            return
        self._loop = asyncio.get_running_loop()
        for kind in ClientKind:
            self._inbox[kind] = asyncio.Queue()
            self._pumps[kind] = asyncio.create_task(
                self._pump(kind), name=f"connection-observer-{kind.value}"
            )

    async def stop(self) -> None:
        """Stop forwarding. Pending events are dropped."""
        pumps = list(self._pumps.values())
        self._pumps.clear()
        for task in pumps:
            task.cancel()
        await asyncio.gather(*pumps, return_exceptions=True)
        self._loop = None

    def callback(self, kind: ClientKind) -> ObserverCallback:
        """Return the native callback for a handle kind."""

        def on_state_change(state: int) -> None:
            self.publish(kind, state)

        return on_state_change

    def publish(self, kind: ClientKind, state: int) -> None:
        """Post an event. Safe to call from any thread."""
        event = ConnectionEvent(kind=kind, state=int(state), timestamp=time.time())
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Dropping connection event %s, observer not running", event)
            return
        loop.call_soon_threadsafe(self._inbox[kind].put_nowait, event)

    def subscribe(self) -> asyncio.Queue[ConnectionEvent | None]:
        """Create a queue receiving every event published from now on.

        A subscriber that falls more than `max_pending` events behind is
        disconnected.
        """
        queue: asyncio.Queue[ConnectionEvent | None] = asyncio.Queue(
            maxsize=self._max_pending
        )
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ConnectionEvent | None]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def close_subscribers(self) -> None:
        """End every subscription. Subscribers receive None as a last item."""
        subscribers = list(self._subscribers)
        self._subscribers.clear()
        for queue in subscribers:
            _end_subscription(queue)

    async def _pump(self, kind: ClientKind) -> None:
        inbox = self._inbox[kind]
        while True:
            event = await inbox.get()
            self.last_state[kind] = event.state
            try:
                state_name = ConnectionState(event.state).name
            except ValueError:
                state_name = str(event.state)
            logger.info("Connection state of %s client: %s", kind.value, state_name)
            for queue in list(self._subscribers):
                try:
                    queue.put_nowait(event)
                except asyncio.QueueFull:
                    logger.warning("Disconnecting connection event subscriber, too far behind")
                    self.unsubscribe(queue)
                    _end_subscription(queue)
