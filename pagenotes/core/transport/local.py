"""
In-process message hub.

Each connected context gets an inbox queue drained by its own reader task,
so a context handles its messages one at a time in arrival order. Only
strings cross the hub; contexts never share objects through it.
"""

import asyncio

from pagenotes.core.transport.base import MessageHandler, Transport
from pagenotes.utils.exceptions import TransportError
from pagenotes.utils.logger import get_logger

logger = get_logger(__name__)


class LocalHub:
    """Registry of live endpoints in this process."""

    def __init__(self) -> None:
        self._endpoints: dict[str, "LocalTransport"] = {}

    def connect(self, context_id: str) -> "LocalTransport":
        """
        Attach a new context to the hub.

        Raises:
            TransportError: If a live context already uses this ID
        """
        if context_id in self._endpoints:
            raise TransportError(
                f"Context already connected: {context_id}",
                context={"context_id": context_id},
            )
        endpoint = LocalTransport(self, context_id)
        self._endpoints[context_id] = endpoint
        logger.debug(f"Context connected: {context_id}", extra={"context_id": context_id})
        return endpoint

    def live_contexts(self) -> list[str]:
        return list(self._endpoints)

    async def close_all(self) -> None:
        """Disconnect every live context."""
        for endpoint in list(self._endpoints.values()):
            await endpoint.close()

    def _deliver(self, sender: str, target: str, message: str) -> bool:
        endpoint = self._endpoints.get(target)
        if endpoint is None:
            logger.debug(
                f"Dropping message from {sender} to unknown context {target}",
                extra={"sender": sender, "target": target},
            )
            return False
        endpoint._inbox.put_nowait((sender, message))
        return True

    def _detach(self, context_id: str) -> None:
        self._endpoints.pop(context_id, None)
        logger.debug(f"Context disconnected: {context_id}", extra={"context_id": context_id})


class LocalTransport(Transport):
    """Endpoint created by LocalHub.connect()."""

    def __init__(self, hub: LocalHub, context_id: str):
        self.hub = hub
        self.context_id = context_id
        self.closed = False
        self._handler: MessageHandler | None = None
        self._inbox: asyncio.Queue[tuple[str, str]] = asyncio.Queue()
        self._reader: asyncio.Task | None = None

    def set_handler(self, handler: MessageHandler) -> None:
        self._handler = handler
        if self._reader is None:
            self._reader = asyncio.get_running_loop().create_task(self._read_loop())

    async def _read_loop(self) -> None:
        while not self.closed:
            sender, message = await self._inbox.get()
            if self._handler is None:
                continue
            try:
                await self._handler(sender, message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"Handler in {self.context_id} failed on message from {sender}: {e}",
                    extra={"context_id": self.context_id, "sender": sender, "error": str(e)},
                )

    async def send(self, target: str, message: str) -> bool:
        self._check_open()
        # Yield like a real channel would; delivery is never synchronous
        await asyncio.sleep(0)
        return self.hub._deliver(self.context_id, target, message)

    async def broadcast(self, message: str, exclude: set[str] | None = None) -> int:
        self._check_open()
        await asyncio.sleep(0)
        skip = {self.context_id} | (exclude or set())
        delivered = 0
        for target in self.hub.live_contexts():
            if target in skip:
                continue
            if self.hub._deliver(self.context_id, target, message):
                delivered += 1
        return delivered

    def peers(self) -> list[str]:
        return [cid for cid in self.hub.live_contexts() if cid != self.context_id]

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.hub._detach(self.context_id)
        if self._reader is not None and self._reader is not asyncio.current_task():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        self._reader = None

    def _check_open(self) -> None:
        if self.closed:
            raise TransportError(
                f"Transport for {self.context_id} is closed",
                context={"context_id": self.context_id},
            )
