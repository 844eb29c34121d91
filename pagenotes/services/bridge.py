"""
Context Bridge - note operations and change fan-out across contexts.

A context without backend access (e.g. a script embedded in a web page)
talks to the privileged context through a BridgeClient. The privileged
context runs a BridgeServer that executes requests on its NoteStore and
broadcasts changed(page_key) to every other live context after each
durable mutation.

Delivery is at-most-once: a context that is not running misses the
broadcast and is expected to call list() again when it comes back.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from pagenotes.config import BridgeConfig, Config
from pagenotes.core.backend.base import KeyValueBackend
from pagenotes.core.events import ChangeCallback, EventBus, Subscription
from pagenotes.core.transport.base import Transport
from pagenotes.models.messages import (
    BridgeRequest,
    BridgeResponse,
    ChangeEvent,
    ErrorPayload,
    Operation,
    parse_message,
)
from pagenotes.models.note import Note
from pagenotes.services.note_store import NoteStore
from pagenotes.utils.exceptions import (
    BridgeClosedError,
    BridgeProtocolError,
    BridgeTimeoutError,
    PageNotesError,
    QuotaExceededError,
    RemoteOperationError,
    StorageCorruptionError,
    ValidationError,
    WriteConflictError,
)
from pagenotes.utils.id_generator import generate_request_id
from pagenotes.utils.logger import get_logger, setup_logging_from_config

logger = get_logger(__name__)

# Errors re-raised with their own type on the calling side
_REMOTE_ERROR_TYPES: dict[str, type[PageNotesError]] = {
    cls.__name__: cls
    for cls in (ValidationError, StorageCorruptionError, QuotaExceededError, WriteConflictError)
}


def _json_safe(context: dict[str, Any]) -> dict[str, Any]:
    """Make an error context serializable without losing its keys."""
    return json.loads(json.dumps(context, default=str))


def error_to_payload(error: Exception) -> ErrorPayload:
    """Describe an exception for the wire."""
    if isinstance(error, PageNotesError):
        return ErrorPayload(
            type=type(error).__name__,
            message=error.message,
            context=_json_safe(error.context),
        )
    return ErrorPayload(type=type(error).__name__, message=str(error))


def payload_to_error(payload: ErrorPayload) -> PageNotesError:
    """Rebuild the exception described by an error payload."""
    error_cls = _REMOTE_ERROR_TYPES.get(payload.type)
    if error_cls is not None:
        return error_cls(payload.message, context=payload.context)
    return RemoteOperationError(
        f"{payload.type}: {payload.message}",
        context={**payload.context, "remote_type": payload.type},
    )


class BridgeServer:
    """
    Privileged side of the bridge.

    Serves add/remove/list/pages requests against a local NoteStore and
    broadcasts every change of that store to all other live contexts.
    """

    def __init__(self, store: NoteStore, transport: Transport):
        """
        Initialize BridgeServer.

        Args:
            store: NoteStore of the privileged context
            transport: This context's endpoint on the message channel
        """
        self.store = store
        self.transport = transport
        self._subscription: Subscription | None = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: Transport,
        backend: KeyValueBackend | None = None,
    ) -> BridgeServer:
        """
        Bootstrap the privileged context from configuration.

        Applies config.logging to this process and builds the context's
        NoteStore. Call store.initialize() and start() before serving.

        Args:
            config: Main configuration object
            transport: This context's endpoint on the message channel
            backend: Existing backend handle; created from config.storage if omitted

        Returns:
            BridgeServer
        """
        setup_logging_from_config(config.logging)
        logger.info(
            f"Bootstrapping privileged context {transport.context_id}: "
            f"backend={config.storage.backend}, storage_key={config.storage.storage_key}"
        )
        store = NoteStore.from_config(config, context_id=transport.context_id, backend=backend)
        return cls(store, transport)

    @property
    def context_id(self) -> str:
        return self.transport.context_id

    async def start(self) -> None:
        """Start serving requests and broadcasting changes."""
        self.transport.set_handler(self._handle_message)
        if self._subscription is None:
            self._subscription = self.store.subscribe_all(self.broadcast)
        logger.info(f"Bridge server started in {self.context_id}")

    async def stop(self) -> None:
        """Stop broadcasting and close the endpoint."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        await self.transport.close()
        logger.info(f"Bridge server stopped in {self.context_id}")

    async def broadcast(self, page_key: str) -> int:
        """
        Push changed(page_key) to every other live context.

        Returns:
            Number of contexts the notification was handed to
        """
        event = ChangeEvent(page_key=page_key, origin=self.context_id)
        delivered = await self.transport.broadcast(event.model_dump_json())
        logger.debug(
            f"Broadcast changed({page_key}) to {delivered} context(s)",
            extra={"page_key": page_key, "delivered": delivered},
        )
        return delivered

    async def _handle_message(self, sender: str, raw: str) -> None:
        try:
            message = parse_message(raw)
        except BridgeProtocolError as e:
            request_id = self._recover_request_id(raw)
            if request_id is None:
                logger.warning(
                    f"Dropping malformed message from {sender}",
                    extra={"sender": sender, "error": e.message},
                )
                return
            response = BridgeResponse(
                request_id=request_id, ok=False, error=error_to_payload(e)
            )
            await self.transport.send(sender, response.model_dump_json())
            return

        if not isinstance(message, BridgeRequest):
            logger.debug(
                f"Ignoring {message.kind} message from {sender}",
                extra={"sender": sender},
            )
            return

        response = await self.handle_request(message)
        if not await self.transport.send(sender, response.model_dump_json()):
            logger.debug(
                f"Requester {sender} is gone; response {message.request_id} dropped",
                extra={"sender": sender, "request_id": message.request_id},
            )

    async def handle_request(self, request: BridgeRequest) -> BridgeResponse:
        """Execute a request and wrap its outcome (result or error) in a response."""
        try:
            result = await self._execute(request.operation, request.payload)
        except Exception as e:
            log = logger.info if isinstance(e, ValidationError) else logger.error
            log(
                f"Bridge {request.operation.value} from {request.sender} failed: {e}",
                extra={
                    "request_id": request.request_id,
                    "operation": request.operation.value,
                    "error_type": type(e).__name__,
                },
            )
            return BridgeResponse(
                request_id=request.request_id, ok=False, error=error_to_payload(e)
            )

        return BridgeResponse(request_id=request.request_id, ok=True, result=result)

    async def _execute(self, operation: Operation, payload: dict[str, Any]) -> Any:
        if operation == Operation.ADD:
            note = await self.store.add(
                self._require(payload, "page_key"), self._require(payload, "text")
            )
            return note.to_wire()
        elif operation == Operation.REMOVE:
            return await self.store.remove(
                self._require(payload, "page_key"), self._require(payload, "note_id")
            )
        elif operation == Operation.LIST:
            notes = await self.store.list(self._require(payload, "page_key"))
            return [note.to_wire() for note in notes]
        elif operation == Operation.PAGES:
            return await self.store.pages()
        else:
            raise ValidationError(f"Unsupported operation: {operation}")

    @staticmethod
    def _require(payload: dict[str, Any], field: str) -> str:
        value = payload.get(field)
        if not isinstance(value, str):
            raise ValidationError(
                f"Missing or invalid '{field}' in request payload",
                context={"field": field},
            )
        return value

    @staticmethod
    def _recover_request_id(raw: str) -> str | None:
        try:
            document = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if isinstance(document, dict) and isinstance(document.get("request_id"), str):
            return document["request_id"]
        return None


class BridgeClient:
    """
    Unprivileged side of the bridge.

    Mirrors the NoteStore contract (add, remove, list, pages, subscribe)
    over the message channel. Every call is bounded by a timeout.
    """

    def __init__(
        self,
        transport: Transport,
        server_id: str = "background",
        timeout: float | None = None,
    ):
        """
        Initialize BridgeClient.

        Args:
            transport: This context's endpoint on the message channel
            server_id: Context ID of the privileged context
            timeout: Default request timeout in seconds
        """
        self.transport = transport
        self.server_id = server_id
        self.timeout = timeout if timeout is not None else BridgeConfig().request_timeout
        self.events = EventBus()
        self.closed = False
        self._started = False
        self._pending: dict[str, asyncio.Future] = {}

    @classmethod
    def from_config(cls, transport: Transport, config: BridgeConfig) -> BridgeClient:
        return cls(transport, server_id=config.server_id, timeout=config.request_timeout)

    @property
    def context_id(self) -> str:
        return self.transport.context_id

    async def start(self) -> None:
        """Begin receiving responses and change notifications."""
        self._ensure_started()

    def _ensure_started(self) -> None:
        if not self._started:
            self.transport.set_handler(self._handle_message)
            self._started = True

    # ═══════════════════════════════════════════════════════════
    # REQUESTS
    # ═══════════════════════════════════════════════════════════

    async def request(
        self,
        operation: Operation | str,
        payload: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Run an operation in the privileged context.

        Args:
            operation: Operation name
            payload: Operation arguments
            timeout: Seconds to wait for the response (default: client timeout)

        Returns:
            The operation's result as sent over the wire

        Raises:
            BridgeTimeoutError: If no response arrived in time; the operation may still have run
            BridgeClosedError: If the client is or gets closed
            ValidationError: If the operation is unknown, or raised by the remote engine
            StorageCorruptionError, ...: Errors raised by the remote engine
        """
        if self.closed:
            raise BridgeClosedError(f"Bridge client {self.context_id} is closed")
        try:
            operation = Operation(operation)
        except ValueError as e:
            raise ValidationError(
                f"Unknown bridge operation: {operation}", context={"operation": str(operation)}
            ) from e
        self._ensure_started()

        timeout = timeout if timeout is not None else self.timeout
        request = BridgeRequest(
            request_id=generate_request_id(),
            sender=self.context_id,
            operation=operation,
            payload=payload or {},
        )
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request.request_id] = future

        try:
            delivered = await self.transport.send(self.server_id, request.model_dump_json())
            if not delivered:
                logger.debug(
                    f"Request {request.request_id} not delivered to {self.server_id}",
                    extra={"request_id": request.request_id, "server_id": self.server_id},
                )
            response: BridgeResponse = await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Bridge {request.operation.value} timed out after {timeout}s",
                extra={"request_id": request.request_id, "operation": request.operation.value},
            )
            raise BridgeTimeoutError(
                f"No response to {request.operation.value} within {timeout}s",
                context={
                    "operation": request.operation.value,
                    "request_id": request.request_id,
                    "timeout": timeout,
                },
            ) from None
        finally:
            self._pending.pop(request.request_id, None)

        if not response.ok:
            error = response.error or ErrorPayload(type="UnknownError", message="no error details")
            raise payload_to_error(error)
        return response.result

    async def add(self, page_key: str, text: str) -> Note:
        result = await self.request(Operation.ADD, {"page_key": page_key, "text": text})
        return Note.model_validate(result)

    async def remove(self, page_key: str, note_id: str) -> bool:
        result = await self.request(Operation.REMOVE, {"page_key": page_key, "note_id": note_id})
        return bool(result)

    async def list(self, page_key: str) -> list[Note]:
        result = await self.request(Operation.LIST, {"page_key": page_key})
        return [Note.model_validate(item) for item in result]

    async def pages(self) -> list[str]:
        return list(await self.request(Operation.PAGES))

    # ═══════════════════════════════════════════════════════════
    # NOTIFICATIONS
    # ═══════════════════════════════════════════════════════════

    def subscribe(self, page_key: str, callback: ChangeCallback) -> Subscription:
        """
        Listen for changed(page_key) broadcasts from the privileged context.

        Returns:
            Subscription handle; call unsubscribe() when the view goes away
        """
        self._ensure_started()
        return self.events.subscribe(page_key, callback)

    def subscribe_all(self, callback: ChangeCallback) -> Subscription:
        self._ensure_started()
        return self.events.subscribe_all(callback)

    async def _handle_message(self, sender: str, raw: str) -> None:
        try:
            message = parse_message(raw)
        except BridgeProtocolError as e:
            logger.warning(
                f"Dropping malformed message from {sender}",
                extra={"sender": sender, "error": e.message},
            )
            return

        if isinstance(message, BridgeResponse):
            future = self._pending.get(message.request_id)
            if future is None or future.done():
                logger.debug(
                    f"Dropping late response {message.request_id}",
                    extra={"request_id": message.request_id, "sender": sender},
                )
                return
            future.set_result(message)
        elif isinstance(message, ChangeEvent):
            self.events.emit(message.page_key)
        else:
            logger.debug(f"Ignoring request from {sender}; not a privileged context")

    async def close(self) -> None:
        """Fail pending requests, release listeners and leave the channel."""
        if self.closed:
            return
        self.closed = True
        for request_id, future in list(self._pending.items()):
            if not future.done():
                future.set_exception(
                    BridgeClosedError(
                        "Bridge client closed while waiting for a response",
                        context={"request_id": request_id},
                    )
                )
        self._pending.clear()
        self.events.clear()
        await self.transport.close()
