"""
Context bridge wire messages.

Every message crossing a transport is one of these models serialized to
JSON; the `kind` field discriminates between them.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from pagenotes.utils.exceptions import BridgeProtocolError


class Operation(str, Enum):
    """Note store operations reachable through the bridge."""

    ADD = "add"
    REMOVE = "remove"
    LIST = "list"
    PAGES = "pages"


class ErrorPayload(BaseModel):
    """Error raised by the privileged side, returned verbatim."""

    type: str
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


class BridgeRequest(BaseModel):
    """Operation request from an unprivileged context."""

    kind: Literal["request"] = "request"
    request_id: str
    sender: str
    operation: Operation
    payload: dict[str, Any] = Field(default_factory=dict)


class BridgeResponse(BaseModel):
    """Result (or error) for a single request."""

    kind: Literal["response"] = "response"
    request_id: str
    ok: bool
    result: Any = None
    error: ErrorPayload | None = None


class ChangeEvent(BaseModel):
    """Broadcast after a durable mutation of one page's notes."""

    kind: Literal["event"] = "event"
    event: Literal["changed"] = "changed"
    page_key: str
    origin: str | None = None


BridgeMessage = Annotated[
    Union[BridgeRequest, BridgeResponse, ChangeEvent],
    Field(discriminator="kind"),
]

_message_adapter: TypeAdapter = TypeAdapter(BridgeMessage)


def parse_message(raw: str | bytes) -> BridgeRequest | BridgeResponse | ChangeEvent:
    """
    Decode a raw transport message.

    Raises:
        BridgeProtocolError: If the message is not valid JSON or not a known message
    """
    try:
        return _message_adapter.validate_json(raw)
    except PydanticValidationError as e:
        raise BridgeProtocolError(
            f"Malformed bridge message: {e.error_count()} validation error(s)",
            context={"errors": e.errors(include_url=False, include_context=False)},
        ) from e
