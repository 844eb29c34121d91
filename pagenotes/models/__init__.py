"""
Data models for PageNotes.

Core models:
- Note: Immutable note attached to a page key
- StoreSnapshot: Full persisted mapping of page key to notes
- BridgeRequest, BridgeResponse, ChangeEvent: Context bridge wire messages
"""

from pagenotes.models.messages import (
    BridgeMessage,
    BridgeRequest,
    BridgeResponse,
    ChangeEvent,
    ErrorPayload,
    Operation,
    parse_message,
)
from pagenotes.models.note import Note
from pagenotes.models.snapshot import StoreSnapshot

__all__ = [
    # Note models
    "Note",
    "StoreSnapshot",
    # Bridge messages
    "Operation",
    "ErrorPayload",
    "BridgeRequest",
    "BridgeResponse",
    "ChangeEvent",
    "BridgeMessage",
    "parse_message",
]
