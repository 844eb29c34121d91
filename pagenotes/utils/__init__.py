"""Utility modules for PageNotes."""

from pagenotes.utils.exceptions import (
    BridgeClosedError,
    BridgeError,
    BridgeProtocolError,
    BridgeTimeoutError,
    ConfigurationError,
    PageNotesError,
    QuotaExceededError,
    RemoteOperationError,
    StorageCorruptionError,
    StoreError,
    TransportError,
    ValidationError,
    WriteConflictError,
)
from pagenotes.utils.id_generator import (
    generate_context_id,
    generate_note_id,
    generate_request_id,
)
from pagenotes.utils.logger import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    # ID Generators
    "generate_note_id",
    "generate_request_id",
    "generate_context_id",
    # Exceptions
    "PageNotesError",
    "ValidationError",
    "StoreError",
    "StorageCorruptionError",
    "QuotaExceededError",
    "WriteConflictError",
    "BridgeError",
    "BridgeTimeoutError",
    "BridgeClosedError",
    "BridgeProtocolError",
    "RemoteOperationError",
    "TransportError",
    "ConfigurationError",
]
