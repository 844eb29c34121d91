"""
Custom exception hierarchy for PageNotes.

Provides structured error types for better error handling and debugging.
All exceptions inherit from PageNotesError for easy catching.
"""


class PageNotesError(Exception):
    """
    Base exception for all PageNotes errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize PageNotes error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationError(PageNotesError):
    """
    Validation errors.
    Raised when input validation fails (empty note text, empty page key, ...).
    """

    pass


class StoreError(PageNotesError):
    """
    Base exception for store operations.
    Used for errors related to the durable note snapshot.
    """

    pass


class StorageCorruptionError(StoreError):
    """
    Stored snapshot could not be decoded.
    Raised instead of resetting state so user data is never silently discarded.
    """

    pass


class QuotaExceededError(StoreError):
    """
    Backend refused a write because its storage quota would be exceeded.
    """

    pass


class WriteConflictError(StoreError):
    """
    A write was repeatedly overwritten by concurrent writers from other contexts.
    """

    pass


class BridgeError(PageNotesError):
    """
    Base exception for cross-context bridge calls.
    """

    pass


class BridgeTimeoutError(BridgeError):
    """
    No response arrived in time.
    The remote operation may still have been applied.
    """

    pass


class BridgeClosedError(BridgeError):
    """
    The bridge client was closed while a request was pending.
    """

    pass


class BridgeProtocolError(BridgeError):
    """
    A bridge message could not be decoded.
    """

    pass


class RemoteOperationError(BridgeError):
    """
    The privileged context reported an error of a type unknown to this side.
    """

    pass


class TransportError(PageNotesError):
    """
    Transport misuse (sending on a closed endpoint, duplicate context ids).
    """

    pass


class ConfigurationError(PageNotesError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass
