"""
ID generation utilities for PageNotes.

- Notes: note_xxx
- Bridge requests: req_xxx
"""

from uuid import uuid4


def generate_note_id() -> str:
    """
    Generate unique Note ID.

    Returns:
        ID in format "note_xxx" where xxx is 12 hex characters
    """
    return f"note_{uuid4().hex[:12]}"


def generate_request_id() -> str:
    """
    Generate unique bridge request ID.

    Returns:
        ID in format "req_xxx" where xxx is 12 hex characters
    """
    return f"req_{uuid4().hex[:12]}"


def generate_context_id(prefix: str = "ctx") -> str:
    """
    Generate an ID for an execution context (popup, background, content script).

    Args:
        prefix: Readable prefix, e.g. "popup"

    Returns:
        ID in format "<prefix>_xxx" where xxx is 8 hex characters
    """
    return f"{prefix}_{uuid4().hex[:8]}"
