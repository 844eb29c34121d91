"""
Services for PageNotes.

- NoteStore: Per-context note store engine over the shared durable backend
- BridgeServer / BridgeClient: Cross-context requests and change fan-out
"""

from pagenotes.services.bridge import BridgeClient, BridgeServer
from pagenotes.services.note_store import NoteStore

__all__ = [
    "NoteStore",
    "BridgeServer",
    "BridgeClient",
]
