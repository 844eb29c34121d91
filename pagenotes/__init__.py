"""
PageNotes - per-page notes shared by isolated extension contexts.

A popup, a background controller and page-embedded scripts each hold their
own handle: a NoteStore over the shared durable backend, or a BridgeClient
routed through the context that owns the store.
"""

from pagenotes.config import Config
from pagenotes.core.events import Subscription
from pagenotes.core.page_key import PageKeyPolicy, PageKeyResolver, normalize_page_key
from pagenotes.models import Note, StoreSnapshot
from pagenotes.services import BridgeClient, BridgeServer, NoteStore

__version__ = "0.1.0"

__all__ = [
    "Config",
    "Note",
    "StoreSnapshot",
    "NoteStore",
    "BridgeServer",
    "BridgeClient",
    "Subscription",
    "PageKeyPolicy",
    "PageKeyResolver",
    "normalize_page_key",
]
