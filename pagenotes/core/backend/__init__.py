"""
Durable key-value backends for PageNotes.

Available backends:
- SQLiteBackend: On-disk storage shared by contexts through the database file
- InMemoryBackend: Process-local storage for tests and single-process setups
"""

from pagenotes.core.backend.base import KeyValueBackend
from pagenotes.core.backend.factory import BackendFactory
from pagenotes.core.backend.memory import InMemoryBackend
from pagenotes.core.backend.sqlite import SQLiteBackend

__all__ = [
    "KeyValueBackend",
    "BackendFactory",
    "InMemoryBackend",
    "SQLiteBackend",
]
