"""Shared fixtures.

Fixtures use function scope to avoid event loop issues.
Each test gets fresh backends, stores and hubs.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest

from pagenotes.config import NotesConfig
from pagenotes.core.backend.memory import InMemoryBackend
from pagenotes.core.transport.local import LocalHub
from pagenotes.models.note import Note
from pagenotes.services.note_store import NoteStore


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    """Shared storage area for every context in a test."""
    return InMemoryBackend()


@pytest.fixture
def notes_config() -> NotesConfig:
    return NotesConfig()


@pytest.fixture
async def store(memory_backend, notes_config) -> AsyncGenerator[NoteStore, None]:
    """NoteStore for a single 'popup' context."""
    note_store = NoteStore(memory_backend, config=notes_config, context_id="popup")
    await note_store.initialize()
    yield note_store
    note_store.events.clear()


@pytest.fixture
def make_store(memory_backend, notes_config):
    """Create additional contexts over the same backend."""

    def _make(context_id: str, backend=None) -> NoteStore:
        return NoteStore(backend or memory_backend, config=notes_config, context_id=context_id)

    return _make


@pytest.fixture
async def hub() -> AsyncGenerator[LocalHub, None]:
    """Message channel between the contexts of one test."""
    local_hub = LocalHub()
    yield local_hub
    await local_hub.close_all()


@pytest.fixture
def sample_note() -> Note:
    return Note(
        id="note_000000000001",
        page_key="https://example.com/",
        text="buy milk",
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
