"""
Note Store Engine - per-page notes shared by isolated contexts.

Each context (popup, background, content script) holds its own NoteStore
pointed at the same durable backend key. The backend is the only source of
truth: every mutation re-reads the whole snapshot, applies the change and
writes it back, and only then emits changed(page_key) in this context.

Consistency:
- Mutations from one context are applied in the order they were issued
- Mutations from different contexts race at the backend; a write that was
  overwritten by another context is detected on re-read and re-applied
- Removed ids are remembered in the snapshot, so a note deleted by another
  context is never re-applied by the add that created it
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from pagenotes.config import Config, NotesConfig
from pagenotes.core.adapter import SnapshotAdapter
from pagenotes.core.backend.base import KeyValueBackend
from pagenotes.core.backend.factory import BackendFactory
from pagenotes.core.events import ChangeCallback, EventBus, Subscription
from pagenotes.models.note import Note
from pagenotes.models.snapshot import StoreSnapshot
from pagenotes.utils.exceptions import ValidationError, WriteConflictError
from pagenotes.utils.id_generator import generate_context_id, generate_note_id
from pagenotes.utils.logger import get_logger

logger = get_logger(__name__)


class NoteStore:
    """
    Context-scoped handle to the shared note snapshot.

    Operations:
    - add(page_key, text) -> Note
    - remove(page_key, note_id) -> bool (idempotent)
    - list(page_key) -> list[Note]
    - subscribe(page_key, callback) -> Subscription
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        storage_key: str = "pagenotes",
        config: NotesConfig | None = None,
        context_id: str | None = None,
    ):
        """
        Initialize NoteStore.

        Args:
            backend: Durable key-value backend shared with other contexts
            storage_key: Backend key holding the snapshot
            config: Engine configuration
            context_id: Name of the owning context, used in logs
        """
        self.adapter = SnapshotAdapter(backend, storage_key)
        self.config = config or NotesConfig()
        self.context_id = context_id or generate_context_id()
        self.events = EventBus()
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: Config,
        context_id: str | None = None,
        backend: KeyValueBackend | None = None,
    ) -> NoteStore:
        """
        Build a NoteStore from configuration.

        Args:
            config: Main configuration object
            context_id: Name of the owning context
            backend: Existing backend handle to share; created from config.storage if omitted

        Returns:
            NoteStore (call initialize() before use)
        """
        return cls(
            backend or BackendFactory.create(config),
            storage_key=config.storage.storage_key,
            config=config.notes,
            context_id=context_id,
        )

    async def initialize(self) -> None:
        """Prepare the backend."""
        await self.backend.initialize()

    @property
    def backend(self) -> KeyValueBackend:
        return self.adapter.backend

    # ═══════════════════════════════════════════════════════════
    # READS
    # ═══════════════════════════════════════════════════════════

    async def list(self, page_key: str) -> list[Note]:
        """
        List a page's notes in insertion order.

        Returns:
            Notes of the page, empty for an unknown page key

        Raises:
            StorageCorruptionError: If the stored snapshot is unreadable
        """
        snapshot = await self.adapter.load()
        return snapshot.notes_for(page_key)

    async def pages(self) -> list[str]:
        """Page keys that currently have at least one note."""
        snapshot = await self.adapter.load()
        return snapshot.page_keys()

    async def snapshot(self) -> StoreSnapshot:
        """Fresh copy of the full persisted snapshot."""
        return await self.adapter.load()

    # ═══════════════════════════════════════════════════════════
    # MUTATIONS
    # ═══════════════════════════════════════════════════════════

    async def add(self, page_key: str, text: str) -> Note:
        """
        Add a note to a page.

        Args:
            page_key: Page identity to file the note under
            text: Note text; leading/trailing whitespace is stripped

        Returns:
            The created note

        Raises:
            ValidationError: If page_key or text is empty, or text is too long
            StorageCorruptionError: If the stored snapshot is unreadable
            WriteConflictError: If concurrent writers kept overwriting the note
        """
        self._validate_page_key(page_key)
        text = self._validate_text(text)

        async with self._write_lock:
            note: Note | None = None

            def apply(snapshot: StoreSnapshot) -> bool:
                nonlocal note
                if note is None:
                    note = self._new_note(snapshot, page_key, text)
                if snapshot.was_deleted(note.id):
                    return False
                snapshot.append(note)
                return True

            def is_applied(snapshot: StoreSnapshot) -> bool:
                # Deleted by another context after our write landed
                return snapshot.contains(note.id, page_key) or snapshot.was_deleted(note.id)

            await self._read_modify_write(
                apply,
                is_applied,
                operation="add",
                page_key=page_key,
            )

        logger.info(
            f"Note added: {note.id}",
            extra={"page_key": page_key, "note_id": note.id, "context_id": self.context_id},
        )
        self.events.emit(page_key)
        return note

    async def remove(self, page_key: str, note_id: str) -> bool:
        """
        Remove a note from a page.

        Removing a note that is not there is not an error, since two
        contexts may race to delete the same note.

        Args:
            page_key: Page the note is filed under
            note_id: Note ID

        Returns:
            True if the note was removed, False if it was not found

        Raises:
            StorageCorruptionError: If the stored snapshot is unreadable
            WriteConflictError: If concurrent writers kept restoring the note
        """
        async with self._write_lock:
            removed = await self._read_modify_write(
                lambda snapshot: snapshot.remove(
                    page_key, note_id, history=self.config.deleted_id_history
                ),
                lambda snapshot: not snapshot.contains(note_id, page_key),
                operation="remove",
                page_key=page_key,
            )

        if not removed:
            logger.debug(
                f"Note not found for removal: {note_id}",
                extra={"page_key": page_key, "note_id": note_id, "context_id": self.context_id},
            )
            return False

        logger.info(
            f"Note removed: {note_id}",
            extra={"page_key": page_key, "note_id": note_id, "context_id": self.context_id},
        )
        self.events.emit(page_key)
        return True

    async def _read_modify_write(
        self,
        mutate: Callable[[StoreSnapshot], bool],
        is_applied: Callable[[StoreSnapshot], bool],
        operation: str,
        page_key: str,
    ) -> bool:
        """
        Apply a mutation to the latest snapshot and verify it stuck.

        Args:
            mutate: Changes the snapshot in place; returns False if there is nothing to do
            is_applied: True when a snapshot reflects the mutation
            operation: Name for logging
            page_key: Page being changed, for logging

        Returns:
            False if the first mutate() reported nothing to do, True otherwise

        Raises:
            WriteConflictError: If the change is still missing after all retries
        """
        snapshot = await self.adapter.load()
        if not mutate(snapshot):
            return False
        await self.adapter.save(snapshot)

        retries = self.config.write_verify_retries
        if retries <= 0:
            return True

        for attempt in range(retries):
            current = await self.adapter.load()
            if is_applied(current):
                return True

            logger.warning(
                f"{operation} on {page_key} was overwritten by another context "
                f"(attempt {attempt + 1}/{retries}), re-applying",
                extra={"page_key": page_key, "operation": operation, "attempt": attempt + 1},
            )
            mutate(current)
            await self.adapter.save(current)

        if is_applied(await self.adapter.load()):
            return True

        raise WriteConflictError(
            f"{operation} on {page_key} kept being overwritten by concurrent writers",
            context={"page_key": page_key, "operation": operation, "retries": retries},
        )

    # ═══════════════════════════════════════════════════════════
    # SUBSCRIPTIONS
    # ═══════════════════════════════════════════════════════════

    def subscribe(self, page_key: str, callback: ChangeCallback) -> Subscription:
        """
        Listen for changed(page_key) in this context.

        Returns:
            Subscription handle; call unsubscribe() when the view goes away
        """
        return self.events.subscribe(page_key, callback)

    def subscribe_all(self, callback: ChangeCallback) -> Subscription:
        """Listen for changes to any page in this context."""
        return self.events.subscribe_all(callback)

    async def close(self) -> None:
        """Release listeners and the backend handle."""
        self.events.clear()
        await self.backend.close()

    # ═══════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════

    def _validate_page_key(self, page_key: str) -> None:
        if not isinstance(page_key, str) or not page_key.strip():
            raise ValidationError("page_key cannot be empty")

    def _validate_text(self, text: str) -> str:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Note text cannot be empty")

        text = text.strip()
        if len(text) > self.config.max_text_length:
            raise ValidationError(
                f"Note text exceeds {self.config.max_text_length} characters",
                context={"length": len(text), "max_text_length": self.config.max_text_length},
            )
        return text

    def _new_note(self, snapshot: StoreSnapshot, page_key: str, text: str) -> Note:
        existing = snapshot.note_ids() | set(snapshot.deleted)
        note_id = generate_note_id()
        while note_id in existing:
            note_id = generate_note_id()

        created_at = datetime.now(timezone.utc)
        notes = snapshot.notes_for(page_key)
        if notes and created_at <= notes[-1].created_at:
            created_at = notes[-1].created_at + timedelta(microseconds=1)

        return Note(id=note_id, page_key=page_key, text=text, created_at=created_at)
