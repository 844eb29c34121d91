"""
Store snapshot - the full persisted state.

Maps page keys to their note collections in insertion order. This is the
unit read from and written to the durable backend.
"""

from pydantic import BaseModel, Field, model_validator

from pagenotes.models.note import Note


class StoreSnapshot(BaseModel):
    """
    Mapping of page key to NoteCollection.

    Invariants:
    - Note ids are unique across the whole snapshot
    - A note is filed under its own page_key
    - No page key maps to an empty collection
    - Ids in `deleted` are recent deletions, oldest first; they are never re-added
    """

    pages: dict[str, list[Note]] = Field(default_factory=dict)
    deleted: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_invariants(self) -> "StoreSnapshot":
        seen: set[str] = set()
        for page_key, notes in self.pages.items():
            for note in notes:
                if note.page_key != page_key:
                    raise ValueError(
                        f"note {note.id} has page_key {note.page_key!r} but is filed under {page_key!r}"
                    )
                if note.id in seen:
                    raise ValueError(f"duplicate note id {note.id}")
                seen.add(note.id)
        # Empty collections carry no data; drop them
        self.pages = {key: notes for key, notes in self.pages.items() if notes}
        return self

    def notes_for(self, page_key: str) -> list[Note]:
        """Return the notes of a page in insertion order (empty for unknown keys)."""
        return list(self.pages.get(page_key, []))

    def page_keys(self) -> list[str]:
        return list(self.pages)

    def note_ids(self) -> set[str]:
        return {note.id for notes in self.pages.values() for note in notes}

    def contains(self, note_id: str, page_key: str | None = None) -> bool:
        """Check whether a note id is present, optionally within one page only."""
        if page_key is not None:
            return any(note.id == note_id for note in self.pages.get(page_key, []))
        return note_id in self.note_ids()

    def append(self, note: Note) -> None:
        """Append a note to its page collection, creating the collection if absent."""
        if self.contains(note.id):
            raise ValueError(f"duplicate note id {note.id}")
        self.pages.setdefault(note.page_key, []).append(note)

    def was_deleted(self, note_id: str) -> bool:
        return note_id in self.deleted

    def remove(self, page_key: str, note_id: str, history: int | None = None) -> bool:
        """
        Remove a note from a page and remember its id as deleted.

        Args:
            page_key: Page the note is filed under
            note_id: Note ID
            history: Keep at most this many deleted ids (None keeps all)

        Returns:
            False if the note is not in that page's collection
        """
        notes = self.pages.get(page_key)
        if not notes:
            return False

        remaining = [note for note in notes if note.id != note_id]
        if len(remaining) == len(notes):
            return False

        if remaining:
            self.pages[page_key] = remaining
        else:
            del self.pages[page_key]

        if note_id not in self.deleted:
            self.deleted.append(note_id)
        if history is not None and len(self.deleted) > history:
            self.deleted = self.deleted[len(self.deleted) - history :]
        return True

    def note_count(self) -> int:
        return sum(len(notes) for notes in self.pages.values())
