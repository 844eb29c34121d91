"""
Note model - the atomic persisted unit.

A note belongs to exactly one page key and is immutable once created;
the only lifecycle transition after creation is deletion.
"""

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class Note(BaseModel):
    """
    User note attached to a page.

    Storage Architecture:
    - Durable backend: part of the serialized StoreSnapshot (SOURCE OF TRUTH)
    - Contexts: read-only copies derived from the last loaded snapshot
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique note ID (note_xxx), never reused")
    page_key: str = Field(..., description="Normalized page identity the note is grouped under")
    text: str = Field(..., description="Note text (non-empty after trimming)")
    created_at: AwareDatetime = Field(..., description="Creation timestamp (timezone-aware UTC)")

    def to_wire(self) -> dict:
        """Serialize to the JSON-compatible shape used on disk and over the bridge."""
        return self.model_dump(mode="json")
