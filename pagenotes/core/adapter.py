"""
Backend adapter - translates StoreSnapshot to and from stored bytes.

Wire shape (UTF-8 JSON):
    {"schema_version": 1, "pages": {"<page key>": [<note>, ...]}, "deleted": ["<note id>", ...]}

"deleted" is optional on read; documents written before it existed load
with an empty deletion history.

A missing key is a first use and yields an empty snapshot. Anything that
cannot be decoded raises StorageCorruptionError; state is never reset.
"""

import json

from pydantic import ValidationError as PydanticValidationError

from pagenotes.core.backend.base import KeyValueBackend
from pagenotes.models.snapshot import StoreSnapshot
from pagenotes.utils.exceptions import StorageCorruptionError
from pagenotes.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1


def encode_snapshot(snapshot: StoreSnapshot) -> bytes:
    """Serialize a snapshot to the stored byte representation."""
    document = {
        "schema_version": SCHEMA_VERSION,
        "pages": {
            page_key: [note.to_wire() for note in notes]
            for page_key, notes in snapshot.pages.items()
        },
        "deleted": list(snapshot.deleted),
    }
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode_snapshot(raw: bytes) -> StoreSnapshot:
    """
    Deserialize stored bytes into a snapshot.

    Raises:
        StorageCorruptionError: If the bytes are not a valid snapshot document
    """
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StorageCorruptionError(f"Stored snapshot is not valid JSON: {e}") from e

    if not isinstance(document, dict) or "pages" not in document:
        raise StorageCorruptionError("Stored snapshot has no 'pages' mapping")

    version = document.get("schema_version")
    if version != SCHEMA_VERSION:
        raise StorageCorruptionError(
            f"Unsupported snapshot schema version: {version!r}",
            context={"schema_version": version},
        )

    try:
        return StoreSnapshot.model_validate(
            {"pages": document["pages"], "deleted": document.get("deleted", [])}
        )
    except PydanticValidationError as e:
        raise StorageCorruptionError(
            f"Stored snapshot failed validation: {e.error_count()} error(s)",
            context={"errors": [err["msg"] for err in e.errors()]},
        ) from e


class SnapshotAdapter:
    """
    Reads and writes the whole snapshot under a single backend key.

    The backend is the source of truth; every load goes to the backend.
    """

    def __init__(self, backend: KeyValueBackend, storage_key: str = "pagenotes"):
        """
        Initialize adapter.

        Args:
            backend: Durable key-value backend
            storage_key: Key the snapshot is stored under
        """
        self.backend = backend
        self.storage_key = storage_key

    async def load(self) -> StoreSnapshot:
        """
        Load the latest persisted snapshot.

        Returns:
            Snapshot (empty if nothing has been stored yet)

        Raises:
            StorageCorruptionError: If stored data is unreadable
        """
        raw = await self.backend.get(self.storage_key)
        if raw is None:
            return StoreSnapshot()

        try:
            return decode_snapshot(raw)
        except StorageCorruptionError as e:
            e.context.setdefault("storage_key", self.storage_key)
            logger.error(
                f"Corrupted snapshot under {self.storage_key}: {e.message}",
                extra={"storage_key": self.storage_key},
            )
            raise

    async def save(self, snapshot: StoreSnapshot) -> None:
        """Persist a snapshot, replacing the stored one."""
        await self.backend.set(self.storage_key, encode_snapshot(snapshot))
