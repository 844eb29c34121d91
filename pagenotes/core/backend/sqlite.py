"""
SQLite key-value backend using aiosqlite.

Each context opens its own connection to the same database file; SQLite
serializes writes to a key, which is the only atomicity the engine relies on.
"""

from pathlib import Path

import aiosqlite

from pagenotes.core.backend.base import KeyValueBackend
from pagenotes.utils.logger import get_logger

logger = get_logger(__name__)


class SQLiteBackend(KeyValueBackend):
    """
    SQLite-based durable key-value store.

    Features:
    - Survives process and context restarts
    - WAL journal so readers in other contexts don't block writers
    """

    def __init__(self, db_path: str = "data/pagenotes.db"):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            await self.connection.execute("PRAGMA journal_mode = WAL")
            await self.connection.execute("PRAGMA busy_timeout = 5000")
            await self.connection.commit()

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL
            )
        """
        )
        await self.connection.commit()
        logger.debug(f"SQLite backend ready at {self.db_path}", extra={"db_path": self.db_path})

    async def get(self, key: str) -> bytes | None:
        await self._ensure_ready()

        cursor = await self.connection.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = await cursor.fetchone()
        await cursor.close()

        if not row:
            return None
        return bytes(row[0])

    async def set(self, key: str, value: bytes) -> None:
        await self._ensure_ready()

        await self.connection.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
            (key, value),
        )
        await self.connection.commit()

    async def delete(self, key: str) -> None:
        await self._ensure_ready()

        await self.connection.execute("DELETE FROM kv WHERE key = ?", (key,))
        await self.connection.commit()

    async def _ensure_ready(self) -> None:
        if self.connection is None:
            await self.initialize()

    async def close(self) -> None:
        """Close the connection."""
        if self.connection is not None:
            await self.connection.close()
            self.connection = None
