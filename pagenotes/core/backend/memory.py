"""
In-memory key-value backend.

One instance can be shared by several contexts in the same process to
simulate the shared extension storage area.
"""

import asyncio

from pagenotes.core.backend.base import KeyValueBackend
from pagenotes.utils.exceptions import QuotaExceededError
from pagenotes.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryBackend(KeyValueBackend):
    """
    Dict-backed storage holding byte copies.

    Features:
    - Optional byte quota, like the browser's storage quota
    - Optional latency so concurrent callers interleave at every call
    """

    def __init__(self, quota_bytes: int | None = None, latency: float = 0.0):
        """
        Initialize in-memory backend.

        Args:
            quota_bytes: Maximum total size of keys and values, None for unlimited
            latency: Seconds to sleep inside each operation
        """
        self.quota_bytes = quota_bytes
        self.latency = latency
        self._data: dict[str, bytes] = {}

    async def initialize(self) -> None:
        pass

    async def _pause(self) -> None:
        # Always yield so callers in other tasks can run between get and set
        await asyncio.sleep(self.latency)

    async def get(self, key: str) -> bytes | None:
        await self._pause()
        value = self._data.get(key)
        return bytes(value) if value is not None else None

    async def set(self, key: str, value: bytes) -> None:
        await self._pause()
        if self.quota_bytes is not None:
            used = self.bytes_in_use() - self._entry_size(key, self._data.get(key))
            needed = used + self._entry_size(key, value)
            if needed > self.quota_bytes:
                logger.warning(
                    f"Quota exceeded writing {key}: {needed} > {self.quota_bytes} bytes",
                    extra={"key": key, "quota_bytes": self.quota_bytes},
                )
                raise QuotaExceededError(
                    f"Storage quota exceeded ({needed} > {self.quota_bytes} bytes)",
                    context={"key": key, "quota_bytes": self.quota_bytes, "needed": needed},
                )
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        await self._pause()
        self._data.pop(key, None)

    async def close(self) -> None:
        # Data outlives handles; closing one context must not wipe storage
        pass

    def bytes_in_use(self) -> int:
        return sum(self._entry_size(key, value) for key, value in self._data.items())

    @staticmethod
    def _entry_size(key: str, value: bytes | None) -> int:
        if value is None:
            return 0
        return len(key.encode("utf-8")) + len(value)
