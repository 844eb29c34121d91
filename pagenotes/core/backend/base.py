"""
Base interface for the durable key-value backend.

Stands in for the browser-provided extension storage: asynchronous,
outside any single context's memory, and without multi-key transactions.
"""

from abc import ABC, abstractmethod


class KeyValueBackend(ABC):
    """Abstract base class for durable key-value storage."""

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (open connections, create tables)."""
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """
        Read a value.

        Args:
            key: Storage key

        Returns:
            Stored bytes, or None if the key is absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """
        Write a value, replacing any previous one.

        Args:
            key: Storage key
            value: Bytes to store
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove a key. Missing keys are ignored.

        Args:
            key: Storage key
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by this handle."""
        pass
