"""
Base interface for the cross-context message channel.

Stands in for the extension runtime's messaging: asynchronous, string
payloads only, at-most-once delivery, no ordering across distinct senders.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

MessageHandler = Callable[[str, str], Awaitable[None]]


class Transport(ABC):
    """One context's endpoint on the message channel."""

    context_id: str

    @abstractmethod
    def set_handler(self, handler: MessageHandler) -> None:
        """
        Install the handler for incoming messages.

        Args:
            handler: Coroutine function called with (sender_id, raw_message)
        """
        pass

    @abstractmethod
    async def send(self, target: str, message: str) -> bool:
        """
        Send a message to one context.

        Args:
            target: Receiving context ID
            message: Serialized message

        Returns:
            True if the message was handed to a live context, False if dropped
        """
        pass

    @abstractmethod
    async def broadcast(self, message: str, exclude: set[str] | None = None) -> int:
        """
        Send a message to every other live context.

        Args:
            message: Serialized message
            exclude: Context IDs to skip

        Returns:
            Number of contexts the message was handed to
        """
        pass

    @abstractmethod
    def peers(self) -> list[str]:
        """IDs of the other live contexts."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Leave the channel; messages addressed here are dropped afterwards."""
        pass
