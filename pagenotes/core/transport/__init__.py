"""
Cross-context message transports for PageNotes.

Available transports:
- LocalHub / LocalTransport: In-process channel between contexts
"""

from pagenotes.core.transport.base import MessageHandler, Transport
from pagenotes.core.transport.local import LocalHub, LocalTransport

__all__ = [
    "MessageHandler",
    "Transport",
    "LocalHub",
    "LocalTransport",
]
