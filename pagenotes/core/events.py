"""
Per-context publish/subscribe for page change notifications.

Listeners are bound to the lifetime of the view that registered them and
must be released through their Subscription handle on teardown.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from pagenotes.utils.logger import get_logger

logger = get_logger(__name__)

ChangeCallback = Callable[[str], Awaitable[None] | None]


class Subscription:
    """
    Handle for a registered listener.

    Usable as a (sync or async) context manager; releasing twice is a no-op.
    A page_key of None means the listener watches every page.
    """

    def __init__(self, bus: "EventBus", page_key: str | None, callback: ChangeCallback):
        self._bus = bus
        self.page_key = page_key
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Stop delivering events to this listener."""
        if not self.active:
            return
        self.active = False
        self._bus._remove(self)

    close = unsubscribe

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class EventBus:
    """
    Delivers changed(page_key) events to listeners in this context.

    Delivery is best-effort: coroutine listeners run as background tasks,
    and listener failures are logged and dropped.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Subscription]] = {}
        # Kept apart from _listeners so that no page key can alias "every page"
        self._wildcard: list[Subscription] = []
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, page_key: str, callback: ChangeCallback) -> Subscription:
        """
        Register a listener for one page key.

        Args:
            page_key: Page to watch; any string, matched exactly
            callback: Called with the changed page key

        Returns:
            Subscription handle; release it when the view is torn down
        """
        subscription = Subscription(self, page_key, callback)
        self._listeners.setdefault(page_key, []).append(subscription)
        return subscription

    def subscribe_all(self, callback: ChangeCallback) -> Subscription:
        """Register a listener for every page."""
        subscription = Subscription(self, None, callback)
        self._wildcard.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription.page_key is None:
            if subscription in self._wildcard:
                self._wildcard.remove(subscription)
            return

        listeners = self._listeners.get(subscription.page_key, [])
        if subscription in listeners:
            listeners.remove(subscription)
        if not listeners:
            self._listeners.pop(subscription.page_key, None)

    def listener_count(self, page_key: str | None = None) -> int:
        """Listeners of one page, or of every kind when page_key is None."""
        if page_key is None:
            return sum(len(subs) for subs in self._listeners.values()) + len(self._wildcard)
        return len(self._listeners.get(page_key, []))

    def wildcard_count(self) -> int:
        return len(self._wildcard)

    def emit(self, page_key: str) -> None:
        """Notify listeners of page_key and wildcard listeners."""
        targets = list(self._listeners.get(page_key, [])) + list(self._wildcard)

        for subscription in targets:
            # A listener may release another one while we iterate
            if not subscription.active:
                continue
            try:
                result = subscription.callback(page_key)
            except Exception as e:
                logger.error(
                    f"Change listener failed for {page_key}: {e}",
                    extra={"page_key": page_key, "error": str(e)},
                )
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(self._run_listener(result, page_key))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

    async def _run_listener(self, awaitable: Awaitable[None], page_key: str) -> None:
        try:
            await awaitable
        except Exception as e:
            logger.error(
                f"Async change listener failed for {page_key}: {e}",
                extra={"page_key": page_key, "error": str(e)},
            )

    async def drain(self) -> None:
        """Wait for listener tasks scheduled so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def clear(self) -> None:
        """Release every listener."""
        for subscriptions in list(self._listeners.values()):
            for subscription in list(subscriptions):
                subscription.unsubscribe()
        for subscription in list(self._wildcard):
            subscription.unsubscribe()
