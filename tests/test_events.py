"""
Tests for the per-context EventBus and Subscription handles.
"""

import asyncio

import pytest

from pagenotes.core.events import EventBus


@pytest.mark.asyncio
class TestEventBus:
    """Tests for EventBus delivery."""

    async def test_emit_reaches_page_listeners_only(self):
        """Test emit only reaches listeners of that page."""
        bus = EventBus()
        received_a, received_b = [], []
        bus.subscribe("https://a.com/", received_a.append)
        bus.subscribe("https://b.com/", received_b.append)

        bus.emit("https://a.com/")

        assert received_a == ["https://a.com/"]
        assert received_b == []

    async def test_wildcard_listener(self):
        """Test subscribe_all hears every page."""
        bus = EventBus()
        received = []
        bus.subscribe_all(received.append)

        bus.emit("https://a.com/")
        bus.emit("https://b.com/")

        assert received == ["https://a.com/", "https://b.com/"]

    async def test_star_is_not_a_wildcard(self):
        """Test a listener on the page key '*' only hears that page."""
        bus = EventBus()
        star, everything = [], []
        bus.subscribe("*", star.append)
        bus.subscribe_all(everything.append)

        bus.emit("https://a.com/")
        bus.emit("*")

        assert star == ["*"]
        assert everything == ["https://a.com/", "*"]
        assert bus.listener_count("*") == 1
        assert bus.wildcard_count() == 1

    async def test_async_listener_runs_as_task(self):
        """Test coroutine listeners are scheduled as tasks."""
        bus = EventBus()
        delivered = asyncio.Event()

        async def on_change(page_key):
            delivered.set()

        bus.subscribe("https://a.com/", on_change)
        bus.emit("https://a.com/")

        await asyncio.wait_for(delivered.wait(), timeout=1.0)

    async def test_failing_listener_does_not_block_others(self):
        """Test a failing listener does not stop the others."""
        bus = EventBus()
        received = []

        def broken(page_key):
            raise RuntimeError("view destroyed")

        async def broken_async(page_key):
            raise RuntimeError("async view destroyed")

        bus.subscribe("https://a.com/", broken)
        bus.subscribe("https://a.com/", broken_async)
        bus.subscribe("https://a.com/", received.append)

        bus.emit("https://a.com/")
        await bus.drain()

        assert received == ["https://a.com/"]

    async def test_listener_count(self):
        """Test listener counts per page, wildcard and total."""
        bus = EventBus()
        bus.subscribe("https://a.com/", lambda key: None)
        bus.subscribe("https://a.com/", lambda key: None)
        bus.subscribe_all(lambda key: None)

        assert bus.listener_count("https://a.com/") == 2
        assert bus.wildcard_count() == 1
        assert bus.listener_count() == 3


class TestSubscription:
    """Tests for Subscription release."""

    def test_unsubscribe_stops_delivery(self):
        """Test unsubscribe stops delivery."""
        bus = EventBus()
        received = []
        subscription = bus.subscribe("https://a.com/", received.append)

        subscription.unsubscribe()
        bus.emit("https://a.com/")

        assert received == []
        assert subscription.active is False
        assert bus.listener_count() == 0

    def test_unsubscribe_is_idempotent(self):
        """Test releasing twice is a no-op."""
        bus = EventBus()
        subscription = bus.subscribe("https://a.com/", lambda key: None)

        subscription.unsubscribe()
        subscription.unsubscribe()

        assert bus.listener_count() == 0

    def test_wildcard_unsubscribe(self):
        """Test releasing a wildcard listener leaves page listeners in place."""
        bus = EventBus()
        received = []
        subscription = bus.subscribe_all(received.append)
        bus.subscribe("https://a.com/", lambda key: None)

        subscription.unsubscribe()
        bus.emit("https://a.com/")

        assert received == []
        assert bus.wildcard_count() == 0
        assert bus.listener_count() == 1

    def test_context_manager_releases(self):
        """Test the context manager releases on exit."""
        bus = EventBus()
        received = []

        with bus.subscribe("https://a.com/", received.append):
            bus.emit("https://a.com/")
        bus.emit("https://a.com/")

        assert received == ["https://a.com/"]

    def test_listener_released_during_emit_is_skipped(self):
        """Test a listener released mid-emit is skipped."""
        bus = EventBus()
        received = []
        second = None

        def first(page_key):
            second.unsubscribe()

        bus.subscribe("https://a.com/", first)
        second = bus.subscribe("https://a.com/", received.append)

        bus.emit("https://a.com/")

        assert received == []

    def test_clear(self):
        """Test clear releases every listener."""
        bus = EventBus()
        subscription = bus.subscribe("https://a.com/", lambda key: None)
        bus.subscribe_all(lambda key: None)

        bus.clear()

        assert bus.listener_count() == 0
        assert subscription.active is False
