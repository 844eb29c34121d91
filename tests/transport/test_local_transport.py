"""
Tests for the in-process LocalHub transport.
"""

import asyncio

import pytest

from pagenotes.core.transport.local import LocalHub
from pagenotes.utils.exceptions import TransportError


class Recorder:
    """Collects (sender, message) pairs and signals arrival."""

    def __init__(self, expected: int = 1):
        self.messages: list[tuple[str, str]] = []
        self.expected = expected
        self.done = asyncio.Event()

    async def __call__(self, sender: str, message: str) -> None:
        self.messages.append((sender, message))
        if len(self.messages) >= self.expected:
            self.done.set()


@pytest.mark.asyncio
class TestLocalHub:
    """Delivery semantics of LocalHub."""

    async def test_send_delivers(self, hub):
        """Test send delivers a message to its target."""
        popup = hub.connect("popup")
        background = hub.connect("background")
        recorder = Recorder()
        background.set_handler(recorder)

        assert await popup.send("background", "hello") is True
        await asyncio.wait_for(recorder.done.wait(), timeout=1.0)

        assert recorder.messages == [("popup", "hello")]

    async def test_send_to_unknown_context_is_dropped(self, hub):
        """Test sending to an unknown context returns False."""
        popup = hub.connect("popup")

        assert await popup.send("content", "hello") is False

    async def test_messages_arrive_in_order(self, hub):
        """Test messages from one sender arrive in order."""
        popup = hub.connect("popup")
        background = hub.connect("background")
        recorder = Recorder(expected=5)
        background.set_handler(recorder)

        for index in range(5):
            await popup.send("background", f"m{index}")
        await asyncio.wait_for(recorder.done.wait(), timeout=1.0)

        assert [m for _, m in recorder.messages] == [f"m{i}" for i in range(5)]

    async def test_broadcast_skips_sender_and_excluded(self, hub):
        """Test broadcast skips the sender and excluded contexts."""
        background = hub.connect("background")
        popup = hub.connect("popup")
        content = hub.connect("content")
        popup_rec, content_rec = Recorder(), Recorder()
        popup.set_handler(popup_rec)
        content.set_handler(content_rec)

        assert await background.broadcast("changed") == 2
        assert await background.broadcast("again", exclude={"content"}) == 1
        await asyncio.wait_for(content_rec.done.wait(), timeout=1.0)
        await asyncio.wait_for(popup_rec.done.wait(), timeout=1.0)
        await asyncio.sleep(0.01)

        assert [m for _, m in popup_rec.messages] == ["changed", "again"]
        assert [m for _, m in content_rec.messages] == ["changed"]

    async def test_closed_context_misses_messages(self, hub):
        """Test a closed context receives nothing."""
        background = hub.connect("background")
        popup = hub.connect("popup")
        await popup.close()

        assert await background.broadcast("changed") == 0
        assert background.peers() == []

    async def test_send_after_close_raises(self, hub):
        """Test sending from a closed endpoint raises TransportError."""
        popup = hub.connect("popup")
        await popup.close()

        with pytest.raises(TransportError):
            await popup.send("background", "hello")

    async def test_duplicate_context_id(self, hub):
        """Test connecting a live context id twice is rejected."""
        hub.connect("popup")

        with pytest.raises(TransportError):
            hub.connect("popup")

    async def test_reconnect_after_close(self, hub):
        """Test a context id can reconnect after closing."""
        popup = hub.connect("popup")
        await popup.close()

        reopened = hub.connect("popup")

        assert reopened.context_id == "popup"
        assert "popup" in hub.live_contexts()

    async def test_handler_failure_does_not_stop_reader(self, hub):
        """Test a failing handler does not stop delivery."""
        popup = hub.connect("popup")
        background = hub.connect("background")
        recorder = Recorder()

        async def handler(sender, message):
            if message == "boom":
                raise RuntimeError("handler failed")
            await recorder(sender, message)

        background.set_handler(handler)
        await popup.send("background", "boom")
        await popup.send("background", "ok")
        await asyncio.wait_for(recorder.done.wait(), timeout=1.0)

        assert recorder.messages == [("popup", "ok")]
