"""
Unit tests for the in-process message runtime.

Tests single-shot reply handles, message isolation between contexts, and
ordered per-tab delivery.
"""

import asyncio
import random
from typing import Any

import pytest

from inline_assist.channel.runtime import ExtensionRuntime, ReplyHandle, Sender
from inline_assist.utils.errors import ChannelError, ReplyAlreadySentError


class TestReplyHandle:
    """Test the single-shot reply capability."""

    @pytest.mark.asyncio
    async def test_first_send_resolves_wait(self) -> None:
        """Test that the waiting side receives the first reply."""
        reply = ReplyHandle(action="getSelection")
        assert reply.replied is False

        reply.send({"data": "hello"})

        assert reply.replied is True
        assert await reply.wait() == {"data": "hello"}

    @pytest.mark.asyncio
    async def test_second_send_is_rejected(self) -> None:
        """Test that replying twice raises instead of being ignored."""
        reply = ReplyHandle(action="writeText")
        reply.send({})

        with pytest.raises(ReplyAlreadySentError) as exc_info:
            reply.send({"success": True})

        assert exc_info.value.action == "writeText"
        assert exc_info.value.error_code == "REPLY_ALREADY_SENT"
        assert await reply.wait() == {}

    @pytest.mark.asyncio
    async def test_reply_is_a_copy(self) -> None:
        """Test that mutating a sent reply does not affect the receiver."""
        reply = ReplyHandle()
        payload: dict[str, Any] = {"data": {"items": [1, 2]}}
        reply.send(payload)
        payload["data"]["items"].append(3)

        assert await reply.wait() == {"data": {"items": [1, 2]}}


class TestBackgroundRequests:
    """Test content-to-background requests."""

    @pytest.mark.asyncio
    async def test_send_message_round_trip(self) -> None:
        """Test a request reaches the listener with its sender and is answered."""
        runtime = ExtensionRuntime()
        seen: list[tuple[dict[str, Any], Sender]] = []

        async def listener(message: dict[str, Any], sender: Sender, reply: ReplyHandle) -> None:
            seen.append((message, sender))
            reply.send({"echo": message["value"]})

        runtime.on_message(listener)
        original = {"action": "echo", "value": [1]}
        response = await runtime.send_message(Sender(tab_id=5, frame_id=0), original)

        assert response == {"echo": [1]}
        assert seen[0][1].tab_id == 5
        assert seen[0][0] == original
        assert seen[0][0] is not original
        await runtime.close()

    @pytest.mark.asyncio
    async def test_no_listener(self) -> None:
        """Test sending without a background listener fails."""
        with pytest.raises(ChannelError):
            await ExtensionRuntime().send_message(Sender(tab_id=1), {"action": "x"})

    @pytest.mark.asyncio
    async def test_listener_crash_reaches_caller(self) -> None:
        """Test that a listener exception is propagated instead of hanging."""
        runtime = ExtensionRuntime()

        async def listener(message: dict[str, Any], sender: Sender, reply: ReplyHandle) -> None:
            raise ValueError("listener broke")

        runtime.on_message(listener)
        with pytest.raises(ValueError, match="listener broke"):
            await runtime.send_message(Sender(tab_id=1), {"action": "x"})
        await runtime.close()

    @pytest.mark.asyncio
    async def test_close_fails_pending_requests(self) -> None:
        """Test that closing the runtime answers requests still in flight."""
        runtime = ExtensionRuntime()
        started = asyncio.Event()

        async def listener(message: dict[str, Any], sender: Sender, reply: ReplyHandle) -> None:
            started.set()
            await asyncio.Event().wait()

        runtime.on_message(listener)
        pending = asyncio.create_task(runtime.send_message(Sender(tab_id=1), {"action": "slow"}))
        await started.wait()

        await runtime.close()

        with pytest.raises(ChannelError):
            await pending


class TestTabDelivery:
    """Test background-to-tab delivery."""

    @pytest.mark.asyncio
    async def test_delivery_order_matches_send_order(self) -> None:
        """Test a slow listener still sees messages in send order, one at a time."""
        runtime = ExtensionRuntime()
        received: list[int] = []
        active = 0
        max_active = 0

        async def listener(message: dict[str, Any]) -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(random.random() / 1000)
            received.append(message["seq"])
            active -= 1

        runtime.connect_tab(1, listener)
        for seq in range(50):
            await runtime.send_to_tab(1, {"action": "streamChunk", "seq": seq})
        await runtime.drain(1)

        assert received == list(range(50))
        assert max_active == 1
        await runtime.close()

    @pytest.mark.asyncio
    async def test_tabs_are_isolated(self) -> None:
        """Test that each tab only receives its own messages."""
        runtime = ExtensionRuntime()
        first: list[dict[str, Any]] = []
        second: list[dict[str, Any]] = []
        runtime.connect_tab(1, first.append)
        runtime.connect_tab(2, second.append)

        await runtime.send_to_tab(1, {"action": "a"})
        await runtime.send_to_tab(2, {"action": "b"})
        await runtime.drain()

        assert first == [{"action": "a"}]
        assert second == [{"action": "b"}]
        await runtime.close()

    @pytest.mark.asyncio
    async def test_unknown_tab(self) -> None:
        """Test sending to a tab without a listener raises ChannelError."""
        with pytest.raises(ChannelError, match="receiving end does not exist"):
            await ExtensionRuntime().send_to_tab(9, {"action": "streamChunk"})

    @pytest.mark.asyncio
    async def test_duplicate_connect(self) -> None:
        """Test a tab can only have one content listener."""
        runtime = ExtensionRuntime()
        runtime.connect_tab(1, lambda message: None)

        with pytest.raises(ChannelError):
            runtime.connect_tab(1, lambda message: None)
        await runtime.close()

    @pytest.mark.asyncio
    async def test_listener_error_does_not_stop_queue(self) -> None:
        """Test that a failing message is logged and later ones still arrive."""
        runtime = ExtensionRuntime()
        received: list[str] = []

        def listener(message: dict[str, Any]) -> None:
            if message["action"] == "bad":
                raise RuntimeError("boom")
            received.append(message["action"])

        runtime.connect_tab(1, listener)
        for action in ("first", "bad", "last"):
            await runtime.send_to_tab(1, {"action": action})
        await runtime.drain(1)

        assert received == ["first", "last"]
        await runtime.close()

    @pytest.mark.asyncio
    async def test_disconnected_tab_no_longer_receives(self) -> None:
        """Test that a disconnected tab is unknown to the runtime."""
        runtime = ExtensionRuntime()
        runtime.connect_tab(1, lambda message: None)
        await runtime.disconnect_tab(1)

        with pytest.raises(ChannelError):
            await runtime.send_to_tab(1, {"action": "x"})
