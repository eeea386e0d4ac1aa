"""Tests for MessageBus."""

import asyncio
from datetime import datetime, timezone

import pytest

from agentfleet.message_bus import MessageBus, parse_message, serialize_message
from agentfleet.models import BROADCAST, COORDINATOR, AgentMessage, MessageType


class TestCreateMessage:
    """Tests for MessageBus.create_message()."""

    def test_create_message_stamps_id_and_time(self, message_bus):
        """Test that messages get a unique id and a UTC timestamp."""
        before = datetime.now(timezone.utc)
        msg1 = message_bus.create_message("a", "b", MessageType.REQUEST, {"x": 1})
        msg2 = message_bus.create_message("a", "b", MessageType.REQUEST, {"x": 1})

        assert msg1.id != msg2.id
        assert msg1.sender == "a"
        assert msg1.target == "b"
        assert msg1.type == MessageType.REQUEST
        assert msg1.payload == {"x": 1}
        assert msg1.related_files is None
        assert msg1.timestamp >= before
        assert msg1.timestamp.tzinfo is not None

    def test_create_message_accepts_type_value(self, message_bus):
        """Test that a plain string type is converted to MessageType."""
        msg = message_bus.create_message("a", "b", "signal", {})
        assert msg.type is MessageType.SIGNAL

    @pytest.mark.asyncio
    async def test_create_message_does_not_publish(self, message_bus):
        """Test that creating a message delivers nothing."""
        calls = []

        async def handler(msg: AgentMessage):
            calls.append(msg)

        message_bus.subscribe("b", handler)
        message_bus.create_message("a", "b", MessageType.REQUEST, {})

        assert calls == []


class TestSubscribe:
    """Tests for subscribe()/unsubscribe()."""

    def test_subscribe_allows_duplicates(self, message_bus):
        """Test that the same handler can be registered twice."""

        async def handler(msg: AgentMessage):
            pass

        message_bus.subscribe("a", handler)
        message_bus.subscribe("a", handler)

        assert len(message_bus._subscribers["a"]) == 2

    def test_unsubscribe_removes_first_match(self, message_bus):
        """Test that unsubscribe removes one registration."""

        async def handler(msg: AgentMessage):
            pass

        message_bus.subscribe("a", handler)
        message_bus.subscribe("a", handler)
        message_bus.unsubscribe("a", handler)

        assert len(message_bus._subscribers["a"]) == 1

    def test_unsubscribe_is_safe_for_unknown(self, message_bus):
        """Test that unknown ids and handlers are ignored."""

        async def handler(msg: AgentMessage):
            pass

        async def other(msg: AgentMessage):
            pass

        message_bus.unsubscribe("nobody", handler)
        message_bus.subscribe("a", handler)
        message_bus.unsubscribe("a", other)
        message_bus.unsubscribe("a", handler)
        message_bus.unsubscribe("a", handler)

        assert message_bus._subscribers["a"] == []


class TestPublish:
    """Tests for publish()/broadcast()."""

    @pytest.mark.asyncio
    async def test_publish_direct_reaches_only_target(self, message_bus):
        """Test that direct messages only reach the target's handlers."""
        calls = []

        async def handler_b(msg: AgentMessage):
            calls.append("b")

        async def handler_c(msg: AgentMessage):
            calls.append("c")

        message_bus.subscribe("b", handler_b)
        message_bus.subscribe("c", handler_c)

        msg = message_bus.create_message("a", "b", MessageType.REQUEST, {})
        await message_bus.publish(msg)

        assert calls == ["b"]

    @pytest.mark.asyncio
    async def test_publish_runs_handlers_in_registration_order(self, message_bus):
        """Test that all handlers of a target are called."""
        calls = []

        async def handler1(msg: AgentMessage):
            calls.append("h1")

        async def handler2(msg: AgentMessage):
            calls.append("h2")

        message_bus.subscribe("b", handler1)
        message_bus.subscribe("b", handler2)

        await message_bus.publish(
            message_bus.create_message("a", "b", MessageType.REQUEST, {})
        )

        assert calls == ["h1", "h2"]

    @pytest.mark.asyncio
    async def test_publish_unknown_target_is_noop(self, message_bus):
        """Test that publishing to an unknown id is not an error."""
        msg = message_bus.create_message("a", "ghost", MessageType.REQUEST, {})
        await message_bus.publish(msg)

    @pytest.mark.asyncio
    async def test_broadcast_skips_sender(self, message_bus):
        """Test that broadcast reaches everyone except the sender."""
        received = {"a": [], "b": [], "c": []}

        def make_handler(agent_id):
            async def handler(msg: AgentMessage):
                received[agent_id].append(msg)

            return handler

        for agent_id in received:
            message_bus.subscribe(agent_id, make_handler(agent_id))

        await message_bus.broadcast("a", MessageType.SIGNAL, {"signal": "x"})

        assert received["a"] == []
        assert len(received["b"]) == 1
        assert len(received["c"]) == 1
        assert received["b"][0].target == BROADCAST
        assert received["b"][0].sender == "a"

    @pytest.mark.asyncio
    async def test_broadcast_from_coordinator_reaches_all(self, message_bus):
        """Test that coordinator broadcasts reach every agent."""
        calls = []

        async def handler(msg: AgentMessage):
            calls.append(msg)

        message_bus.subscribe("a", handler)
        message_bus.subscribe("b", handler)

        await message_bus.broadcast(COORDINATOR, MessageType.STATUS, {})

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_publish_waits_for_all_handlers(self, message_bus):
        """Test that publish returns only after slow handlers finish."""
        finished = []

        async def slow(msg: AgentMessage):
            await asyncio.sleep(0.05)
            finished.append("slow")

        async def fast(msg: AgentMessage):
            finished.append("fast")

        message_bus.subscribe("b", slow)
        message_bus.subscribe("b", fast)

        await message_bus.publish(
            message_bus.create_message("a", "b", MessageType.REQUEST, {})
        )

        assert sorted(finished) == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_publish_propagates_handler_error(self, message_bus):
        """Test that handler errors propagate after every handler ran."""
        calls = []

        async def failing(msg: AgentMessage):
            calls.append("failing")
            raise RuntimeError("Test error")

        async def normal(msg: AgentMessage):
            await asyncio.sleep(0.01)
            calls.append("normal")

        message_bus.subscribe("b", failing)
        message_bus.subscribe("b", normal)

        with pytest.raises(RuntimeError, match="Test error"):
            await message_bus.publish(
                message_bus.create_message("a", "b", MessageType.REQUEST, {})
            )

        assert "failing" in calls
        assert "normal" in calls


class TestSerialization:
    """Tests for serialize_message()/parse_message()."""

    def test_round_trip(self, message_bus):
        """Test that a message survives serialization."""
        msg = message_bus.create_message(
            "builder",
            BROADCAST,
            MessageType.DECISION,
            {"choice": "ship", "nested": {"n": [1, 2, 3]}, "flag": None},
            related_files=["src/a.py", "docs/b.md"],
        )

        parsed = parse_message(serialize_message(msg))

        assert parsed == msg
        assert parsed.timestamp == msg.timestamp

    def test_round_trip_without_related_files(self, message_bus):
        """Test round trip when related_files is absent."""
        msg = message_bus.create_message("a", "b", MessageType.STATUS, {})
        assert message_bus.parse_message(message_bus.serialize_message(msg)) == msg

    def test_parse_assumes_utc_for_naive_timestamp(self):
        """Test that naive timestamps are read as UTC."""
        text = (
            '{"id": "m1", "from": "a", "to": "b", "type": "request", '
            '"payload": {}, "timestamp": "2026-03-01T12:00:00"}'
        )
        msg = parse_message(text)
        assert msg.timestamp == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
        assert msg.related_files is None


class TestMessagePath:
    """Tests for get_message_path()."""

    def test_path_uses_utc_date_and_id(self):
        """Test path layout <base>/<date>/<id>.json."""
        bus = MessageBus(".agents/messages/")
        msg = AgentMessage(
            id="abc",
            sender="a",
            target="b",
            type=MessageType.SIGNAL,
            payload={},
            timestamp=datetime(2026, 5, 4, 23, 30, tzinfo=timezone.utc),
        )
        assert bus.get_message_path(msg) == ".agents/messages/2026-05-04/abc.json"

    def test_path_is_deterministic(self, message_bus):
        """Test that the same message always maps to the same path."""
        msg = message_bus.create_message("a", "b", MessageType.SIGNAL, {})
        assert message_bus.get_message_path(msg) == message_bus.get_message_path(msg)
