"""
Tests for room membership and fan-out.

This module tests Room.join/leave semantics, snapshot enumeration and the
per-recipient failure isolation of Room.broadcast.
"""

import pytest

from chat_relay.exceptions import ConnectionClosedError, RoomRetiredError
from chat_relay.managers.room import BroadcastResult, Room


class TestMembership:
    """Tests for join and leave."""

    def test_join(self, make_connection):
        """Test joining adds the connection once."""
        room = Room("lobby")
        conn = make_connection("a")

        room.join(conn)

        assert len(room) == 1
        assert room.members() == [conn]

    def test_rejoin_is_noop(self, make_connection):
        """Test joining twice does not duplicate membership."""
        room = Room("lobby")
        conn = make_connection("a")

        room.join(conn)
        room.join(conn)

        assert len(room) == 1

    def test_leave_reports_empty(self, make_connection):
        """Test leave returns whether the room is now empty."""
        room = Room("lobby")
        a = make_connection("a")
        b = make_connection("b")
        room.join(a)
        room.join(b)

        assert room.leave(a) is False
        assert room.leave(b) is True
        assert room.is_empty()

    def test_leave_absent_is_noop(self, make_connection):
        """Test leaving a room the connection is not in does nothing."""
        room = Room("lobby")
        a = make_connection("a")
        room.join(a)

        assert room.leave(make_connection("stranger")) is False
        assert len(room) == 1

    def test_members_is_a_snapshot(self, make_connection):
        """Test the returned member list is unaffected by later changes."""
        room = Room("lobby")
        a = make_connection("a")
        room.join(a)

        snapshot = room.members()
        room.join(make_connection("b"))
        room.leave(a)

        assert snapshot == [a]

    def test_join_retired_room_raises(self, make_connection):
        """Test a retired room refuses new members."""
        room = Room("lobby")
        assert room.retire_if_empty() is True

        with pytest.raises(RoomRetiredError):
            room.join(make_connection("a"))

    def test_join_closed_connection_raises(self, make_connection):
        """Test a closed connection cannot become a member."""
        room = Room("lobby")
        conn = make_connection("a")
        conn.mark_closed()

        with pytest.raises(ConnectionClosedError):
            room.join(conn)

        assert room.is_empty()

    def test_retire_if_empty_keeps_occupied_room(self, make_connection):
        """Test an occupied room is not retired."""
        room = Room("lobby")
        room.join(make_connection("a"))

        assert room.retire_if_empty() is False
        assert room.retired is False

    def test_retire_drops_members(self, make_connection):
        """Test unconditional retirement returns and clears the members."""
        room = Room("lobby")
        a = make_connection("a")
        room.join(a)

        assert room.retire() == [a]
        assert room.is_empty()
        assert room.retired is True


class TestBroadcast:
    """Tests for Room.broadcast."""

    def test_sender_is_excluded(self, make_connection):
        """Test every member but the sender receives the message."""
        room = Room("lobby")
        a, b, c = (make_connection(cid) for cid in ("a", "b", "c"))
        for conn in (a, b, c):
            room.join(conn)

        result = room.broadcast("a", "hi")

        assert isinstance(result, BroadcastResult)
        assert result.delivered == 2
        assert result.failed == []
        assert a.get_nowait() is None
        assert b.get_nowait() == "hi"
        assert c.get_nowait() == "hi"

    def test_broadcast_to_empty_room(self):
        """Test broadcasting with no members is harmless."""
        result = Room("lobby").broadcast("a", "hi")

        assert result.delivered == 0
        assert result.failed == []

    def test_unknown_sender_reaches_everyone(self, make_connection):
        """Test a sender id that is not a member excludes nobody."""
        room = Room("lobby")
        a = make_connection("a")
        room.join(a)

        result = room.broadcast("ghost", "hi")

        assert result.delivered == 1
        assert a.get_nowait() == "hi"

    def test_full_queue_does_not_abort_fanout(self, make_connection):
        """Test a saturated recipient is recorded and others still receive."""
        room = Room("lobby")
        sender = make_connection("sender")
        slow = make_connection("slow", max_queue_size=1)
        fast = make_connection("fast")
        for conn in (sender, slow, fast):
            room.join(conn)
        slow.enqueue("backlog")

        result = room.broadcast("sender", "hi")

        assert result.delivered == 1
        assert result.queue_full == ["slow"]
        assert fast.get_nowait() == "hi"
        assert slow.get_nowait() == "backlog"
        assert slow.get_nowait() is None

    def test_closed_member_is_recorded(self, make_connection):
        """Test a closed recipient is recorded without raising."""
        room = Room("lobby")
        sender = make_connection("sender")
        gone = make_connection("gone")
        alive = make_connection("alive")
        for conn in (sender, gone, alive):
            room.join(conn)
        gone.mark_closed()

        result = room.broadcast("sender", "hi")

        assert result.closed == ["gone"]
        assert result.delivered == 1
        assert result.failed == ["gone"]
        assert alive.get_nowait() == "hi"
