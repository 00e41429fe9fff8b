import threading

from chat_relay.exceptions import InvalidRoomIdError
from chat_relay.logging import logger
from chat_relay.managers.room import Room
from chat_relay.settings import app_settings
from chat_relay.utils.metrics import MetricsCollector


def validate_room_id(room_id: str) -> str:
    """
    Checks that a room identifier is well-formed.

    Args:
        room_id: Identifier resolved by the transport layer.

    Returns:
        The identifier, unchanged.

    Raises:
        InvalidRoomIdError: Empty, too long or containing characters
            outside ROOM_ID_PATTERN.
    """
    if not isinstance(room_id, str) or not room_id:
        raise InvalidRoomIdError("Room id must be a non-empty string")
    if len(room_id) > app_settings.ROOM_ID_MAX_LENGTH:
        raise InvalidRoomIdError(
            f"Room id exceeds {app_settings.ROOM_ID_MAX_LENGTH} characters"
        )
    if not app_settings.ROOM_ID_PATTERN.fullmatch(room_id):
        raise InvalidRoomIdError(f"Room id {room_id!r} is malformed")
    return room_id


class RoomRegistry:
    """
    Process-wide directory mapping room identifiers to rooms.

    Holds an entry for a room id only while at least one connection is a
    member of that room. Lock order is registry, then room.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def room_ids(self) -> list[str]:
        with self._lock:
            return list(self._rooms)

    def resolve_or_create(self, room_id: str) -> Room:
        """
        Returns the room for an identifier, creating an empty one if absent.

        Args:
            room_id: Room identifier.

        Returns:
            The registered room.

        Raises:
            InvalidRoomIdError: The identifier is empty or malformed.
        """
        validate_room_id(room_id)

        with self._lock:
            room = self._rooms.get(room_id)
            if room is not None:
                return room
            room = Room(room_id)
            self._rooms[room_id] = room

        MetricsCollector.record_room_created()
        logger.info(f"Created room {room_id}")
        return room

    def lookup(self, room_id: str) -> Room | None:
        """
        Returns the room for an identifier without creating it.

        Args:
            room_id: Room identifier.

        Returns:
            The room if registered, None otherwise.
        """
        with self._lock:
            return self._rooms.get(room_id)

    def reclaim_if_empty(self, room_id: str) -> bool:
        """
        Removes the room if it has no members.

        The emptiness check and removal are atomic with respect to joins:
        the room is retired under both locks, so a racing join fails with
        RoomRetiredError and resolves a fresh room instead of landing in a
        removed one.

        Args:
            room_id: Room identifier.

        Returns:
            True if the room was removed.
        """
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None or not room.retire_if_empty():
                return False
            del self._rooms[room_id]

        MetricsCollector.record_room_reclaimed()
        logger.info(f"Reclaimed empty room {room_id}")
        return True

    def clear(self) -> list[Room]:
        """
        Retires and removes every room.

        Returns:
            The rooms that were registered.
        """
        with self._lock:
            rooms = list(self._rooms.values())
            self._rooms.clear()

        for room in rooms:
            room.retire()
            MetricsCollector.record_room_reclaimed()
        return rooms
