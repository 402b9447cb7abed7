from typing import Any, Dict, Iterable, List, Optional

from game.models import Room
from game.rooms import RoomStore
from game.sessions import SessionRegistry
from logging_config import get_logger

logger = get_logger(__name__)


class Notifier:
    """Fire-and-forget delivery to one connection, a room's roster, or everyone.

    Connections expose ``id``, ``is_open`` and a non-blocking ``send(dict)``.
    Nothing here waits for delivery; closed connections are skipped.
    """

    def __init__(self, sessions: SessionRegistry, rooms: RoomStore):
        self._sessions = sessions
        self._rooms = rooms
        self._connections: Dict[str, Any] = {}

    def attach(self, connection: Any) -> None:
        self._connections[connection.id] = connection
        logger.debug(f"Attached connection {connection.id} (open connections: {len(self._connections)})")

    def detach(self, connection: Any) -> None:
        self._connections.pop(connection.id, None)
        logger.debug(f"Detached connection {connection.id} (open connections: {len(self._connections)})")

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def unicast(self, connection: Any, message: dict) -> bool:
        if connection is None or not connection.is_open:
            return False
        connection.send(message)
        return True

    def send_to(self, nickname: str, message: dict) -> bool:
        return self.unicast(self._sessions.find_connection(nickname), message)

    def room_cast(self, room: Room, message: dict, exclude: Optional[Iterable[str]] = None) -> int:
        skip = set(exclude or ())
        delivered = 0
        for player in list(room.players):
            if player.nickname in skip:
                continue
            if self.send_to(player.nickname, message):
                delivered += 1
        logger.debug(f"Room {room.id}: sent {message.get('type')} to {delivered}/{len(room.players)} players")
        return delivered

    def broadcast(self, message: dict) -> int:
        delivered = 0
        for connection in list(self._connections.values()):
            if self.unicast(connection, message):
                delivered += 1
        logger.debug(f"Broadcast {message.get('type')} to {delivered} connections")
        return delivered

    def rooms_list(self) -> List[dict]:
        return [room.to_dict() for room in self._rooms.list_rooms()]

    def push_rooms_list(self, connection: Any = None) -> None:
        message = {"type": "rooms_list", "rooms": self.rooms_list()}
        if connection is None:
            self.broadcast(message)
        else:
            self.unicast(connection, message)
