import random
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from game.errors import (
    AlreadyInRoom,
    GameAlreadyStarted,
    InvalidRequest,
    NotEnoughPlayers,
    NotInRoom,
    RoomFull,
    RoomNotFound,
)
from game.models import Player, Room, RoleKind, RoomStatus
from game.roles import assign_roles
from logging_config import get_logger

logger = get_logger(__name__)

MIN_PLAYERS_TO_START = 2


@dataclass
class JoinResult:
    room: Room
    player: Player
    # room as it looked right after the join, before any automatic start
    joined_view: Optional[dict] = None
    # set when this join triggered the automatic start
    roles: Optional[Dict[str, RoleKind]] = None

    @property
    def started(self) -> bool:
        return self.roles is not None


@dataclass
class LeaveResult:
    room: Room
    player: Player
    room_deleted: bool = False


class RoomStore:
    """Owns every room and applies the waiting/playing lifecycle.

    Methods mutate state and return what happened; notifying clients is the
    caller's job.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rooms: Dict[str, Room] = {}
        self._rng = rng

    def create(
        self,
        name: str,
        creator: Player,
        min_players: int,
        max_players: int,
        requested_roles: Iterable[RoleKind] = (),
    ) -> Room:
        if min_players < MIN_PLAYERS_TO_START:
            raise InvalidRequest(f"A room needs at least {MIN_PLAYERS_TO_START} players to start")
        if max_players < min_players:
            raise InvalidRequest("maxPlayers must not be lower than minPlayers")

        roles = tuple(dict.fromkeys(RoleKind(r) for r in requested_roles))
        room = Room(
            name=name,
            creator=creator,
            min_players=min_players,
            max_players=max_players,
            requested_roles=roles,
            players=[creator],
        )
        self._rooms[room.id] = room
        logger.info(f"Room {room.id} \"{name}\" created by {creator.nickname} ({min_players}-{max_players} players)")
        return room

    def get(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def join(self, room_id: str, player: Player) -> JoinResult:
        room = self.get(room_id)
        if room.status is not RoomStatus.WAITING:
            raise GameAlreadyStarted()
        if room.is_full:
            raise RoomFull()
        if room.has_player(player.nickname):
            raise AlreadyInRoom()

        room.players.append(player)
        logger.info(f"{player.nickname} joined room {room.id} ({len(room.players)}/{room.max_players})")

        result = JoinResult(room=room, player=player, joined_view=room.to_dict())
        if len(room.players) >= room.min_players:
            logger.info(f"Room {room.id} reached {room.min_players} players, starting automatically")
            result.roles = self._start(room)
        return result

    def leave(self, room_id: str, nickname: str) -> LeaveResult:
        room = self.get(room_id)
        player = room.find_player(nickname)
        if player is None:
            raise NotInRoom()

        room.players.remove(player)
        deleted = not room.players
        if deleted:
            del self._rooms[room.id]
            logger.info(f"{nickname} left room {room.id}; room was empty and has been deleted")
        else:
            logger.info(f"{nickname} left room {room.id} ({len(room.players)}/{room.max_players}, {room.status.value})")
        return LeaveResult(room=room, player=player, room_deleted=deleted)

    def kick(self, room_id: str, nickname: str) -> LeaveResult:
        return self.leave(room_id, nickname)

    def add_bot(self, room_id: str, bot: Player) -> Room:
        room = self.get(room_id)
        if room.is_full:
            raise RoomFull()
        if room.has_player(bot.nickname):
            raise AlreadyInRoom(f"{bot.nickname} is already in this room")
        room.players.append(bot)
        logger.info(f"Bot {bot.nickname} added to room {room.id}")
        return room

    def force_start(self, room_id: str) -> Dict[str, RoleKind]:
        room = self.get(room_id)
        if room.status is RoomStatus.PLAYING:
            raise GameAlreadyStarted()
        logger.info(f"Room {room.id} force started with {len(room.players)} players")
        return self._start(room)

    def end_game(self, room_id: str) -> Room:
        room = self.get(room_id)
        room.status = RoomStatus.WAITING
        logger.info(f"Game ended in room {room.id}")
        return room

    def _start(self, room: Room) -> Dict[str, RoleKind]:
        if len(room.players) < MIN_PLAYERS_TO_START:
            raise NotEnoughPlayers(f"At least {MIN_PLAYERS_TO_START} players are needed to deal roles")
        roles = assign_roles(room.players, room.requested_roles, self._rng)
        room.status = RoomStatus.PLAYING
        return roles

    def list_rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def rooms_of(self, nickname: str) -> Iterator[Room]:
        # snapshot, callers remove players while iterating
        for room in list(self._rooms.values()):
            if room.has_player(nickname):
                yield room

    def room_of(self, nickname: str) -> Optional[Room]:
        return next(self.rooms_of(nickname), None)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
