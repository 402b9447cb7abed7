import json
import random
from collections import namedtuple
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError

from constants import DEFAULT_BAN_REASON, DEFAULT_BOT_AVATAR
from game.admin import AdminPolicy
from game.errors import (
    Conflict,
    Forbidden,
    InvalidRequest,
    LobbyError,
    NotInAnyRoom,
    NotInRoom,
    PlayerNotFound,
    Unauthorized,
    UnknownMessage,
)
from game.models import Player, Room, RoleKind, Session, utcnow
from game.notifier import Notifier
from game.rooms import RoomStore
from game.sessions import SessionRegistry
from logging_config import get_logger
from schemas.messages import (
    AddBotMessage,
    BanPlayerMessage,
    ChatMessage,
    CreateRoomMessage,
    EmptyMessage,
    JoinRoomMessage,
    KickPlayerMessage,
    LeaveRoomMessage,
    UserConnectedMessage,
)

logger = get_logger(__name__)


class Access(Enum):
    PUBLIC = "public"
    PLAYER = "player"
    ADMIN = "admin"


Route = namedtuple("Route", ["schema", "handler", "access"])


class MessageRouter:
    """Entry point for everything a client sends.

    All methods are synchronous and must be called from a single event loop;
    each inbound message is applied to the stores in full before the next one
    is looked at. Outgoing messages are queued on the connections, never awaited.
    """

    def __init__(
        self,
        sessions: SessionRegistry,
        bans,
        rooms: RoomStore,
        notifier: Notifier,
        admin_policy: Optional[AdminPolicy] = None,
        rng: Optional[random.Random] = None,
    ):
        self.sessions = sessions
        self.bans = bans
        self.rooms = rooms
        self.notifier = notifier
        self.admin_policy = admin_policy or AdminPolicy()
        self._rng = rng or random.Random()
        self._routes: Dict[str, Route] = {
            "user_connected": Route(UserConnectedMessage, self.handle_user_connected, Access.PUBLIC),
            "ping": Route(EmptyMessage, self.handle_ping, Access.PUBLIC),
            "get_rooms": Route(EmptyMessage, self.handle_get_rooms, Access.PLAYER),
            "create_room": Route(CreateRoomMessage, self.handle_create_room, Access.PLAYER),
            "join_room": Route(JoinRoomMessage, self.handle_join_room, Access.PLAYER),
            "leave_room": Route(LeaveRoomMessage, self.handle_leave_room, Access.PLAYER),
            "chat_message": Route(ChatMessage, self.handle_chat_message, Access.PLAYER),
            "admin_force_start": Route(EmptyMessage, self.handle_admin_force_start, Access.ADMIN),
            "admin_add_bot": Route(AddBotMessage, self.handle_admin_add_bot, Access.ADMIN),
            "admin_end_game": Route(EmptyMessage, self.handle_admin_end_game, Access.ADMIN),
            "admin_kick_player": Route(KickPlayerMessage, self.handle_admin_kick_player, Access.ADMIN),
            "admin_ban_player": Route(BanPlayerMessage, self.handle_admin_ban_player, Access.ADMIN),
        }

    # ---- connection lifecycle ----

    def connect(self, connection: Any) -> None:
        self.notifier.attach(connection)
        logger.info(f"New connection {connection.id}")

    def disconnect(self, connection: Any) -> None:
        """Treat a dropped connection as leaving every room its player was in."""
        session = self.sessions.unregister(connection)
        self.notifier.detach(connection)
        if session is None:
            logger.info(f"Anonymous connection {connection.id} closed")
            return

        logger.info(f"User {session.nickname} disconnected")
        self._leave_all_rooms(session.nickname)
        self.notifier.push_rooms_list()

    # ---- parse boundary ----

    def dispatch(self, connection: Any, raw: str) -> None:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Unparseable frame from connection {connection.id}: {e}")
            self.notifier.unicast(connection, InvalidRequest().to_message())
            return
        self.handle(connection, data)

    def handle(self, connection: Any, data: Any) -> None:
        msg_type = data.get("type") if isinstance(data, dict) else None
        try:
            if not isinstance(data, dict):
                raise InvalidRequest()
            route = self._routes.get(msg_type)
            if route is None:
                raise UnknownMessage(f"Unknown message type: {msg_type}")

            session = None
            if route.access is not Access.PUBLIC:
                session = self.sessions.resolve(connection)
                if session is None:
                    raise Unauthorized()
                if route.access is Access.ADMIN and not session.is_admin:
                    logger.warning(f"{session.nickname} attempted {msg_type} without admin rights")
                    raise Forbidden()

            payload = route.schema.model_validate(data)
            route.handler(connection, session, payload)
        except ValidationError as e:
            logger.warning(f"Invalid {msg_type} payload from connection {connection.id}: {e.error_count()} errors")
            self.notifier.unicast(connection, InvalidRequest(_describe_validation_error(e)).to_message())
        except LobbyError as e:
            logger.warning(f"{msg_type} from connection {connection.id} rejected: {e.message}")
            self.notifier.unicast(connection, e.to_message())
        except Exception as e:
            logger.error(f"Error handling {msg_type} from connection {connection.id}: {e}", exc_info=True)
            self.notifier.unicast(connection, LobbyError().to_message())

    # ---- open handlers ----

    def handle_user_connected(self, connection: Any, session: None, msg: UserConnectedMessage) -> None:
        player = Player(nickname=msg.user.nickname, avatar=msg.user.avatar)
        is_admin = self.admin_policy.is_admin(player.nickname, msg.user.admin_token)
        previous = self.sessions.resolve(connection)
        self.sessions.register(connection, player, is_admin=is_admin)

        if previous is not None and previous.nickname != player.nickname:
            # the old identity has no connection left, so it leaves like a disconnect
            logger.info(f"Connection {connection.id} switched from {previous.nickname} to {player.nickname}")
            self._leave_all_rooms(previous.nickname)
            self.notifier.push_rooms_list()
        else:
            self.notifier.push_rooms_list(connection)

    def handle_ping(self, connection: Any, session: None, msg: EmptyMessage) -> None:
        self.notifier.unicast(connection, {"type": "pong"})

    def handle_get_rooms(self, connection: Any, session: Session, msg: EmptyMessage) -> None:
        self.notifier.push_rooms_list(connection)

    def handle_create_room(self, connection: Any, session: Session, msg: CreateRoomMessage) -> None:
        room = self.rooms.create(
            name=msg.name,
            creator=session.player,
            min_players=msg.min_players,
            max_players=msg.max_players,
            requested_roles=msg.roles,
        )
        self.notifier.unicast(connection, {"type": "room_created", "room": room.to_dict()})
        self.notifier.push_rooms_list()

    def handle_join_room(self, connection: Any, session: Session, msg: JoinRoomMessage) -> None:
        result = self.rooms.join(msg.room_id, session.player)
        room = result.room
        self.notifier.unicast(connection, {"type": "room_joined", "room": result.joined_view})
        self.notifier.room_cast(room, {
            "type": "player_joined",
            "player": result.player.to_dict(),
            "room": result.joined_view,
        })
        if result.started:
            self._announce_start(room, result.roles)
        self.notifier.push_rooms_list()

    def handle_leave_room(self, connection: Any, session: Session, msg: LeaveRoomMessage) -> None:
        result = self.rooms.leave(msg.room_id, session.nickname)
        if not result.room_deleted:
            self.notifier.room_cast(result.room, {
                "type": "player_left",
                "player": result.player.to_dict(),
                "room": result.room.to_dict(),
            })
        self.notifier.push_rooms_list()

    def handle_chat_message(self, connection: Any, session: Session, msg: ChatMessage) -> None:
        room = self.rooms.get(msg.room_id)
        if not room.has_player(session.nickname):
            raise NotInRoom()
        self.notifier.room_cast(room, {
            "type": "chat_message",
            "sender": session.nickname,
            "message": msg.message,
            "timestamp": utcnow().isoformat(),
        })

    # ---- admin handlers ----

    def handle_admin_force_start(self, connection: Any, session: Session, msg: EmptyMessage) -> None:
        room = self._admin_room(session)
        roles = self.rooms.force_start(room.id)
        self._announce_start(room, roles)
        self.notifier.room_cast(room, {"type": "game_force_started", "admin": session.nickname})
        self.notifier.push_rooms_list()
        logger.info(f"Admin {session.nickname} force started the game in room {room.id}")

    def handle_admin_add_bot(self, connection: Any, session: Session, msg: AddBotMessage) -> None:
        room = self._admin_room(session)
        bot_name = msg.bot_name or f"Bot_{self._rng.randrange(1000)}"
        if self.sessions.is_nickname_taken(bot_name):
            raise Conflict(f"Nickname {bot_name} is already in use")
        bot = Player(nickname=bot_name, avatar=DEFAULT_BOT_AVATAR, is_bot=True)
        self.rooms.add_bot(room.id, bot)
        self.notifier.room_cast(room, {"type": "bot_added", "bot": bot.to_dict(), "room": room.to_dict()})
        self.notifier.push_rooms_list()
        logger.info(f"Admin {session.nickname} added bot {bot_name} to room {room.id}")

    def handle_admin_end_game(self, connection: Any, session: Session, msg: EmptyMessage) -> None:
        room = self._admin_room(session)
        self.rooms.end_game(room.id)
        self.notifier.room_cast(room, {"type": "game_ended", "admin": session.nickname})
        self.notifier.push_rooms_list()
        logger.info(f"Admin {session.nickname} ended the game in room {room.id}")

    def handle_admin_kick_player(self, connection: Any, session: Session, msg: KickPlayerMessage) -> None:
        target = msg.player
        room = self.rooms.room_of(target)
        if room is None:
            raise PlayerNotFound()

        result = self.rooms.kick(room.id, target)
        notice = {
            "type": "player_kicked",
            "player": target,
            "admin": session.nickname,
            "reason": msg.reason or DEFAULT_BAN_REASON,
        }
        if not result.room_deleted:
            self.notifier.room_cast(result.room, notice)
        self.notifier.send_to(target, notice)
        self.notifier.push_rooms_list()
        logger.info(f"Admin {session.nickname} kicked {target} from room {room.id}")

    def handle_admin_ban_player(self, connection: Any, session: Session, msg: BanPlayerMessage) -> None:
        target = msg.player
        reason = msg.reason or DEFAULT_BAN_REASON
        duration = msg.duration or 0

        # record first so a rejected ban leaves rosters untouched
        self.bans.ban(target, reason, duration)
        for room in self.rooms.rooms_of(target):
            self.rooms.leave(room.id, target)

        self.notifier.broadcast({
            "type": "player_banned",
            "player": target,
            "admin": session.nickname,
            "reason": reason,
            "duration": duration,
        })

        target_connection = self.sessions.find_connection(target)
        if target_connection is not None:
            self.sessions.unregister(target_connection)
            target_connection.close()
        self.notifier.push_rooms_list()
        period = f"{duration} hours" if duration > 0 else "forever"
        logger.info(f"Admin {session.nickname} banned {target} for {period}")

    # ---- helpers ----

    def _leave_all_rooms(self, nickname: str) -> None:
        for room in self.rooms.rooms_of(nickname):
            result = self.rooms.leave(room.id, nickname)
            if not result.room_deleted:
                self.notifier.room_cast(result.room, {
                    "type": "player_left",
                    "player": result.player.to_dict(),
                    "room": result.room.to_dict(),
                })

    def _admin_room(self, session: Session) -> Room:
        room = self.rooms.room_of(session.nickname)
        if room is None:
            raise NotInAnyRoom()
        return room

    def _announce_start(self, room: Room, roles: Dict[str, RoleKind]) -> None:
        self.notifier.room_cast(room, {"type": "game_started", "room": room.to_dict()})
        for player in room.players:
            role = roles.get(player.nickname)
            if role is not None:
                self.notifier.send_to(player.nickname, {"type": "role_assigned", "role": role.value})
        logger.info(f"Game started in room {room.id} with {len(room.players)} players")


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    if location:
        return f"Invalid message format: {location}: {first.get('msg')}"
    return f"Invalid message format: {first.get('msg')}"
