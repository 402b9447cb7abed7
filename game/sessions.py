from datetime import datetime
from typing import Any, Dict, List, Optional

from game.errors import Banned
from game.models import Player, Session
from logging_config import get_logger

logger = get_logger(__name__)


class SessionRegistry:
    """Binds live connections to player identities.

    Two indexes are kept in step: connection id -> session and
    nickname -> session. A nickname is bound to at most one connection and a
    connection to at most one nickname; a newer login wins over an older one.
    """

    def __init__(self, bans):
        self._bans = bans
        self._by_connection: Dict[str, Session] = {}
        self._by_nickname: Dict[str, Session] = {}

    def register(self, connection: Any, player: Player, is_admin: bool = False, now: Optional[datetime] = None) -> Session:
        record = self._bans.is_banned(player.nickname, now)
        if record is not None:
            logger.warning(f"Rejected connect for banned nickname {player.nickname}")
            raise Banned(f"You are banned: {record.describe()}")

        self._drop(self._by_connection.get(connection.id))
        stale = self._by_nickname.get(player.nickname)
        if stale is not None:
            logger.info(f"Nickname {player.nickname} re-registered, dropping binding on connection {stale.connection.id}")
            self._drop(stale)

        session = Session(connection=connection, player=player, is_admin=is_admin)
        self._by_connection[connection.id] = session
        self._by_nickname[player.nickname] = session
        logger.info(f"Registered {player.nickname} on connection {connection.id} (admin={is_admin})")
        return session

    def resolve(self, connection: Any) -> Optional[Session]:
        return self._by_connection.get(connection.id)

    def get(self, nickname: str) -> Optional[Session]:
        return self._by_nickname.get(nickname)

    def find_connection(self, nickname: str) -> Optional[Any]:
        session = self._by_nickname.get(nickname)
        return session.connection if session else None

    def unregister(self, connection: Any) -> Optional[Session]:
        session = self._by_connection.get(connection.id)
        self._drop(session)
        if session is not None:
            logger.info(f"Unregistered {session.nickname} from connection {connection.id}")
        return session

    def is_nickname_taken(self, nickname: str) -> bool:
        return nickname in self._by_nickname

    def sessions(self) -> List[Session]:
        return list(self._by_connection.values())

    def _drop(self, session: Optional[Session]) -> None:
        if session is None:
            return
        self._by_connection.pop(session.connection.id, None)
        if self._by_nickname.get(session.nickname) is session:
            del self._by_nickname[session.nickname]

    def __len__(self) -> int:
        return len(self._by_connection)
