from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple
import uuid


class RoleKind(str, Enum):
    MAFIA = "mafia"
    SHERIFF = "sheriff"
    DOCTOR = "doctor"
    MANIAC = "maniac"
    LOVER = "lover"
    CIVILIAN = "civilian"


# Roles a room creator may opt into; mafia, sheriff and civilians are always dealt
OPTIONAL_ROLES = (RoleKind.DOCTOR, RoleKind.MANIAC, RoleKind.LOVER)


class RoomStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Player:
    nickname: str
    avatar: str = ""
    is_bot: bool = False

    def to_dict(self) -> dict:
        return {"nickname": self.nickname, "avatar": self.avatar, "isBot": self.is_bot}


@dataclass
class Session:
    """A connection bound to a player identity."""

    connection: Any
    player: Player
    is_admin: bool = False
    connected_at: datetime = field(default_factory=utcnow)

    @property
    def nickname(self) -> str:
        return self.player.nickname


@dataclass
class Room:
    name: str
    creator: Player
    min_players: int
    max_players: int
    requested_roles: Tuple[RoleKind, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    players: List[Player] = field(default_factory=list)
    status: RoomStatus = RoomStatus.WAITING
    created_at: datetime = field(default_factory=utcnow)

    def has_player(self, nickname: str) -> bool:
        return self.find_player(nickname) is not None

    def find_player(self, nickname: str) -> Optional[Player]:
        for player in self.players:
            if player.nickname == nickname:
                return player
        return None

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "creator": self.creator.to_dict(),
            "players": [p.to_dict() for p in self.players],
            "minPlayers": self.min_players,
            "maxPlayers": self.max_players,
            "roles": [r.value for r in self.requested_roles],
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class BanRecord:
    nickname: str
    reason: str
    until: Optional[datetime] = None  # None means forever

    @property
    def is_permanent(self) -> bool:
        return self.until is None

    def is_active(self, now: datetime) -> bool:
        return self.until is None or now < self.until

    def describe(self) -> str:
        if self.until is None:
            return f"{self.reason} (forever)"
        return f"{self.reason} (until {self.until.isoformat()})"
