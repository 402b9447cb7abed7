from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional

from game.models import RoleKind

MAX_BAN_HOURS = 24 * 365 * 100


class InboundMessage(BaseModel):
    # clients send camelCase; unknown keys (including "type") are ignored
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserPayload(InboundMessage):
    nickname: str = Field(min_length=1, max_length=32)
    avatar: str = ""
    admin_token: Optional[str] = Field(None, alias="adminToken")


class UserConnectedMessage(InboundMessage):
    user: UserPayload


class CreateRoomMessage(InboundMessage):
    name: str = Field(min_length=1, max_length=64)
    min_players: int = Field(4, alias="minPlayers", ge=2)
    max_players: int = Field(12, alias="maxPlayers", ge=2)
    roles: List[RoleKind] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_capacity(self):
        if self.max_players < self.min_players:
            raise ValueError("maxPlayers must not be lower than minPlayers")
        return self


class JoinRoomMessage(InboundMessage):
    room_id: str = Field(alias="roomId")


class LeaveRoomMessage(InboundMessage):
    room_id: str = Field(alias="roomId")


class ChatMessage(InboundMessage):
    room_id: str = Field(alias="roomId")
    message: str = Field(min_length=1, max_length=1000)


class AddBotMessage(InboundMessage):
    bot_name: Optional[str] = Field(None, alias="botName", max_length=32)


class KickPlayerMessage(InboundMessage):
    player: str = Field(min_length=1)
    reason: Optional[str] = None


class BanPlayerMessage(InboundMessage):
    player: str = Field(min_length=1)
    reason: Optional[str] = None
    # hours; empty or <= 0 is permanent
    duration: Optional[float] = Field(None, allow_inf_nan=False, le=MAX_BAN_HOURS)


class EmptyMessage(InboundMessage):
    pass
