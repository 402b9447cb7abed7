from pydantic import BaseModel, ConfigDict, Field


class ServerInfoResponse(BaseModel):
    name: str
    status: str
    connections: int
    rooms: int


class HealthResponse(BaseModel):
    status: str


class CheckNicknameRequest(BaseModel):
    nickname: str = Field(min_length=1)


class CheckNicknameResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_unique: bool = Field(serialization_alias="isUnique")
