from fastapi import APIRouter, Request
from constants import SERVER_NAME
from schemas.server import CheckNicknameRequest, CheckNicknameResponse, HealthResponse, ServerInfoResponse
from logging_config import get_logger

logger = get_logger(__name__)

server_router = APIRouter(tags=["server"])


@server_router.get("/", response_model=ServerInfoResponse)
async def server_info(request: Request):
    router = request.app.state.router
    return ServerInfoResponse(
        name=SERVER_NAME,
        status="running",
        connections=router.notifier.connection_count,
        rooms=len(router.rooms),
    )


@server_router.get("/api/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")


@server_router.post("/api/check-nickname", response_model=CheckNicknameResponse)
async def check_nickname(body: CheckNicknameRequest, request: Request):
    """Tell a client whether ``nickname`` is free among the connected players."""
    taken = request.app.state.router.sessions.is_nickname_taken(body.nickname)
    logger.debug(f"Nickname check for {body.nickname}: taken={taken}")
    return CheckNicknameResponse(is_unique=not taken)
