from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
from routers.server import server_router
from connections import ClientConnection
from constants import ADMIN_NICKNAMES, ADMIN_TOKEN, BAN_BACKEND, CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from game.admin import AdminPolicy
from game.bans import BanLedger
from game.notifier import Notifier
from game.rooms import RoomStore
from game.router import MessageRouter
from game.sessions import SessionRegistry
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def build_ban_ledger(backend: str = BAN_BACKEND):
    if backend == "redis":
        from backend import RedisBanLedger, create_redis_client
        return RedisBanLedger(create_redis_client())
    if backend != "memory":
        raise ValueError(f"Unknown BAN_BACKEND: {backend}")
    return BanLedger()


def build_router(bans=None, admin_policy: Optional[AdminPolicy] = None) -> MessageRouter:
    """Wire the lobby components together; every store is owned by the returned router."""
    bans = bans if bans is not None else build_ban_ledger()
    sessions = SessionRegistry(bans)
    rooms = RoomStore()
    return MessageRouter(
        sessions=sessions,
        bans=bans,
        rooms=rooms,
        notifier=Notifier(sessions, rooms),
        admin_policy=admin_policy or AdminPolicy(ADMIN_NICKNAMES, ADMIN_TOKEN),
    )


def create_app(router: Optional[MessageRouter] = None) -> FastAPI:
    app = FastAPI(title="Mafia Game Server")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.router = router or build_router()
    app.include_router(server_router)
    app.add_api_websocket_route("/ws", websocket_endpoint)
    # older clients connect to the bare host
    app.add_api_websocket_route("/", websocket_endpoint)

    logger.info("FastAPI application initialized")
    return app


async def websocket_endpoint(websocket: WebSocket):
    """Lobby socket: one JSON object per frame, dispatched by its ``type`` field."""
    router: MessageRouter = websocket.app.state.router
    await websocket.accept()

    connection = ClientConnection(websocket)
    connection.start()
    router.connect(connection)
    message_count = 0
    try:
        while True:
            data = await websocket.receive_text()
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection.id}")
            router.dispatch(connection, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected normally for connection {connection.id}")
    except Exception as e:
        logger.error(f"Error receiving message from connection {connection.id}: {e}", exc_info=True)
    finally:
        router.disconnect(connection)
        await connection.shutdown()


app = create_app()
