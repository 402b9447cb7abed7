import asyncio
import json
import uuid
from typing import Optional
from fastapi import WebSocket
from logging_config import get_logger

logger = get_logger(__name__)

_STOP = object()


class ClientConnection:
    """A WebSocket with a non-blocking ``send``.

    Messages go onto a queue drained by a writer task, so callers never await
    the network and each client sees its messages in the order they were queued.
    """

    def __init__(self, websocket: WebSocket):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    def start(self):
        self._writer = asyncio.create_task(self._drain())

    def send(self, message: dict):
        if self._closed:
            return
        self._outbox.put_nowait(message)

    def close(self, code: int = 1008, reason: str = ""):
        """Flush what is queued, then close the socket from the server side."""
        if self._closed:
            return
        self._closed = True
        self._outbox.put_nowait(("close", code, reason))

    async def shutdown(self):
        self._closed = True
        self._outbox.put_nowait(_STOP)
        if self._writer is not None:
            try:
                await self._writer
            except Exception as e:
                logger.debug(f"Writer for connection {self.id} ended with error: {e}")

    async def _drain(self):
        while True:
            item = await self._outbox.get()
            if item is _STOP:
                return
            if isinstance(item, tuple):
                _, code, reason = item
                try:
                    await self.websocket.close(code=code, reason=reason)
                    logger.info(f"Closed connection {self.id} (code {code})")
                except Exception as e:
                    logger.debug(f"Error closing WebSocket {self.id}: {e}")
                return
            try:
                await self.websocket.send_text(json.dumps(item))
            except Exception as e:
                # dropped silently, the receive loop notices the disconnect
                logger.debug(f"Dropping {item.get('type')} for connection {self.id}: {e}")
                self._closed = True
                return
