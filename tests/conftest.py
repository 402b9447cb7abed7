import os
import random
import sys
import uuid

import pytest

# Ensure the project root (containing the flat modules) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from game.admin import AdminPolicy
from game.bans import BanLedger
from game.models import Player
from game.notifier import Notifier
from game.rooms import RoomStore
from game.router import MessageRouter
from game.sessions import SessionRegistry

ADMIN = "Anubis"


class FakeConnection:
    """Records everything the server queues for one client."""

    def __init__(self):
        self.id = uuid.uuid4().hex
        self.sent = []
        self.closed = False

    @property
    def is_open(self):
        return not self.closed

    def send(self, message):
        self.sent.append(message)

    def close(self, code=1008, reason=""):
        self.closed = True

    def of_type(self, msg_type):
        return [m for m in self.sent if m["type"] == msg_type]

    def types(self):
        return [m["type"] for m in self.sent]

    def last(self, msg_type=None):
        messages = self.of_type(msg_type) if msg_type else self.sent
        return messages[-1] if messages else None

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def bans():
    return BanLedger()


@pytest.fixture()
def sessions(bans):
    return SessionRegistry(bans)


@pytest.fixture()
def rooms():
    return RoomStore(rng=random.Random(1234))


@pytest.fixture()
def router(sessions, bans, rooms):
    return MessageRouter(
        sessions=sessions,
        bans=bans,
        rooms=rooms,
        notifier=Notifier(sessions, rooms),
        admin_policy=AdminPolicy([ADMIN]),
        rng=random.Random(99),
    )


@pytest.fixture()
def connect(router):
    """Open a fake connection and log it in under ``nickname``."""

    def _connect(nickname=None, **user):
        connection = FakeConnection()
        router.connect(connection)
        if nickname is not None:
            router.handle(connection, {"type": "user_connected", "user": {"nickname": nickname, **user}})
            connection.clear()
        return connection

    return _connect


@pytest.fixture()
def create_room(router):
    def _create(connection, name="Night club", min_players=4, max_players=8, roles=()):
        router.handle(connection, {
            "type": "create_room",
            "name": name,
            "minPlayers": min_players,
            "maxPlayers": max_players,
            "roles": list(roles),
        })
        room = connection.last("room_created")["room"]
        connection.clear()
        return room["id"]

    return _create


def make_players(count, prefix="p"):
    return [Player(nickname=f"{prefix}{i}") for i in range(count)]
