import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# "memory" keeps bans in-process, "redis" stores them under REDIS_BAN_KEY
BAN_BACKEND = os.getenv("BAN_BACKEND", "memory")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

ADMIN_NICKNAMES = frozenset(n.strip() for n in os.getenv("ADMIN_NICKNAMES", "Anubis").split(",") if n.strip())
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", None)

DEFAULT_BOT_AVATAR = os.getenv("DEFAULT_BOT_AVATAR", "🤖")
DEFAULT_BAN_REASON = os.getenv("DEFAULT_BAN_REASON", "Rule violation")

SERVER_NAME = "Mafia Game Server"
