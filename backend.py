import redis
from datetime import datetime
from typing import Callable, Optional
from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD
from redis_keys import REDIS_BAN_KEY
from game.bans import ban_until
from game.models import BanRecord, utcnow
from logging_config import get_logger

logger = get_logger(__name__)

FOREVER = "forever"


def create_redis_client() -> redis.Redis:
    try:
        client = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, decode_responses=True)
        # Test connection
        client.ping()
        logger.info(f"Redis client connected successfully to {REDIS_HOST}:{REDIS_PORT}")
        return client
    except Exception as e:
        logger.error(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}: {e}", exc_info=True)
        raise


class RedisBanLedger:
    """Ban records stored as Redis hashes, one key per nickname.

    Same contract as ``game.bans.BanLedger``: expiry is evaluated against the
    caller's clock and stale keys are deleted on read. Timed bans also get a
    Redis TTL so forgotten keys do not pile up.
    """

    def __init__(self, redis_client: redis.Redis, clock: Callable[[], datetime] = utcnow):
        self.redis_client = redis_client
        self._clock = clock
        logger.info("Initializing RedisBanLedger")

    def _key(self, nickname: str) -> str:
        return REDIS_BAN_KEY.format(nickname=nickname)

    def is_banned(self, nickname: str, now: Optional[datetime] = None) -> Optional[BanRecord]:
        key = self._key(nickname)
        data = self.redis_client.hgetall(key)
        if not data:
            return None
        until_raw = data.get("until", FOREVER)
        until = None if until_raw == FOREVER else datetime.fromisoformat(until_raw)
        record = BanRecord(nickname=nickname, reason=data.get("reason", ""), until=until)
        if record.is_active(now or self._clock()):
            return record
        self.redis_client.delete(key)
        logger.info(f"Ban for {nickname} expired at {until_raw}, purged {key}")
        return None

    def ban(self, nickname: str, reason: str, duration_hours: float = 0, now: Optional[datetime] = None) -> BanRecord:
        now = now or self._clock()
        record = BanRecord(nickname=nickname, reason=reason, until=ban_until(now, duration_hours))
        key = self._key(nickname)
        self.redis_client.delete(key)
        self.redis_client.hset(key, mapping={
            "until": FOREVER if record.until is None else record.until.isoformat(),
            "reason": reason,
            "banned_at": now.isoformat(),
        })
        if record.until is not None:
            self.redis_client.expireat(key, record.until)
        logger.info(f"Banned {nickname} in Redis ({key}): {record.describe()}")
        return record

    def unban(self, nickname: str) -> bool:
        return bool(self.redis_client.delete(self._key(nickname)))

    def __contains__(self, nickname: str) -> bool:
        return bool(self.redis_client.exists(self._key(nickname)))
