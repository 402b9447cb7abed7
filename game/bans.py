from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from game.models import BanRecord, utcnow
from logging_config import get_logger

logger = get_logger(__name__)


def ban_until(now: datetime, duration_hours: float) -> Optional[datetime]:
    """Absolute expiry for a ban; a non-positive duration means forever."""
    if not duration_hours or duration_hours <= 0:
        return None
    return now + timedelta(hours=duration_hours)


class BanLedger:
    """In-process ban records keyed by nickname.

    Expired records are only dropped when someone asks about them; there is
    no background sweep.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._records: Dict[str, BanRecord] = {}

    def is_banned(self, nickname: str, now: Optional[datetime] = None) -> Optional[BanRecord]:
        record = self._records.get(nickname)
        if record is None:
            return None
        now = now or self._clock()
        if record.is_active(now):
            return record
        logger.info(f"Ban for {nickname} expired at {record.until.isoformat()}, purging")
        del self._records[nickname]
        return None

    def ban(self, nickname: str, reason: str, duration_hours: float = 0, now: Optional[datetime] = None) -> BanRecord:
        now = now or self._clock()
        record = BanRecord(nickname=nickname, reason=reason, until=ban_until(now, duration_hours))
        self._records[nickname] = record
        logger.info(f"Banned {nickname}: {record.describe()}")
        return record

    def unban(self, nickname: str) -> bool:
        return self._records.pop(nickname, None) is not None

    def __contains__(self, nickname: str) -> bool:
        # raw membership, expired records included
        return nickname in self._records
