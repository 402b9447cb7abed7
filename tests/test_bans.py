from datetime import datetime, timedelta, timezone

import fakeredis
import pytest

from backend import RedisBanLedger
from game.bans import BanLedger

NOW = datetime(2031, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "redis"])
def ledger(request):
    if request.param == "memory":
        return BanLedger(clock=lambda: NOW)
    return RedisBanLedger(fakeredis.FakeRedis(decode_responses=True), clock=lambda: NOW)


def test_zero_duration_is_permanent(ledger):
    record = ledger.ban("mallory", "cheating", 0)

    assert record.until is None
    assert record.is_permanent
    far_future = NOW + timedelta(days=3650)
    assert ledger.is_banned("mallory", far_future).reason == "cheating"


def test_negative_duration_is_permanent(ledger):
    assert ledger.ban("mallory", "spam", -5).until is None


def test_timed_ban_active_until_expiry(ledger):
    record = ledger.ban("mallory", "spam", 1)

    assert record.until == NOW + timedelta(hours=1)
    assert ledger.is_banned("mallory", NOW + timedelta(minutes=59)) is not None


def test_expired_ban_is_purged_on_read(ledger):
    ledger.ban("mallory", "spam", 1)

    assert ledger.is_banned("mallory", NOW + timedelta(hours=1, seconds=1)) is None
    assert "mallory" not in ledger
    # still gone even when asked with an earlier clock
    assert ledger.is_banned("mallory", NOW) is None


def test_ban_overwrites_previous_record(ledger):
    ledger.ban("mallory", "spam", 1)
    ledger.ban("mallory", "cheating", 0)

    record = ledger.is_banned("mallory", NOW + timedelta(hours=5))
    assert record.reason == "cheating"
    assert record.until is None


def test_unknown_nickname_is_not_banned(ledger):
    assert ledger.is_banned("alice") is None


def test_unban(ledger):
    ledger.ban("mallory", "spam", 0)
    assert ledger.unban("mallory")
    assert ledger.is_banned("mallory") is None
    assert not ledger.unban("mallory")


def test_redis_ledger_sets_key_expiry_for_timed_bans():
    client = fakeredis.FakeRedis(decode_responses=True)
    ledger = RedisBanLedger(client, clock=lambda: NOW)

    ledger.ban("timed", "spam", 2)
    ledger.ban("forever", "spam", 0)

    assert client.hget("ban:timed", "until") == (NOW + timedelta(hours=2)).isoformat()
    assert client.ttl("ban:timed") > 0
    assert client.hget("ban:forever", "until") == "forever"
    assert client.ttl("ban:forever") == -1
