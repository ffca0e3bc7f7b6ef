"""
Unit tests for the access-token denylist stores.

The Redis store runs against fakeredis so nothing leaves the process.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from freezegun import freeze_time

from authapi.infra.redis.redis_denylist_store import RedisTokenDenylistStore
from authapi.services._shared.ports import InMemoryDenylistStore


def _now() -> datetime:
    return datetime.now(UTC)


@pytest.fixture
def fake_redis():
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture(params=["memory", "redis"])
def store(request, fake_redis):
    if request.param == "redis":
        return RedisTokenDenylistStore(fake_redis)
    return InMemoryDenylistStore()


def test_revoked_jti_is_reported(store):
    assert store.is_revoked("jti-1") is False
    store.revoke_jti(jti="jti-1", expires_at=_now() + timedelta(minutes=5))
    assert store.is_revoked("jti-1") is True
    assert store.is_revoked("jti-2") is False


def test_revoke_is_idempotent(store):
    exp = _now() + timedelta(minutes=5)
    store.revoke_jti(jti="jti-1", expires_at=exp)
    store.revoke_jti(jti="jti-1", expires_at=exp)
    assert store.is_revoked("jti-1") is True


def test_already_expired_tokens_are_not_kept(store):
    store.revoke_jti(jti="old", expires_at=_now() - timedelta(seconds=1))
    assert store.is_revoked("old") is False


def test_redis_entry_ttl_follows_token_expiry(fake_redis):
    store = RedisTokenDenylistStore(fake_redis)
    store.revoke_jti(jti="jti-ttl", expires_at=_now() + timedelta(seconds=120))
    ttl = fake_redis.ttl("deny:at:jti-ttl")
    assert 0 < ttl <= 120
    assert store.backend == "redis"


def test_memory_entry_lapses_with_the_token():
    store = InMemoryDenylistStore()
    with freeze_time("2030-01-01 12:00:00") as frozen:
        store.revoke_jti(jti="jti-lapse", expires_at=_now() + timedelta(seconds=60))
        assert store.is_revoked("jti-lapse") is True
        frozen.tick(timedelta(seconds=61))
        assert store.is_revoked("jti-lapse") is False
