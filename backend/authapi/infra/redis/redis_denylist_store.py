from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from authapi.services._shared.ports import TokenDenylistStore


class RedisTokenDenylistStore(TokenDenylistStore):
    """
    Denylist for **access tokens** by jti, shared by every worker.

    Each entry is a small marker whose TTL matches the token's remaining lifetime.
    """

    backend = "redis"

    def __init__(self, r: redis.Redis):
        self.r = r

    @staticmethod
    def _k(jti: str) -> str:
        return f"deny:at:{jti}"

    def is_revoked(self, jti: str) -> bool:
        return cast(int, self.r.exists(self._k(jti))) == 1

    def revoke_jti(self, *, jti: str, expires_at: datetime) -> None:
        now = datetime.now(UTC).timestamp()
        ttl = int(expires_at.timestamp() - now)
        if ttl <= 0:
            # already expired; flask-jwt-extended rejects it on its own
            return
        self.r.set(self._k(jti), "1", ex=ttl)
