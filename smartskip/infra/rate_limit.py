import functools
from typing import Callable

from fastapi import HTTPException, Request

from smartskip.config.settings import config
from smartskip.i18n import i18n
from smartskip.infra.redis import get_redis
from smartskip.utils.locale import get_locale

# Fixed window counter; returns {allowed, retry_after}
WINDOW_SCRIPT = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('EXPIRE', KEYS[1], tonumber(ARGV[2]))
end
if current > tonumber(ARGV[1]) then
    return {0, redis.call('TTL', KEYS[1])}
end
return {1, 0}
"""


class RedisRateLimiter:
    """Per-client request budget for one bucket of endpoints.

    Acquisition and analysis draw from separate buckets so that a burst of
    downloads does not starve the much slower analysis calls.
    """

    def __init__(self, bucket: str, limit: Callable[[], int]):
        self.bucket = bucket
        self.limit = limit

    def key_for(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"smartskip:rate:{self.bucket}:{client_ip}"

    async def __call__(self, request: Request):
        if not config.rate_limit.enabled:
            return True

        redis = get_redis()
        if not redis:
            return True

        try:
            allowed, ttl = await redis.eval(
                WINDOW_SCRIPT,
                1,
                self.key_for(request),
                self.limit(),
                config.rate_limit.window_seconds,
            )
        except Exception:
            # Best effort when redis misbehaves
            return True

        if not allowed:
            locale = get_locale(request.headers.get("accept-language"))
            _ = functools.partial(i18n.get, locale=locale)
            raise HTTPException(
                status_code=429,
                detail=_("error.rate_limit", seconds=ttl),
                headers={"Retry-After": str(ttl)},
            )

        return True


acquire_limiter = RedisRateLimiter("acquire", lambda: config.rate_limit.max_requests)
analysis_limiter = RedisRateLimiter("analysis", lambda: config.rate_limit.analysis_max_requests)
