import uuid
from contextlib import contextmanager

import redis

from bakery.domain.errors import ResourceBusy
from bakery.utils.logging import get_logger
from bakery.utils.retry import poll_until_true, redis_retry
from bakery.utils.settings import CART_LOCK_ATTEMPTS, CART_LOCK_TTL_SECONDS, REDIS_URL

logger = get_logger(__name__)

#compare-and-delete in one lua call, redis runs scripts atomically so nobody
#can slip in between GET and DEL and we never delete a lock someone else took over
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def cart_owner_key(user_id: int | None, session_id: str | None) -> str:
    if user_id is not None:
        return f"cart:owner:user:{user_id}:lock"
    return f"cart:owner:session:{session_id}:lock"


class LockService:
    """
    Short-lived advisory locks in redis.
    -acquire: SET key token NX EX ttl
    -release: compare token and delete (lua)
    -hold: context manager polling until acquired
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.debug(f"Acquire lock {key}")
        #SET cart:owner:user:7:lock "<token>" NX EX 10
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,  # only when nobody holds it
                ex=ttl,  # expires by itself if the holder dies
            )
        )

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.debug(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def hold(self, key: str, ttl: int = CART_LOCK_TTL_SECONDS, attempts: int = CART_LOCK_ATTEMPTS):
        token = uuid.uuid4().hex
        acquired = poll_until_true(attempts)(self.acquire)(key, token, ttl)

        if not acquired:
            logger.warning(f"Could not acquire {key} after {attempts} attempts")
            raise ResourceBusy(details={"lock": key})

        try:
            yield token
        finally:
            self.release(key, token)
