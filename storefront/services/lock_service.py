import uuid
from contextlib import contextmanager

import redis
from tenacity import retry, retry_if_result, stop_after_delay, wait_fixed, RetryError

from storefront.domain.errors import CartBusy
from storefront.utils.retry import redis_retry
from storefront.utils.settings import CART_LOCK_TTL_SECONDS, CART_LOCK_WAIT_SECONDS, REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL
#wiec zwalniamy tylko wlasny lock (token), nigdy cudzy po wygasnieciu TTL


class LockService:
    """
    -blokada zapisu koszyka per user (add/update/remove nie gubia sobie zmian)
    -zwalnianie locka tylko przez wlasciciela tokenu
    -stock NIE jest tu blokowany, tym zajmuje sie baza
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        ttl: int = CART_LOCK_TTL_SECONDS,
        wait: float = CART_LOCK_WAIT_SECONDS,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl
        self.wait = wait

    @staticmethod
    def cart_key(user_id: int) -> str:
        return f"cart:user:{user_id}:lock"

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        #SET cart:user:1:lock "<token>" NX EX 10
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def _wait_for(self, key: str, token: str, ttl: int, wait: float) -> bool:
        poll = retry(
            stop=stop_after_delay(wait),
            wait=wait_fixed(0.05),
            retry=retry_if_result(lambda acquired: not acquired),
        )
        try:
            return poll(self.acquire)(key, token, ttl)
        except RetryError:
            return False

    @contextmanager
    def cart_lock(self, user_id: int, ttl: int | None = None, wait: float | None = None):
        key = self.cart_key(user_id)
        token = uuid.uuid4().hex
        ttl = self.ttl if ttl is None else ttl
        wait = self.wait if wait is None else wait

        if not self._wait_for(key, token, ttl, wait):
            logger.warning("Lock zajety", key=key, wait=wait)
            raise CartBusy()

        try:
            yield
        finally:
            self._release_quietly(key, token)

    def _release_quietly(self, key: str, token: str) -> None:
        # lock i tak wygasnie po TTL
        try:
            released = self.release(key, token)
        except redis.RedisError as e:
            logger.warning("Nie udalo sie zwolnic locka", key=key, error=repr(e))
            return
        if not released:
            logger.warning("Lock wygasl przed zwolnieniem", key=key)
