# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from sqlalchemy.exc import IntegrityError, OperationalError
import requests
import redis

from storefront.utils.settings import CHECKOUT_MAX_ATTEMPTS


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def conflict_retry():
    #unikalny indeks przegral wyscig - czytamy jeszcze raz
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.01, min=0.01, max=0.1),
        retry=retry_if_exception_type(IntegrityError),
    )


def transaction_retry(*extra: type[BaseException]):
    #serialization failure / deadlock / database is locked + ewentualne wyjatki wewnetrzne
    return retry(
        reraise=True,
        stop=stop_after_attempt(CHECKOUT_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception_type((OperationalError, *extra)),
    )
