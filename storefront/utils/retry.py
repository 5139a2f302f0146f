# storefront/utils/retry.py
from tenacity import (
    retry,
    Retrying,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
    retry_if_exception_type,
    retry_if_result,
)
import redis


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def order_number_retry(attempts: int, exc_type: type[Exception]) -> Retrying:
    # a collision just needs a fresh number, no backoff
    return Retrying(
        reraise=True,
        stop=stop_after_attempt(attempts),
        retry=retry_if_exception_type(exc_type),
    )


def lock_poll(timeout: float, interval: float = 0.05) -> Retrying:
    """Polls an acquire function until it returns True or the timeout passes."""
    return Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda acquired: not acquired),
        retry_error_callback=lambda state: False,
    )
