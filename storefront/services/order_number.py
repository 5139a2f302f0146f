# storefront/services/order_number.py
import secrets
import string
from datetime import datetime, timezone
from typing import Callable

ALPHABET = string.ascii_uppercase + string.digits
BASE_SUFFIX_LENGTH = 4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderNumberGenerator:
    """
    ORD-<YYYYMMDD>-<suffix>, e.g. ORD-20251128-A3F9.

    Uniqueness is enforced by the orders.order_number constraint, the caller
    retries with the next attempt number. From the third attempt on the suffix
    gets 2 characters longer per attempt.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    @staticmethod
    def suffix_length(attempt: int) -> int:
        return BASE_SUFFIX_LENGTH + 2 * max(0, attempt - 2)

    def generate(self, attempt: int = 1) -> str:
        date = self.clock().astimezone(timezone.utc).strftime("%Y%m%d")
        suffix = "".join(secrets.choice(ALPHABET) for _ in range(self.suffix_length(attempt)))
        return f"ORD-{date}-{suffix}"
