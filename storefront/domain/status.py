# storefront/domain/status.py
from enum import Enum

from storefront.domain.errors import ValidationError


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


ALLOWED_STATUSES = frozenset(s.value for s in OrderStatus)


def parse_status(raw: str | None) -> OrderStatus:
    """Normalizes a user supplied status (trim + upper case) or raises ValidationError."""
    if raw is None or not raw.strip():
        raise ValidationError("Status is required")

    normalized = raw.strip().upper()
    if normalized not in ALLOWED_STATUSES:
        raise ValidationError(
            f"Invalid status: {raw}. Allowed: {', '.join(s.value for s in OrderStatus)}"
        )
    return OrderStatus(normalized)
