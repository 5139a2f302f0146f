# storefront/domain/errors.py
"""
Business errors raised by the services.

The routers translate them into HTTP responses (see storefront.api.http_error),
none of them should reach the client as a 500.
"""


class StorefrontError(Exception):
    """Base class for every business rule failure."""


class ValidationError(StorefrontError, ValueError):
    """Malformed or missing input: address, phone, status, quantity or size out of range."""


class NotFoundError(StorefrontError, LookupError):
    """Missing user, product, cart line or order."""


class InsufficientStockError(StorefrontError):
    """Requested quantity exceeds the stock available right now."""

    def __init__(self, product_id: int, product_name: str | None, available: int, requested: int, message: str | None = None):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        label = f"'{product_name}'" if product_name else f"{product_id}"
        super().__init__(
            message
            or f"Insufficient stock for product {label}. Available: {available}, Requested: {requested}"
        )


class EmptyCartError(StorefrontError):
    """Checkout attempted with no cart lines."""


class ConflictError(StorefrontError):
    """Concurrent modification could not be resolved (order number retries exhausted, lock timeout)."""
