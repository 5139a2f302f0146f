# storefront/api/__init__.py
from fastapi import HTTPException

from storefront.domain.errors import (
    StorefrontError,
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    EmptyCartError,
    ConflictError,
)

_STATUS_CODES = {
    ValidationError: 400,
    EmptyCartError: 400,
    NotFoundError: 404,
    InsufficientStockError: 409,
    ConflictError: 409,
}


def http_error(e: StorefrontError) -> HTTPException:
    """Maps a business error to the HTTP status the routers answer with."""
    for exc_type, status_code in _STATUS_CODES.items():
        if isinstance(e, exc_type):
            return HTTPException(status_code=status_code, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
