# storefront/api/routers/cart.py
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api import http_error
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import AddToCartIn, CartItemOut, CartOut
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def list_cart(
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    items = svc.list_items(user_id)
    subtotal = sum(
        (i.unit_price * i.quantity for i in items if i.unit_price is not None),
        Decimal("0.00"),
    )
    return CartOut(
        user_id=user_id,
        items=[CartItemOut.model_validate(i) for i in items],
        subtotal=subtotal,
    )


@router.post("", response_model=CartItemOut)
def add_to_cart(
    payload: AddToCartIn,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(
            user_id=user_id,
            product_id=payload.product_id,
            size=payload.size,
            quantity=payload.quantity,
        )
    except StorefrontError as e:
        raise http_error(e)


@router.delete("/{item_id}", status_code=204)
def remove_from_cart(
    item_id: int,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        svc.remove_item(user_id, item_id)
    except StorefrontError as e:
        raise http_error(e)
    return Response(status_code=204)


@router.put("/{item_id}/quantity", response_model=CartItemOut)
def update_quantity(
    item_id: int,
    quantity: int = Query(...),
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        updated = svc.update_quantity(user_id, item_id, quantity)
    except StorefrontError as e:
        raise http_error(e)

    if updated is None:
        return Response(status_code=204)
    return updated
