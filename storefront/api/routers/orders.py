# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.api import http_error
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import OrderCreate, OrderOut
from storefront.services.order_service import OrderService
from storefront.services.user_service import UserService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


def require_admin(user_id: int, db: Session):
    try:
        UserService(db).require_admin(user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    """
    Checkout: turns the caller's whole cart into a PENDING order.
    """
    svc = get_service(db)
    try:
        return svc.create_order(user_id, payload.shipping_address, payload.phone_number)
    except StorefrontError as e:
        raise http_error(e)


@router.get("/mine", response_model=List[OrderOut])
def list_my_orders(
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_user_orders(user_id)
    except StorefrontError as e:
        raise http_error(e)


@router.get("", response_model=List[OrderOut])
def list_all_orders(
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    require_admin(user_id, db)
    return get_service(db).get_all_orders()


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StorefrontError as e:
        raise http_error(e)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    status: str = Query(...),
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    require_admin(user_id, db)
    svc = get_service(db)
    try:
        return svc.update_status(order_id, status)
    except StorefrontError as e:
        raise http_error(e)
