# storefront/services/order_service.py
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    EmptyCartError,
    ConflictError,
)
from storefront.domain.status import OrderStatus, parse_status
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.lock_service import LockService, get_lock_service
from storefront.services.order_number import OrderNumberGenerator, utc_now
from storefront.utils.retry import order_number_retry
from storefront.utils.settings import ORDER_NUMBER_MAX_ATTEMPTS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderNumberTaken(Exception):
    """Raised internally when the unique order_number constraint rejects a candidate."""


@dataclass(frozen=True)
class LineSnapshot:
    product_id: int
    product_name: str
    size: int
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class OrderService:
    """
    Orders: checkout (cart -> order), order history and status updates.
    Separate from CartService, the only thing they share is the cart table.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService | None = None,
        number_generator: OrderNumberGenerator | None = None,
        clock: Callable[[], datetime] = utc_now,
        max_number_attempts: int = ORDER_NUMBER_MAX_ATTEMPTS,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)
        self.lock_service = lock_service or get_lock_service()
        self.clock = clock
        self.number_generator = number_generator or OrderNumberGenerator(clock)
        self.max_number_attempts = max_number_attempts

    def create_order(self, user_id: int, shipping_address: str, phone_number: str) -> OrderModel:
        """
        Use case: checkout.

        1. validates address and phone, resolves the user
        2. locks the user and loads the cart snapshot (must not be empty)
        3. locks the products, re-reads each one, checks and decrements stock
        4. persists the order with price snapshots under a unique number
        5. deletes the ordered cart lines, ConflictError if any of them changed meanwhile

        Everything from the cart read to the cart clear is one transaction:
        any failure rolls back stock, order and cart together.
        """
        if shipping_address is None or not shipping_address.strip():
            raise ValidationError("Shipping address is required")
        if phone_number is None or not phone_number.strip():
            raise ValidationError("Phone number is required")

        try:
            if not self.users.get_user(user_id):
                raise NotFoundError(f"User not found with id: {user_id}")

            # one checkout per user at a time, the cart is read under that lock
            with self.lock_service.hold_user(user_id):
                cart_items = self.carts.get_cart_items(user_id, fresh=True)
                if not cart_items:
                    raise EmptyCartError("Cannot create order from empty cart")

                ordered = {i.id: i.quantity for i in cart_items}
                logger.info(f"Creating order for user {user_id}, items count: {len(cart_items)}")

                with self.lock_service.hold(i.product_id for i in cart_items):
                    # rollback must happen before the locks are released
                    try:
                        lines = self._reserve_stock(cart_items)
                        order = self._persist_order(
                            user_id, shipping_address.strip(), phone_number.strip(), lines
                        )
                        cleared = self.carts.delete_checked_out(user_id, ordered)
                        if cleared != len(ordered):
                            logger.warning(
                                f"Cart of user {user_id} changed during checkout: "
                                f"{cleared} of {len(ordered)} lines matched"
                            )
                            raise ConflictError("Cart changed during checkout, try again")
                        self.repo.commit()
                    except Exception:
                        self.repo.rollback()
                        raise
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number} created for user {user_id}: "
            f"{len(lines)} lines, total {order.total}, {cleared} cart items cleared"
        )
        return order

    def _reserve_stock(self, cart_items) -> list[LineSnapshot]:
        lines: list[LineSnapshot] = []

        for item in cart_items:
            # fresh row by id, never the product the cart line holds
            product = self.products.get_product(item.product_id, fresh=True)
            if not product:
                raise NotFoundError(f"Product not found: {item.product_id}")

            logger.info(
                f"Processing cart item {item.id} - product {product.id} ({product.name}), "
                f"size {item.size}, quantity {item.quantity}, stock {product.stock_quantity}"
            )

            if product.stock_quantity < item.quantity:
                logger.warning(
                    f"Product {product.id} out of stock: available {product.stock_quantity}, "
                    f"requested {item.quantity}"
                )
                raise InsufficientStockError(
                    product.id,
                    product.name,
                    product.stock_quantity,
                    item.quantity,
                    message=(
                        f"Product '{product.name}' is out of stock. Available: "
                        f"{product.stock_quantity}, Requested: {item.quantity}"
                    ),
                )

            if self.products.decrement_stock(product.id, item.quantity) == 0:
                # stock moved between the read and the update
                current = self.products.get_product(product.id, fresh=True)
                available = current.stock_quantity if current else 0
                raise InsufficientStockError(product.id, product.name, available, item.quantity)

            lines.append(
                LineSnapshot(
                    product_id=product.id,
                    product_name=product.name,
                    size=item.size,
                    quantity=item.quantity,
                    unit_price=Decimal(product.price),
                )
            )

        return lines

    def _persist_order(
        self,
        user_id: int,
        shipping_address: str,
        phone_number: str,
        lines: list[LineSnapshot],
    ) -> OrderModel:
        total = sum((line.subtotal for line in lines), Decimal("0.00"))
        now = self.clock()

        try:
            for attempt in order_number_retry(self.max_number_attempts, OrderNumberTaken):
                with attempt:
                    number = self.number_generator.generate(attempt.retry_state.attempt_number)
                    order = OrderModel(
                        user_id=user_id,
                        order_number=number,
                        status=OrderStatus.PENDING.value,
                        total=total,
                        shipping_address=shipping_address,
                        phone_number=phone_number,
                        created_at=now,
                        updated_at=now,
                        items=[
                            OrderItemModel(
                                product_id=line.product_id,
                                product_name=line.product_name,
                                size=line.size,
                                quantity=line.quantity,
                                unit_price=line.unit_price,
                                subtotal=line.subtotal,
                            )
                            for line in lines
                        ],
                    )
                    try:
                        self.repo.insert_order(order)
                    except IntegrityError as e:
                        if not self.repo.order_number_exists(number):
                            raise
                        logger.warning(
                            f"Order number {number} already taken "
                            f"(attempt {attempt.retry_state.attempt_number}/{self.max_number_attempts})"
                        )
                        raise OrderNumberTaken(number) from e
        except OrderNumberTaken as e:
            raise ConflictError(
                f"Could not allocate a unique order number after {self.max_number_attempts} attempts"
            ) from e

        return order

    # queries
    def get_user_orders(self, user_id: int) -> list[OrderModel]:
        if not self.users.get_user(user_id):
            raise NotFoundError(f"User not found with id: {user_id}")
        return self.repo.get_user_orders(user_id)

    def get_all_orders(self) -> list[OrderModel]:
        return self.repo.get_all_orders()

    def get_order(self, order_id: int, user_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        if order.user_id != user_id:
            raise PermissionError("Cannot view other users' orders")

        return order

    # status machine
    def update_status(self, order_id: int, status: str) -> OrderModel:
        """
        Overwrites the status and bumps updated_at. Any of the five statuses can follow any other.
        """
        new_status = parse_status(status)

        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        try:
            previous = order.status
            order.status = new_status.value
            order.updated_at = self.clock()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.order_number} status {previous} -> {new_status.value}")
        return order
