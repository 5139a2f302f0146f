from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    ValidationError,
    NotFoundError,
    InsufficientStockError,
)
from storefront.domain.limits import MIN_QUANTITY, MAX_QUANTITY, MIN_SIZE, MAX_SIZE
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Cart lines of a user, one line per (user, product, size).
    commands (add, remove, update) validate against current stock,
    stock itself is never touched here, it is only reserved at checkout
    query (list) read only
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    # query
    def list_items(self, user_id: int) -> list[CartItemModel]:
        return self.repo.get_cart_items(user_id)

    # commands
    def add_item(
        self,
        user_id: int,
        product_id: int,
        size: int,
        quantity: int,
    ) -> CartItemModel:
        if not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
            raise ValidationError(f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}")
        if not MIN_SIZE <= size <= MAX_SIZE:
            raise ValidationError(f"Size must be between {MIN_SIZE} and {MAX_SIZE}")

        if not self.users.get_user(user_id):
            raise NotFoundError(f"User not found with id: {user_id}")

        product = self.products.get_product(product_id, fresh=True)
        if not product:
            raise NotFoundError(f"Product not found with id: {product_id}")

        logger.info(
            f"Adding to cart - user {user_id}, product {product_id}, size {size}, quantity {quantity}"
        )

        try:
            existing = self.repo.get_cart_item(user_id, product_id, size)
            if existing:
                item = self._merge(existing, product, quantity)
            else:
                if quantity > product.stock_quantity:
                    raise InsufficientStockError(
                        product.id, product.name, product.stock_quantity, quantity
                    )
                try:
                    item = self.repo.insert_cart_item(
                        CartItemModel(
                            user_id=user_id,
                            product_id=product_id,
                            product=product,
                            size=size,
                            quantity=quantity,
                        )
                    )
                    logger.info(f"Created new cart item {item.id} for user {user_id}")
                except IntegrityError:
                    # concurrent add of the same (user, product, size) won the insert
                    logger.info(
                        f"Cart line for user {user_id}, product {product_id}, size {size} "
                        f"created concurrently, merging"
                    )
                    winner = self.repo.get_cart_item(user_id, product_id, size)
                    if winner is None:
                        raise
                    item = self._merge(winner, product, quantity)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return item

    def _merge(self, item: CartItemModel, product, quantity: int) -> CartItemModel:
        new_quantity = item.quantity + quantity

        if new_quantity > product.stock_quantity:
            raise InsufficientStockError(
                product.id,
                product.name,
                product.stock_quantity,
                quantity,
                message=(
                    f"Cannot add more items of '{product.name}'. Stock available: "
                    f"{product.stock_quantity}, Current in cart: {item.quantity}, Requested: {quantity}"
                ),
            )
        if new_quantity > MAX_QUANTITY:
            raise ValidationError(
                f"Cannot have more than {MAX_QUANTITY} of the same item in the cart"
            )

        logger.info(
            f"Product {product.id} size {item.size} already in cart, increasing quantity "
            f"from {item.quantity} to {new_quantity}"
        )
        item.quantity = new_quantity
        return self.repo.add_cart_item(item)

    def remove_item(self, user_id: int, item_id: int) -> None:
        item = self.repo.get_owned_item(user_id, item_id)
        if not item:
            raise NotFoundError(f"Cart item {item_id} not found")

        logger.info(f"Removing cart item {item_id} for user {user_id}")
        try:
            self.repo.delete_cart_item(item)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

    def update_quantity(self, user_id: int, item_id: int, quantity: int) -> CartItemModel | None:
        """
        Sets the quantity of a line. quantity <= 0 deletes the line and returns None;
        repeating it once the line is gone is a no-op. Another user's line is NotFoundError.
        """
        if quantity <= 0:
            item = self.repo.get_item(item_id)
            if item is None:
                logger.info(f"Cart item {item_id} already gone, nothing to delete")
                return None
            if item.user_id != user_id:
                raise NotFoundError(f"Cart item {item_id} not found")
            logger.info(f"Deleting cart item {item_id} (quantity was {quantity})")
            try:
                self.repo.delete_cart_item(item)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
            return None

        item = self.repo.get_owned_item(user_id, item_id)
        if not item:
            raise NotFoundError(f"Cart item {item_id} not found")
        if quantity > MAX_QUANTITY:
            raise ValidationError(
                f"Cannot have more than {MAX_QUANTITY} of the same item in the cart"
            )

        product = self.products.get_product(item.product_id, fresh=True)
        if not product:
            raise NotFoundError(f"Product not found with id: {item.product_id}")
        if quantity > product.stock_quantity:
            raise InsufficientStockError(
                product.id, product.name, product.stock_quantity, quantity
            )

        logger.info(f"Updating cart item {item_id} quantity from {item.quantity} to {quantity}")
        try:
            item.quantity = quantity
            self.repo.add_cart_item(item)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return item
