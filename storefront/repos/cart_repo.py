# storefront/repos/cart_repo.py
from sqlalchemy import select, delete, and_, or_
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: int, fresh: bool = False) -> list[CartItemModel]:
        # insertion order, stable for rendering
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.id)
        )
        if fresh:
            stmt = stmt.execution_options(populate_existing=True)
        return list(self.db.execute(stmt).scalars().all())

    def get_item(self, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(CartItemModel.id == item_id)
        ).scalar_one_or_none()

    def get_cart_item(self, user_id: int, product_id: int, size: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.product_id == product_id,
                CartItemModel.size == size,
            )
        ).scalar_one_or_none()

    def get_owned_item(self, user_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.id == item_id,
                CartItemModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def insert_cart_item(self, item: CartItemModel) -> CartItemModel:
        """Insert inside a SAVEPOINT so a unique violation does not abort the outer transaction."""
        with self.db.begin_nested():
            self.db.add(item)
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_checked_out(self, user_id: int, quantities: dict[int, int]) -> int:
        """
        Deletes the given lines (id -> quantity) of the user, only while they still
        hold the quantity that was ordered. Returns the number of deleted rows.
        """
        result = self.db.execute(
            delete(CartItemModel)
            .where(
                CartItemModel.user_id == user_id,
                or_(*(
                    and_(CartItemModel.id == item_id, CartItemModel.quantity == quantity)
                    for item_id, quantity in quantities.items()
                )),
            )
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
