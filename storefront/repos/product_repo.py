# storefront/repos/product_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel


class ProductRepo:
    """Catalog access: read by id, set stock, atomic compare-and-decrement."""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int, fresh: bool = False) -> ProductModel | None:
        # fresh=True bypasses the identity map so checkout sees the committed row
        return self.db.get(ProductModel, product_id, populate_existing=fresh)

    def set_stock(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock_quantity=quantity)
        )
        return result.rowcount

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        # update products set stock = stock - 2 where id = 1 and stock >= 2
        # 0 rows means someone else took the stock first
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock_quantity >= quantity,
            )
            .values(stock_quantity=ProductModel.stock_quantity - quantity)
        )
        return result.rowcount

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product
