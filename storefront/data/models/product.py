#storefront/data/models/product.py
from sqlalchemy import Column, Integer, Numeric, String, CheckConstraint

from storefront.data.database import Base


class ProductModel(Base):
    """Catalog row. Price is read at checkout time, stock is a mutable counter."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )
