# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.data.models.user import UserModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {
        "name": "Wild Berry Runner",
        "description": "Lightweight performance shoe with breathable mesh upper.",
        "price": Decimal("160.00"),
        "stock_quantity": 25,
    },
    {
        "name": "Trail Grip",
        "description": "Durable outsole for rugged terrain with cushioned midsole.",
        "price": Decimal("120.00"),
        "stock_quantity": 15,
    },
    {
        "name": "City Sneaker",
        "description": "Casual everyday comfort with minimalist styling.",
        "price": Decimal("85.00"),
        "stock_quantity": 40,
    },
]


def seed(db: Session):
    # only seeds empty tables, never overwrites
    if db.execute(select(UserModel.id)).first() is None:
        db.add_all([
            UserModel(id=1, name="admin", is_admin=True),
            UserModel(id=2, name="testuser", is_admin=False),
        ])
        logger.info("Seeded users: admin (1), testuser (2)")

    if db.execute(select(ProductModel.id)).first() is None:
        db.add_all([ProductModel(**p) for p in PRODUCTS])
        logger.info(f"Seeded {len(PRODUCTS)} products")

    db.commit()
