# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from storefront.api.routers import health, users, cart, orders
from storefront.data.database import Base, SessionLocal, init_db
from storefront.data.seed import seed
from storefront.utils.settings import SEED_DATA
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    init_db()
    logger.info(f"Tables ready: {list(Base.metadata.tables.keys())}")

    if SEED_DATA:
        db = SessionLocal()
        try:
            seed(db)
        finally:
            db.close()

    yield


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Storefront Order Service",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(cart.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
