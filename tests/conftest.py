import os
from decimal import Decimal

import pytest

# must be set before storefront.utils.settings is imported
os.environ.setdefault("LOCK_BACKEND", "memory")
os.environ.setdefault("SEED_DATA", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from storefront.data.database import get_db, init_db, make_engine, make_session_factory  # noqa: E402
from storefront.data.models import ProductModel, UserModel  # noqa: E402
from storefront.main import create_app  # noqa: E402
from storefront.services.lock_service import InProcessLockService  # noqa: E402

ADMIN_ID = 1
ALICE_ID = 2
BOB_ID = 3

RUNNER_ID = 1  # stock 5
TRAIL_ID = 2  # stock 10
LAST_PAIR_ID = 3  # stock 1


@pytest.fixture()
def engine(tmp_path):
    # file backed so several threads/sessions see the same database
    engine = make_engine(f"sqlite:///{tmp_path / 'storefront_test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def catalog(session_factory):
    with session_factory() as s:
        s.add_all([
            UserModel(id=ADMIN_ID, name="admin", is_admin=True),
            UserModel(id=ALICE_ID, name="alice"),
            UserModel(id=BOB_ID, name="bob"),
        ])
        s.add_all([
            ProductModel(id=RUNNER_ID, name="Wild Berry Runner", price=Decimal("160.00"), stock_quantity=5),
            ProductModel(id=TRAIL_ID, name="Trail Grip", price=Decimal("120.00"), stock_quantity=10),
            ProductModel(id=LAST_PAIR_ID, name="City Sneaker", price=Decimal("85.00"), stock_quantity=1),
        ])
        s.commit()


@pytest.fixture()
def db(session_factory, catalog):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def lock_service():
    return InProcessLockService(timeout=5)


@pytest.fixture()
def client(session_factory, catalog):
    app = create_app(with_lifespan=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def stock_of(db, product_id: int) -> int:
    """Current committed stock, bypassing the session's identity map."""
    return db.get(ProductModel, product_id, populate_existing=True).stock_quantity
