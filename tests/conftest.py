# 1. Standard Library
import os
from collections.abc import Callable, Generator
from decimal import Decimal
from typing import Any

# Configure the app before it is imported: throwaway database, no rate limits
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

# 2. Third-Party Libraries
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# 3. Application Layers
from pharmapos.database import create_db_engine, get_db, init_db, new_id
from pharmapos.main import app
from pharmapos.models.products import Product
from pharmapos.models.sale_items import SaleItem
from pharmapos.models.sales import Sale


# --- Setup: one file-backed SQLite database per test ---

@pytest.fixture(name="engine")
def engine_fixture(tmp_path) -> Generator[Engine, Any, None]:
    """
    File-backed rather than in-memory so that several sessions (and threads)
    can hold their own connections, exactly like concurrent requests.
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'pos_test.sqlite'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session_factory")
def session_factory_fixture(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(name="session")
def session_fixture(session_factory: sessionmaker) -> Generator[Session, Any, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(name="client")
def client_fixture(session_factory: sessionmaker) -> Generator[TestClient, Any, None]:
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Data helpers ---

@pytest.fixture(name="make_product")
def make_product_fixture(session_factory: sessionmaker) -> Callable[..., str]:
    """Inserts a product and returns its id. Defaults: stock=5, sell_price=100."""

    def _make(**overrides) -> str:
        data = {
            "id": new_id("prod"),
            "name": "Paracetamol 500mg",
            "buy_price": Decimal("60.00"),
            "sell_price": Decimal("100.00"),
            "stock": 5,
            "category": "Analgesics",
        }
        data.update(overrides)

        with session_factory() as db:
            db.add(Product(**data))
            db.commit()

        return data["id"]

    return _make


@pytest.fixture(name="stock_of")
def stock_of_fixture(session_factory: sessionmaker) -> Callable[[str], int]:
    """Reads committed stock through a fresh session."""

    def _stock_of(product_id: str) -> int:
        with session_factory() as db:
            return db.query(Product.stock).filter(Product.id == product_id).scalar()

    return _stock_of


@pytest.fixture(name="ledger_counts")
def ledger_counts_fixture(session_factory: sessionmaker) -> Callable[[], tuple[int, int]]:
    """Returns (sales, sale line items) currently committed."""

    def _counts() -> tuple[int, int]:
        with session_factory() as db:
            return db.query(Sale).count(), db.query(SaleItem).count()

    return _counts
