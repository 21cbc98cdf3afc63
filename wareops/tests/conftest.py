from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wareops.app.api.deps import get_db
from wareops.app.db.base import Base
from wareops.app.db.models.models_v1 import Client, Product, Supplier
from wareops.app.main import app


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Session DB isolée par test.

    SQLite en mémoire, une connexion partagée (StaticPool) et un schéma
    recréé à chaque test : les commit() du code applicatif restent locaux.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_client(db_session):
    def _make(name: str = "ACME Builders") -> Client:
        c = Client(name=name, project_name="Harbour depot")
        db_session.add(c)
        db_session.commit()
        return c

    return _make


@pytest.fixture
def make_supplier(db_session):
    def _make(name: str = "Pacific Supply") -> Supplier:
        s = Supplier(name=name, country="PF", lead_time_days=7)
        db_session.add(s)
        db_session.commit()
        return s

    return _make


@pytest.fixture
def make_product(db_session):
    counter = {"n": 0}

    def _make(
        name: str | None = None,
        *,
        stock: int = 0,
        price: str = "10.00",
        reorder_limit: int = 0,
    ) -> Product:
        counter["n"] += 1
        p = Product(
            sku=f"SKU-{counter['n']:04d}",
            name=name or f"Product {counter['n']}",
            price=Decimal(price),
            stock=stock,
            reorder_limit=reorder_limit,
        )
        db_session.add(p)
        db_session.commit()
        return p

    return _make
