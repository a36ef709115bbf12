"""
Pytest fixtures for the catalog inventory test suite.

Provides:
- A fresh file-backed SQLite database per test (file-backed so that
  several threads can open their own connections to it)
- Session fixtures and product / variant / category factories
- A TestClient with get_db pointed at the test database
"""
import itertools
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from catalog_inventory.database import Base, create_db_engine, get_db
from catalog_inventory.main import create_app
from catalog_inventory.models import Category, Product, Variant
from catalog_inventory.services.transaction_processor import TransactionProcessor

_ids = itertools.count(1)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'inventory_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def processor():
    return TransactionProcessor()


@pytest.fixture
def make_category(db):
    def _make(name=None, is_active=True):
        n = next(_ids)
        category = Category(name=name or f"Category {n}", slug=f"category-{n}", is_active=is_active)
        db.add(category)
        db.commit()
        return category
    return _make


@pytest.fixture
def make_product(db):
    def _make(name=None, is_active=True, has_variants=True, categories=()):
        n = next(_ids)
        product = Product(
            name=name or f"Product {n}",
            slug=f"product-{n}",
            sku=f"PRD-{n:05d}",
            is_active=is_active,
            has_variants=has_variants,
            categories=list(categories),
        )
        db.add(product)
        db.commit()
        return product
    return _make


@pytest.fixture
def make_variant(db, make_product):
    def _make(product=None, stock=10, threshold=5, price="10.00", is_active=True, attributes=None):
        product = product or make_product()
        n = next(_ids)
        variant = Variant(
            product_id=product.id,
            name=f"Variant {n}",
            sku=f"VAR-{n:05d}",
            attributes=attributes or {},
            price=Decimal(price),
            stock_quantity=stock,
            low_stock_threshold=threshold,
            is_active=is_active,
        )
        db.add(variant)
        db.commit()
        return variant
    return _make


@pytest.fixture
def client(session_factory):
    app = create_app()

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    # no context manager: the lifespan preflight would hit the default database
    return TestClient(app)
