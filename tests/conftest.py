from collections.abc import Generator
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tests.models import Base, BaseProduct, Category, CustomProduct, DigitalProduct, Product


@pytest.fixture
def db_engine():
    """Create a fresh in-memory SQLite database with every sample table for one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> sessionmaker[Session]:
    return sessionmaker(bind=db_engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, Any, None]:
    """Create a new database session for each test.

    The session is rolled back and closed after the test.
    """
    session = session_factory()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def products(db_session: Session) -> dict[str, BaseProduct]:
    """Seed one row of every product variant."""
    rows = {
        "base": BaseProduct(name="Base"),
        "product": Product(name="Chair"),
        "custom": CustomProduct(name="Custom chair"),
        "digital": DigitalProduct(name="E-book"),
    }
    db_session.add_all(rows.values())
    db_session.commit()
    return rows


@pytest.fixture
def categories(db_session: Session) -> dict[str, Category]:
    """Seed a tree of categories.

    Root level: A(0), B(1), C(2), P(3). Children of P: X(0), Y(1), Z(2).
    """
    rows = {name: Category(name=name, position=i) for i, name in enumerate("ABCP")}
    parent = rows["P"]
    for i, name in enumerate("XYZ"):
        rows[name] = Category(name=name, position=i, parent=parent)
    db_session.add_all(rows.values())
    db_session.commit()
    return rows
