"""
Shared pytest setup.

The suite runs against in-memory SQLite. Each test gets a session bound to
an open connection-level transaction that is rolled back afterwards, so
services can flush freely and no row outlives its test.
"""
import pytest
import sys
import os
from datetime import date

# Repo root on the path so `core`, `services` and `models` import by name
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_FORMAT", "text")

from sqlalchemy.orm import Session
from core.database import Base, engine
import models  # noqa: F401  (registers tables on Base)


@pytest.fixture(scope="session", autouse=True)
def training_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Session whose writes vanish when the test ends."""
    connection = engine.connect()
    outer = connection.begin()
    session = Session(bind=connection, autoflush=False)

    yield session

    session.close()
    outer.rollback()
    connection.close()


@pytest.fixture
def monday():
    """A Monday well in the future so every scheduled workout is upcoming."""
    return date(2030, 1, 7)
