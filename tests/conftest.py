"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Each test gets its own account id, so rows written by one test never show
up in another test's history.
"""
import uuid

import pytest
from fastapi.testclient import TestClient

from wellness_core.core.config import load_settings
from wellness_core.db.base import Base, get_db
from wellness_core.main import create_app
import wellness_core.models  # noqa: F401

SQLITE_URL = "sqlite:///./test_wellness.db"
TEST_SALT = "test-deployment-salt-3f9a1c7e"

settings = load_settings(
    DATABASE_URL=SQLITE_URL,
    ZKWV_SALT=TEST_SALT,
    LOG_JSON=False,
    LOG_LEVEL="WARNING",
)
app = create_app(settings)
core = app.state.core
engine = core.engine
TestingSessionLocal = core.session_factory


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def facade():
    return core


@pytest.fixture()
def account_id():
    return f"acct-{uuid.uuid4().hex}"


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
