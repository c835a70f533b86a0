"""Root conftest: test env and DB selection apply to ALL test paths (tests/, apps/api/tests/).

DATABASE_TEST_URL (a reachable Postgres *_test database) runs the suite against Alembic-migrated
Postgres. Otherwise everything runs on in-memory SQLite with tables from the models.
"""

import os

import pytest

os.environ.setdefault("ENV", "test")
os.environ.setdefault("PYTEST_RUNNING", "1")

DATABASE_TEST_URL = os.getenv("DATABASE_TEST_URL")

from tests._db_bootstrap import (
    ensure_test_db_guard,
    postgres_reachable,
    reset_tables,
    run_test_db_schema_fixture,
)

USE_POSTGRES = bool(DATABASE_TEST_URL) and postgres_reachable(DATABASE_TEST_URL)

# Must happen before apps.api.db is imported anywhere: the engine is built at import time.
if USE_POSTGRES:
    ensure_test_db_guard()
else:
    os.environ["DATABASE_URL"] = "sqlite://"


@pytest.fixture(scope="session", autouse=True)
def test_db_schema():
    """Reset the Postgres test schema once per session via Alembic. No-op on SQLite."""
    if not USE_POSTGRES:
        return
    run_test_db_schema_fixture()


@pytest.fixture(autouse=True)
def clean_tables(test_db_schema):
    """Every test starts from empty tables."""
    reset_tables()
    yield
