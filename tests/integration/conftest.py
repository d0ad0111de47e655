"""
Name: Integration Test DB Setup

Responsibilities:
  - Ensure database schema exists before integration tests run
  - Run Alembic migrations once per test session
  - Provide a pool and helpers to seed users / documents

Notes:
  - Only runs when RUN_INTEGRATION=1
  - Uses DATABASE_URL from environment (see alembic/env.py)
"""

from __future__ import annotations

import os
from pathlib import Path
from uuid import UUID

import pytest

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")
DB_PORT = os.getenv("POSTGRES_HOST_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "docshare")
DEFAULT_DATABASE_URL = (
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

ROOT_DIR = Path(__file__).resolve().parents[2]


def pytest_collection_modifyitems(config, items):
    if os.getenv("RUN_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="Set RUN_INTEGRATION=1 to run integration tests")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def database_url() -> str:
    url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    os.environ["DATABASE_URL"] = url
    return url


@pytest.fixture(scope="session")
def migrated_db(database_url: str) -> str:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    command.upgrade(cfg, "head")
    return database_url


@pytest.fixture(scope="session")
def db_pool(migrated_db: str):
    from docshare.infrastructure.db.pool import close_pool, init_pool, reset_pool

    reset_pool()
    pool = init_pool(migrated_db, min_size=1, max_size=8)
    yield pool
    close_pool()


@pytest.fixture
def seed_user(db_pool):
    def _seed(user_id: UUID, role: str = "user") -> UUID:
        with db_pool.connection() as conn:
            conn.execute(
                "INSERT INTO users (id, email, role) VALUES (%s, %s, %s) "
                "ON CONFLICT (id) DO NOTHING",
                (user_id, f"{user_id}@example.com", role),
            )
        return user_id

    return _seed
