from __future__ import annotations

import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from testcontainers.postgres import PostgresContainer

REPO_ROOT = Path(__file__).resolve().parents[1]

SEED_YEAR = 2026
SEED_ACCOMMODATIONS = 40


@pytest.fixture(scope="session")
def postgres_url() -> str:
    with PostgresContainer("postgres:16") as pg:
        yield pg.get_connection_url()


@pytest.fixture(scope="session")
def migrated_seeded_db(postgres_url: str) -> str:
    # Normalize testcontainers URL (may be postgresql:// or postgresql+psycopg2://).
    base = postgres_url.replace("postgresql+psycopg2://", "postgresql://")
    sync_url = base.replace("postgresql://", "postgresql+psycopg://")
    async_url = base.replace("postgresql://", "postgresql+asyncpg://")

    cfg = Config(str(REPO_ROOT / "db" / "migrations" / "alembic.ini"))
    os.environ["DATABASE_URL"] = sync_url
    command.upgrade(cfg, "head")

    from db.seed import seed

    seed(database_url=sync_url, seed_value=1337, accommodations_n=SEED_ACCOMMODATIONS, year=SEED_YEAR)

    # The service connects through asyncpg.
    os.environ["DATABASE_URL"] = async_url
    os.environ["TRACING_ENABLED"] = "false"
    return async_url
