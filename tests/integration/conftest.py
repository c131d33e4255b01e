"""
Shared fixtures for tests that need a running PostgreSQL.

Tests using the pool fixture are skipped when DATABASE_URL is unreachable.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresUnitOfWork, run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Migrated connection pool for integration tests."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=True)
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def unit_of_work(pool: ConnectionPool) -> PostgresUnitOfWork:
    return PostgresUnitOfWork(pool)


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty every table except the competition catalog."""
    with pool.connection() as conn:
        conn.execute("TRUNCATE otp_codes, team_members, teams, users")
    yield
