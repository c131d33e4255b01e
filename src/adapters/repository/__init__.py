"""Repository adapters - Database implementations."""

from .memory import InMemoryDatabase, InMemoryUnitOfWork
from .postgres import PostgresUnitOfWork, run_migrations

__all__ = ["InMemoryDatabase", "InMemoryUnitOfWork", "PostgresUnitOfWork", "run_migrations"]
