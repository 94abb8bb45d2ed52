"""Repository adapters - Database implementations."""

from .postgres import PostgresPackageStateRepository, run_migrations

__all__ = ["PostgresPackageStateRepository", "run_migrations"]
