"""
PostgreSQL repository adapter - Implements PackageStateRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Each PackageUserState is stored as one row keyed by (user_id, package_name)
holding the binary wire encoding of the record, plus the hosts for which
the VERIFIED package was also selected by the user. The registry remains the
authority for ownership rules; the table only mirrors committed snapshots.

Load Isolation:
--------------
load_all() decodes rows one at a time. A row that fails to decode (corrupt
bytes, unknown state code) is logged and skipped so the remaining records
still load.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from psycopg_pool import ConnectionPool

from src.adapters.wire.codec import decode_package_user_state, encode_package_user_state
from src.domain.exceptions import DomainVerificationError
from src.domain.user_state import PackageUserState

logger = logging.getLogger(__name__)


class PostgresPackageStateRepository:
    """
    Implements PackageStateRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def save(self, state: PackageUserState, approved_hosts: frozenset[str] = frozenset()) -> None:
        """
        Insert or replace the record for the state's (user, package).

        Uses INSERT ... ON CONFLICT DO UPDATE for an atomic upsert.
        approved_hosts goes to its own column; the wire record has no
        field for it.
        """
        sql = """
            INSERT INTO package_user_states (user_id, package_name, record, approved_hosts, updated_at)
            VALUES (%s, %s, %s, %s, NOW())
            ON CONFLICT (user_id, package_name) DO UPDATE
            SET record = EXCLUDED.record,
                approved_hosts = EXCLUDED.approved_hosts,
                updated_at = NOW()
        """

        record = encode_package_user_state(state)
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql, (state.user, state.package_name, record, sorted(approved_hosts))
            )
            conn.commit()

    def delete(self, user: int, package_name: str) -> None:
        sql = "DELETE FROM package_user_states WHERE user_id = %s AND package_name = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (user, package_name))
            conn.commit()

    def delete_user(self, user: int) -> None:
        sql = "DELETE FROM package_user_states WHERE user_id = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (user,))
            conn.commit()

    def load_all(self) -> Iterator[tuple[PackageUserState, frozenset[str]]]:
        """
        Yield every decodable persisted record with its approved hosts.

        Rows are fetched up front so no connection is held while the
        caller restores them into the registry.
        """
        sql = """
            SELECT user_id, package_name, record, approved_hosts
            FROM package_user_states
            ORDER BY user_id, package_name
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql)
            rows = cursor.fetchall()

        for user_id, package_name, record, approved_hosts in rows:
            try:
                state = decode_package_user_state(bytes(record))
            except DomainVerificationError as e:
                logger.warning(
                    "Skipping undecodable record for %s in user %s: %s",
                    package_name,
                    user_id,
                    e,
                )
                continue
            if state.user != user_id or state.package_name != package_name:
                logger.warning(
                    "Skipping record keyed (%s, %s) holding state for (%s, %s)",
                    user_id,
                    package_name,
                    state.user,
                    state.package_name,
                )
                continue
            yield state, frozenset(approved_hosts)


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
