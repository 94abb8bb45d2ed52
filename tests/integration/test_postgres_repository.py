"""
Integration tests for PostgresPackageStateRepository.

Tests repository operations against a real PostgreSQL database.
Requires PostgreSQL to be running (skipped otherwise).
"""

import logging
import struct
import uuid

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresPackageStateRepository
from src.adapters.wire.codec import encode_package_user_state
from src.domain.ports import DomainState
from src.domain.user_state import PackageUserState

pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("clean_database")]


def make_state(package_name: str = "com.example.app", user: int = 0) -> PackageUserState:
    return PackageUserState(
        identifier=uuid.uuid4(),
        package_name=package_name,
        user=user,
        host_to_state={"example.com": DomainState.SELECTED, "example.org": DomainState.VERIFIED},
    )


class TestSave:
    def test_save_then_load(self, repository: PostgresPackageStateRepository) -> None:
        state = make_state()
        repository.save(state)

        assert list(repository.load_all()) == [(state, frozenset())]

    def test_save_replaces_existing(self, repository: PostgresPackageStateRepository) -> None:
        state = make_state()
        repository.save(state)
        state.host_to_state["example.com"] = DomainState.NONE
        state.link_handling_allowed = False
        repository.save(state)

        loaded = list(repository.load_all())
        assert loaded == [(state, frozenset())]

    def test_approved_hosts_round_trip(self, repository: PostgresPackageStateRepository) -> None:
        state = make_state()
        repository.save(state, frozenset({"example.org"}))

        assert list(repository.load_all()) == [(state, frozenset({"example.org"}))]

        repository.save(state)
        assert list(repository.load_all()) == [(state, frozenset())]

    def test_records_keyed_per_user(self, repository: PostgresPackageStateRepository) -> None:
        repository.save(make_state(user=0))
        repository.save(make_state(user=10))

        loaded = list(repository.load_all())
        assert [(s.user, s.package_name) for s, _ in loaded] == [
            (0, "com.example.app"),
            (10, "com.example.app"),
        ]


class TestDelete:
    def test_delete_removes_record(self, repository: PostgresPackageStateRepository) -> None:
        repository.save(make_state("com.a"))
        repository.save(make_state("com.b"))

        repository.delete(0, "com.a")

        assert [s.package_name for s, _ in repository.load_all()] == ["com.b"]

    def test_delete_missing_is_noop(self, repository: PostgresPackageStateRepository) -> None:
        repository.delete(0, "com.missing")
        assert list(repository.load_all()) == []

    def test_delete_user(self, repository: PostgresPackageStateRepository) -> None:
        repository.save(make_state("com.a", user=0))
        repository.save(make_state("com.b", user=0))
        repository.save(make_state("com.a", user=10))

        repository.delete_user(0)

        assert [(s.user, s.package_name) for s, _ in repository.load_all()] == [(10, "com.a")]


class TestLoadIsolation:
    """A corrupt record must not prevent the others from loading."""

    def insert_raw(self, pool: ConnectionPool, user: int, package_name: str, record: bytes) -> None:
        with pool.connection() as conn:
            conn.execute(
                "INSERT INTO package_user_states (user_id, package_name, record) VALUES (%s, %s, %s)",
                (user, package_name, record),
            )
            conn.commit()

    def test_invalid_state_code_skipped(
        self,
        pool: ConnectionPool,
        repository: PostgresPackageStateRepository,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        good = make_state("com.good")
        repository.save(good)
        corrupt = bytearray(encode_package_user_state(make_state("com.bad")))
        # Last host's state code is the final int32
        corrupt[-4:] = struct.pack("<i", 3)
        self.insert_raw(pool, 0, "com.bad", bytes(corrupt))

        with caplog.at_level(logging.WARNING):
            loaded = list(repository.load_all())

        assert loaded == [(good, frozenset())]
        assert "com.bad" in caplog.text

    def test_truncated_record_skipped(
        self, pool: ConnectionPool, repository: PostgresPackageStateRepository
    ) -> None:
        good = make_state("com.good")
        repository.save(good)
        self.insert_raw(pool, 0, "com.bad", encode_package_user_state(make_state("com.bad"))[:10])

        assert list(repository.load_all()) == [(good, frozenset())]

    def test_mismatched_key_skipped(
        self, pool: ConnectionPool, repository: PostgresPackageStateRepository
    ) -> None:
        self.insert_raw(pool, 0, "com.other", encode_package_user_state(make_state("com.app")))

        assert list(repository.load_all()) == []
