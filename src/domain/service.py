"""
Domain verification service - Orchestrates registry, persistence and agent.

Every mutation goes to the in-memory HostOwnershipRegistry first, which
enforces the ownership rules. Only a committed change is written through
the repository port, so a rejected selection never reaches storage.

Write ordering: the registry lock never covers I/O, so the service holds
a per-user write lock across "mutate, snapshot, write". Two writes for the
same user therefore reach the repository in the order the registry
committed them; a removed package is never re-inserted by a slower save.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field

from .exceptions import HostAlreadyOwned
from .ports import PackageStateRepository, VerificationAgent
from .registry import HostOwnershipRegistry
from .request import VerificationRequest
from .user_state import PackageUserState

logger = logging.getLogger(__name__)


class UserWriteLocks:
    """
    Fixed set of lock stripes keyed by user id.

    The same user always maps to the same lock. Memory stays bounded no
    matter how many user ids callers send.
    """

    def __init__(self, stripes: int = 64) -> None:
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def for_user(self, user: int) -> threading.Lock:
        return self._locks[hash(user) % len(self._locks)]


@dataclass
class DomainVerificationService:
    """
    Domain service for link ownership.

    Wires the registry to the state repository and the verification agent.
    Services built per request must share write_locks so that writes for
    the same user stay ordered.
    """

    registry: HostOwnershipRegistry
    repository: PackageStateRepository
    agent: VerificationAgent
    write_locks: UserWriteLocks = field(default_factory=UserWriteLocks)

    def restore_all(self) -> int:
        """
        Load every persisted record into the registry.

        Records that conflict with already-restored ownership are skipped.

        Returns:
            Number of records restored
        """
        restored = 0
        for state, approved_hosts in self.repository.load_all():
            try:
                self.registry.restore(state, approved_hosts)
            except HostAlreadyOwned as e:
                logger.warning(
                    "Skipping persisted state for %s in user %s: %s",
                    state.package_name,
                    state.user,
                    e,
                )
                continue
            restored += 1
        logger.info("Restored %d package state(s)", restored)
        return restored

    def add_package(self, user: int, package_name: str, hosts: Iterable[str]) -> PackageUserState:
        with self.write_locks.for_user(user):
            self.registry.add_package(user, package_name, hosts)
            return self._persist(user, package_name)

    def set_verified(self, user: int, package_name: str, host: str) -> PackageUserState:
        with self.write_locks.for_user(user):
            self.registry.set_verified(user, package_name, host)
            return self._persist(user, package_name)

    def set_selected(self, user: int, package_name: str, host: str) -> PackageUserState:
        """
        Select host for the package on behalf of the user.

        Raises:
            UnknownPackageState: If the (user, package) pair is unknown
            UndeclaredHost: If the package never declared the host
            HostAlreadyOwned: If another package owns the host
        """
        with self.write_locks.for_user(user):
            self.registry.set_selected(user, package_name, host)
            return self._persist(user, package_name)

    def clear_selected(self, user: int, package_name: str, host: str) -> PackageUserState:
        with self.write_locks.for_user(user):
            self.registry.clear_selected(user, package_name, host)
            return self._persist(user, package_name)

    def set_link_handling_allowed(
        self, user: int, package_name: str, allowed: bool
    ) -> PackageUserState:
        with self.write_locks.for_user(user):
            self.registry.set_link_handling_allowed(user, package_name, allowed)
            return self._persist(user, package_name)

    def get_user_state(self, user: int, package_name: str) -> PackageUserState:
        return self.registry.get_user_state(user, package_name)

    def get_owners(self, user: int, host: str) -> frozenset[str]:
        return self.registry.get_owners(user, host)

    def remove_package(self, user: int, package_name: str) -> None:
        with self.write_locks.for_user(user):
            self.registry.remove_package(user, package_name)
            self.repository.delete(user, package_name)

    def remove_user(self, user: int) -> None:
        with self.write_locks.for_user(user):
            self.registry.remove_user(user)
            self.repository.delete_user(user)

    def request_verification(self, package_names: Iterable[str]) -> VerificationRequest:
        """
        Ask the verification agent to re-verify the given packages.

        Returns:
            The request that was handed to the agent
        """
        request = VerificationRequest(package_names)
        self.agent.send_verification_request(request)
        return request

    def _persist(self, user: int, package_name: str) -> PackageUserState:
        # Caller holds the user's write lock, so both reads see one commit
        state = self.registry.get_user_state(user, package_name)
        approved_hosts = self.registry.get_approved_hosts(user, package_name)
        self.repository.save(state, approved_hosts)
        return state
