"""
Host ownership registry - Link ownership state machine implementation.

This module holds every PackageUserState for every user and enforces the
cross-package rule for which package may auto-open links to a host.

Ownership Rules
===============

States per (user, package, host):
- NONE: no claim on the host
- SELECTED: the user chose this package; exclusive per (user, host)
- VERIFIED: the verification agent asserted ownership; not exclusive

Per-user index:
- exclusive: host -> the single package whose state is SELECTED
- approved:  host -> VERIFIED packages the user additionally selected

Transitions:
    NONE     -> SELECTED  (set_selected, only when no other package holds
                           the exclusive slot and nobody is approved)
    SELECTED -> NONE      (clear_selected)
    any      -> VERIFIED  (set_verified, never evicts other packages;
                           an exclusive holder moves to the approved set)
    VERIFIED -> VERIFIED  (set_selected joins the approved set unless a
                           non-verified package holds the exclusive slot;
                           clear_selected leaves it)

Only hosts already in the package's map can be selected, so a selection
followed by clear_selected always restores the earlier record exactly.

Only a single package can be selected for a host unless the packages are
all verified, in which case any number of them may be approved together.

Concurrency: one lock per user, held for the whole of each operation.
Every check runs before the first mutation, so no operation is ever
partially applied.
"""

import logging
import threading
import uuid
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .exceptions import HostAlreadyOwned, UndeclaredHost, UnknownPackageState
from .ports import DomainState
from .user_state import PackageUserState, normalize_host

logger = logging.getLogger(__name__)


class _UserScope:
    """All registry state for a single user, guarded by its own lock."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.packages: dict[str, PackageUserState] = {}
        self.exclusive: dict[str, str] = {}
        self.approved: dict[str, set[str]] = {}

    def require(self, user: int, package_name: str) -> PackageUserState:
        state = self.packages.get(package_name)
        if state is None:
            raise UnknownPackageState(user, package_name)
        return state

    def release(self, package_name: str, hosts: Iterable[str]) -> None:
        """Drop package_name from the exclusive and approved indexes for hosts."""
        for host in hosts:
            if self.exclusive.get(host) == package_name:
                del self.exclusive[host]
            members = self.approved.get(host)
            if members is not None:
                members.discard(package_name)
                if not members:
                    del self.approved[host]


class HostOwnershipRegistry:
    """
    Process-wide registry of per-user, per-package domain state.

    Users are fully independent: each has its own lock and index, so
    operations for different users run in parallel. A user's scope is
    created by add_package or restore only; reads and operations on
    unknown packages never allocate one.
    """

    def __init__(self) -> None:
        self._scopes: dict[int, _UserScope] = {}
        self._scopes_lock = threading.Lock()

    def _scope(self, user: int) -> _UserScope:
        with self._scopes_lock:
            scope = self._scopes.get(user)
            if scope is None:
                scope = _UserScope()
                self._scopes[user] = scope
            return scope

    def _existing_scope(self, user: int) -> _UserScope | None:
        with self._scopes_lock:
            return self._scopes.get(user)

    def _package_scope(self, user: int, package_name: str) -> _UserScope:
        scope = self._existing_scope(user)
        if scope is None:
            raise UnknownPackageState(user, package_name)
        return scope

    def add_package(
        self,
        user: int,
        package_name: str,
        hosts: Iterable[str] = (),
        identifier: uuid.UUID | None = None,
        link_handling_allowed: bool = True,
    ) -> PackageUserState:
        """
        Create the record for a newly installed package.

        Every declared host starts in NONE. Adding a package that is
        already present leaves the existing record untouched.

        Returns:
            Snapshot of the (new or existing) record
        """
        new_state = PackageUserState.create(
            package_name,
            user,
            hosts=hosts,
            link_handling_allowed=link_handling_allowed,
            identifier=identifier,
        )
        scope = self._scope(user)
        with scope.lock:
            existing = scope.packages.get(package_name)
            if existing is not None:
                return existing.copy()
            scope.packages[package_name] = new_state
            logger.debug(
                "Added package %s for user %s with %d host(s)",
                package_name,
                user,
                len(new_state.host_to_state),
            )
            return new_state.copy()

    def restore(self, state: PackageUserState, approved_hosts: Iterable[str] = ()) -> None:
        """
        Install a previously persisted record.

        Replaces any record with the same (user, package), rebuilds the
        exclusive index from its SELECTED hosts and re-joins the approved
        set for each of approved_hosts the record holds as VERIFIED.

        Raises:
            HostAlreadyOwned: If a SELECTED or approved host is held by
                another package in a way the ownership rules forbid
                (registry left unchanged)
        """
        restored = state.copy()
        approvals = [
            host
            for host in {normalize_host(h) for h in approved_hosts}
            if restored.state_for(host) == DomainState.VERIFIED
        ]
        scope = self._scope(restored.user)
        with scope.lock:
            selected = restored.hosts_in_state(DomainState.SELECTED)
            for host in selected:
                holder = scope.exclusive.get(host)
                if holder is not None and holder != restored.package_name:
                    raise HostAlreadyOwned(host, holder)
                approved = scope.approved.get(host)
                if approved and approved != {restored.package_name}:
                    raise HostAlreadyOwned(host, min(approved))
            for host in approvals:
                holder = scope.exclusive.get(host)
                if holder is not None and holder != restored.package_name:
                    raise HostAlreadyOwned(host, holder)

            previous = scope.packages.get(restored.package_name)
            if previous is not None:
                scope.release(restored.package_name, previous.host_to_state)
            scope.packages[restored.package_name] = restored
            for host in selected:
                scope.exclusive[host] = restored.package_name
            for host in approvals:
                scope.approved.setdefault(host, set()).add(restored.package_name)

    def set_verified(self, user: int, package_name: str, host: str) -> None:
        """
        Mark host as VERIFIED for the package.

        Verification is additive: no other package loses its state. A
        package that held the exclusive slot keeps its selection as an
        approved owner instead. Hosts the package never declared are
        added to its map.

        Raises:
            UnknownPackageState: If the (user, package) pair is unknown
        """
        host = normalize_host(host)
        scope = self._package_scope(user, package_name)
        with scope.lock:
            state = scope.require(user, package_name)
            current = state.state_for(host)
            if current == DomainState.VERIFIED:
                return
            if current == DomainState.SELECTED:
                del scope.exclusive[host]
                scope.approved.setdefault(host, set()).add(package_name)
            state.host_to_state[host] = DomainState.VERIFIED
            logger.debug("Host %s verified for %s in user %s", host, package_name, user)

    def set_selected(self, user: int, package_name: str, host: str) -> None:
        """
        Grant the user's selection of host to the package.

        Raises:
            UnknownPackageState: If the (user, package) pair is unknown
            UndeclaredHost: If host is not in the package's map
            HostAlreadyOwned: If another package owns the host and the two
                are not both verified
        """
        host = normalize_host(host)
        scope = self._package_scope(user, package_name)
        with scope.lock:
            state = scope.require(user, package_name)
            if host not in state.host_to_state:
                raise UndeclaredHost(user, package_name, host)
            current = state.host_to_state[host]
            approved = scope.approved.get(host, set())
            if current == DomainState.SELECTED or package_name in approved:
                return

            holder = scope.exclusive.get(host)
            if holder is not None:
                # The exclusive slot is only ever held by a non-verified package
                raise HostAlreadyOwned(host, holder)

            if current == DomainState.VERIFIED:
                scope.approved.setdefault(host, set()).add(package_name)
                logger.debug("Host %s approved for %s in user %s", host, package_name, user)
                return

            if approved:
                raise HostAlreadyOwned(host, min(approved))

            scope.exclusive[host] = package_name
            state.host_to_state[host] = DomainState.SELECTED
            logger.debug("Host %s selected for %s in user %s", host, package_name, user)

    def clear_selected(self, user: int, package_name: str, host: str) -> None:
        """
        Remove the user's selection of host from the package.

        SELECTED falls back to NONE; an approved VERIFIED owner stays
        VERIFIED. No-op when the package has no selection for the host.

        Raises:
            UnknownPackageState: If the (user, package) pair is unknown
        """
        host = normalize_host(host)
        scope = self._package_scope(user, package_name)
        with scope.lock:
            state = scope.require(user, package_name)
            if state.state_for(host) == DomainState.SELECTED:
                state.host_to_state[host] = DomainState.NONE
            scope.release(package_name, (host,))

    def set_link_handling_allowed(self, user: int, package_name: str, allowed: bool) -> None:
        """
        Toggle whether the package may open links at all.

        Per-host states are kept; they are simply not honored while the
        toggle is off.

        Raises:
            UnknownPackageState: If the (user, package) pair is unknown
        """
        scope = self._package_scope(user, package_name)
        with scope.lock:
            scope.require(user, package_name).link_handling_allowed = bool(allowed)

    def get_host_to_state_map(self, user: int, package_name: str) -> Mapping[str, DomainState]:
        """Return a read-only copy of the package's host to state mapping."""
        scope = self._package_scope(user, package_name)
        with scope.lock:
            state = scope.require(user, package_name)
            return MappingProxyType(dict(state.host_to_state))

    def get_user_state(self, user: int, package_name: str) -> PackageUserState:
        """Return an independent copy of the package's record."""
        scope = self._package_scope(user, package_name)
        with scope.lock:
            return scope.require(user, package_name).copy()

    def get_approved_hosts(self, user: int, package_name: str) -> frozenset[str]:
        """Return the hosts for which the VERIFIED package was also selected."""
        scope = self._package_scope(user, package_name)
        with scope.lock:
            scope.require(user, package_name)
            return frozenset(
                host for host, members in scope.approved.items() if package_name in members
            )

    def get_package_names(self, user: int) -> list[str]:
        scope = self._existing_scope(user)
        if scope is None:
            return []
        with scope.lock:
            return sorted(scope.packages)

    def get_exclusive_owner(self, user: int, host: str) -> str | None:
        """Return the package holding the exclusive SELECTED slot, if any."""
        host = normalize_host(host)
        scope = self._existing_scope(user)
        if scope is None:
            return None
        with scope.lock:
            return scope.exclusive.get(host)

    def get_owners(self, user: int, host: str) -> frozenset[str]:
        """
        Return every package that would open links to host for user.

        A package qualifies when its state for the host is SELECTED or
        VERIFIED and its link handling toggle is on.
        """
        host = normalize_host(host)
        scope = self._existing_scope(user)
        if scope is None:
            return frozenset()
        with scope.lock:
            return frozenset(
                name
                for name, state in scope.packages.items()
                if state.link_handling_allowed
                and state.state_for(host) in (DomainState.SELECTED, DomainState.VERIFIED)
            )

    def remove_package(self, user: int, package_name: str) -> None:
        """
        Delete the package's record and release every host it owned.

        Raises:
            UnknownPackageState: If the (user, package) pair is unknown
        """
        scope = self._package_scope(user, package_name)
        with scope.lock:
            state = scope.require(user, package_name)
            scope.release(package_name, state.host_to_state)
            del scope.packages[package_name]
            logger.debug("Removed package %s for user %s", package_name, user)

    def remove_user(self, user: int) -> None:
        """Drop all state for a removed user."""
        with self._scopes_lock:
            scope = self._scopes.pop(user, None)
        if scope is not None:
            # Wait for in-flight operations on the detached scope
            with scope.lock:
                scope.packages.clear()
                scope.exclusive.clear()
                scope.approved.clear()
