"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the domain state enum and the interfaces (ports) that
the domain requires from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Iterable
from enum import IntEnum
from typing import TYPE_CHECKING, Protocol

from .exceptions import InvalidStateCode

if TYPE_CHECKING:
    from .request import VerificationRequest
    from .user_state import PackageUserState


class DomainState(IntEnum):
    """
    Per-(package, user, host) link handling state.

    The integer values are the persisted codes and must never change.

    States:
    - NONE: unverified and unselected, the package cannot open links to the host
    - SELECTED: selected by the user; exclusive per host unless owners are verified
    - VERIFIED: asserted by the verification agent; not exclusive across packages

    Precedence for ownership purposes: VERIFIED > SELECTED > NONE.
    """

    NONE = 0
    SELECTED = 1
    VERIFIED = 2

    @classmethod
    def from_code(cls, code: int) -> "DomainState":
        """
        Convert a persisted integer into a DomainState.

        Raises:
            InvalidStateCode: If the value is not one of the three known codes
        """
        # bool is an int subclass and must not sneak in as 0/1
        if isinstance(code, bool) or not isinstance(code, int):
            raise InvalidStateCode(code)
        try:
            return cls(code)
        except ValueError:
            raise InvalidStateCode(code) from None


def domain_state_to_string(code: int) -> str:
    """Render a state code for diagnostics, falling back to hex for unknown codes."""
    try:
        return f"DOMAIN_STATE_{DomainState.from_code(code).name}"
    except InvalidStateCode:
        return format(code, "x")


class PackageStateRepository(Protocol):
    """Port interface for package user state persistence."""

    def save(self, state: "PackageUserState", approved_hosts: frozenset[str] = frozenset()) -> None:
        """
        Insert or replace the persisted record for state's (user, package).

        Args:
            state: Snapshot to persist
            approved_hosts: VERIFIED hosts the user also selected for the package
        """
        ...

    def delete(self, user: int, package_name: str) -> None:
        """Remove the persisted record, if any."""
        ...

    def delete_user(self, user: int) -> None:
        """Remove every persisted record for a user."""
        ...

    def load_all(self) -> Iterable[tuple["PackageUserState", frozenset[str]]]:
        """
        Load every decodable persisted record with its approved hosts.

        Records that fail to decode are skipped by the implementation;
        one corrupt record must not prevent the others from loading.
        """
        ...


class VerificationAgent(Protocol):
    """Port interface for the external domain verification agent."""

    def send_verification_request(self, request: "VerificationRequest") -> None:
        """
        Ask the agent to re-verify the packages named in the request.

        Args:
            request: Envelope holding the package names to re-verify
        """
        ...
