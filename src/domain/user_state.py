"""
Package user state - Link handling state of one package for one user.

Holds every web domain a package declared in its manifest together with
its DomainState, plus the user-controlled link handling toggle. The toggle
affects all links regardless of per-host state; consumers must check it
before honoring host_to_state.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

from .exceptions import NullRequiredField
from .ports import DomainState


def normalize_host(host: str) -> str:
    """
    Normalize a host for consistent keying.

    Applies: strip whitespace + lowercase
    """
    if host is None:
        raise NullRequiredField("host")
    return host.strip().lower()


@dataclass
class PackageUserState:
    """
    Per-(package, user) domain state record.

    The identifier is assigned once when the record is created and stays
    stable across updates. Only the registry mutates instances it owns;
    everything handed out is a copy.
    """

    identifier: uuid.UUID
    package_name: str
    user: int
    link_handling_allowed: bool = True
    host_to_state: dict[str, DomainState] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("identifier", "package_name", "user", "link_handling_allowed", "host_to_state"):
            if getattr(self, name) is None:
                raise NullRequiredField(name)
        self.host_to_state = {
            normalize_host(host): DomainState.from_code(code)
            for host, code in self.host_to_state.items()
        }

    @classmethod
    def create(
        cls,
        package_name: str,
        user: int,
        hosts: Iterable[str] = (),
        link_handling_allowed: bool = True,
        identifier: uuid.UUID | None = None,
    ) -> "PackageUserState":
        """Create a fresh record with every declared host in the NONE state."""
        return cls(
            identifier=identifier if identifier is not None else uuid.uuid4(),
            package_name=package_name,
            user=user,
            link_handling_allowed=link_handling_allowed,
            host_to_state={host: DomainState.NONE for host in hosts},
        )

    def state_for(self, host: str) -> DomainState:
        return self.host_to_state.get(host, DomainState.NONE)

    def hosts_in_state(self, state: DomainState) -> list[str]:
        return [host for host, value in self.host_to_state.items() if value == state]

    def copy(self) -> "PackageUserState":
        """Return an independent copy; mutating it never affects this record."""
        return PackageUserState(
            identifier=self.identifier,
            package_name=self.package_name,
            user=self.user,
            link_handling_allowed=self.link_handling_allowed,
            host_to_state=dict(self.host_to_state),
        )
