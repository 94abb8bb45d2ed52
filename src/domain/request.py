"""
Verification request - Envelope broadcast to the domain verification agent.

Holds the packages whose domains were invalidated and need re-verification.
The agent looks up the actual domains per package through a separate query
interface; this envelope only carries the names.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from .exceptions import NullPackageSet


@dataclass(frozen=True)
class VerificationRequest:
    """Immutable set of package names to re-verify."""

    package_names: frozenset[str]

    def __init__(self, package_names: Iterable[str]) -> None:
        if package_names is None:
            raise NullPackageSet()
        object.__setattr__(self, "package_names", frozenset(package_names))
