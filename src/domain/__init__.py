"""
Domain layer - Pure business logic with zero framework imports.

This package contains the link ownership state machine, the geolocation
time zone suggestion value object and the verification request envelope.
It defines its own port interfaces for infrastructure abstraction, ensuring
true hexagonal architecture decoupling.
"""

from .exceptions import (
    ArgumentParseError,
    DomainVerificationError,
    HostAlreadyOwned,
    InvalidStateCode,
    NullPackageSet,
    NullRequiredField,
    UndeclaredHost,
    UnknownPackageState,
    WireDecodeError,
)
from .geolocation import GeolocationSuggestion, parse_command_line_args
from .ports import DomainState, PackageStateRepository, VerificationAgent
from .registry import HostOwnershipRegistry
from .request import VerificationRequest
from .service import DomainVerificationService
from .user_state import PackageUserState

__all__ = [
    "ArgumentParseError",
    "DomainState",
    "DomainVerificationError",
    "DomainVerificationService",
    "GeolocationSuggestion",
    "HostAlreadyOwned",
    "HostOwnershipRegistry",
    "InvalidStateCode",
    "NullPackageSet",
    "NullRequiredField",
    "PackageStateRepository",
    "PackageUserState",
    "UndeclaredHost",
    "UnknownPackageState",
    "VerificationAgent",
    "VerificationRequest",
    "WireDecodeError",
    "parse_command_line_args",
]
