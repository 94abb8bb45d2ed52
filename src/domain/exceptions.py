"""
Domain exceptions - Semantic error types for domain verification state.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class DomainVerificationError(Exception):
    """Base class for domain verification errors."""

    pass


class NullRequiredField(DomainVerificationError):
    """A required field was None at construction time."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"{field_name} must not be None")
        self.field_name = field_name


class NullPackageSet(NullRequiredField):
    """A verification request was built without a package set."""

    def __init__(self) -> None:
        super().__init__("package_names")


class WireDecodeError(DomainVerificationError):
    """A serialized record is truncated, malformed or has trailing data."""

    pass


class InvalidStateCode(WireDecodeError):
    """A persisted domain state integer is not one of the known codes."""

    def __init__(self, code: object) -> None:
        super().__init__(f"Invalid domain state code: {code!r}")
        self.code = code


class HostAlreadyOwned(DomainVerificationError):
    """Another package already owns the host for this user."""

    def __init__(self, host: str, owner: str) -> None:
        super().__init__(f"Host {host} is already owned by {owner}")
        self.host = host
        self.owner = owner


class UnknownPackageState(DomainVerificationError):
    """No state is recorded for the (user, package) pair."""

    def __init__(self, user: int, package_name: str) -> None:
        super().__init__(f"No state for package {package_name} in user {user}")
        self.user = user
        self.package_name = package_name


class ArgumentParseError(DomainVerificationError):
    """Command-line arguments do not follow the expected grammar."""

    pass


class UndeclaredHost(DomainVerificationError):
    """The package never declared the host, so it cannot be selected for it."""

    def __init__(self, user: int, package_name: str, host: str) -> None:
        super().__init__(f"Package {package_name} in user {user} does not declare host {host}")
        self.user = user
        self.package_name = package_name
        self.host = host
