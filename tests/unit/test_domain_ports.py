"""
Unit tests for domain ports and exceptions.

Tests verify:
- DomainState codes and conversion
- Exceptions are properly structured
- Domain purity (zero framework imports)
"""

import subprocess
from enum import IntEnum

import pytest

from src.domain.exceptions import (
    ArgumentParseError,
    DomainVerificationError,
    HostAlreadyOwned,
    InvalidStateCode,
    NullPackageSet,
    NullRequiredField,
    UnknownPackageState,
    WireDecodeError,
)
from src.domain.ports import (
    DomainState,
    PackageStateRepository,
    VerificationAgent,
    domain_state_to_string,
)


class TestDomainStateEnum:
    """Tests for DomainState enum."""

    def test_domain_state_is_int_enum(self) -> None:
        """DomainState uses int values for persistence."""
        assert issubclass(DomainState, IntEnum)

    def test_domain_state_codes_are_fixed(self) -> None:
        """Persisted codes are NONE=0, SELECTED=1, VERIFIED=2."""
        assert DomainState.NONE == 0
        assert DomainState.SELECTED == 1
        assert DomainState.VERIFIED == 2

    def test_domain_state_has_exactly_three_members(self) -> None:
        assert len(DomainState) == 3

    def test_precedence_order(self) -> None:
        """VERIFIED outranks SELECTED which outranks NONE."""
        assert DomainState.VERIFIED > DomainState.SELECTED > DomainState.NONE

    @pytest.mark.parametrize("code", [0, 1, 2])
    def test_from_code_accepts_known_codes(self, code: int) -> None:
        assert DomainState.from_code(code) == code

    def test_from_code_rejects_code_3(self) -> None:
        """State code 3 is corrupt and must not be coerced."""
        with pytest.raises(InvalidStateCode) as exc_info:
            DomainState.from_code(3)
        assert exc_info.value.code == 3

    @pytest.mark.parametrize("code", [-1, 255, "1", None, 1.0, True])
    def test_from_code_rejects_other_values(self, code: object) -> None:
        with pytest.raises(InvalidStateCode):
            DomainState.from_code(code)  # type: ignore[arg-type]

    def test_domain_state_to_string_known(self) -> None:
        assert domain_state_to_string(0) == "DOMAIN_STATE_NONE"
        assert domain_state_to_string(1) == "DOMAIN_STATE_SELECTED"
        assert domain_state_to_string(2) == "DOMAIN_STATE_VERIFIED"

    def test_domain_state_to_string_unknown_is_hex(self) -> None:
        assert domain_state_to_string(26) == "1a"


class TestPortProtocols:
    """Tests for port protocol definitions."""

    def test_repository_protocol_methods(self) -> None:
        for name in ("save", "delete", "delete_user", "load_all"):
            assert hasattr(PackageStateRepository, name)

    def test_verification_agent_protocol_methods(self) -> None:
        assert hasattr(VerificationAgent, "send_verification_request")


class TestDomainExceptions:
    """Tests for the error taxonomy."""

    @pytest.mark.parametrize(
        "exc_type",
        [
            ArgumentParseError,
            HostAlreadyOwned,
            InvalidStateCode,
            NullPackageSet,
            NullRequiredField,
            UnknownPackageState,
            WireDecodeError,
        ],
    )
    def test_all_inherit_from_base(self, exc_type: type) -> None:
        assert issubclass(exc_type, DomainVerificationError)

    def test_invalid_state_code_is_decode_error(self) -> None:
        """Unknown state codes are a kind of decode failure."""
        assert issubclass(InvalidStateCode, WireDecodeError)

    def test_null_package_set_is_null_required_field(self) -> None:
        assert issubclass(NullPackageSet, NullRequiredField)
        assert NullPackageSet().field_name == "package_names"

    def test_host_already_owned_carries_context(self) -> None:
        error = HostAlreadyOwned("example.com", "com.example.browser")
        assert error.host == "example.com"
        assert error.owner == "com.example.browser"
        assert "example.com" in str(error)
        assert "com.example.browser" in str(error)

    def test_unknown_package_state_carries_context(self) -> None:
        error = UnknownPackageState(10, "com.example.missing")
        assert error.user == 10
        assert error.package_name == "com.example.missing"

    def test_exceptions_can_be_raised_and_caught(self) -> None:
        with pytest.raises(DomainVerificationError):
            raise HostAlreadyOwned("example.com", "com.example.browser")


class TestDomainPurity:
    """Tests for domain purity - zero framework imports."""

    @pytest.mark.parametrize(
        "pattern",
        [
            "from fastapi",
            "import fastapi",
            "from pydantic",
            "import pydantic",
            "from psycopg",
            "import psycopg",
        ],
    )
    def test_no_framework_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(
            ["grep", "-r", pattern, "src/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"Framework import found: {result.stdout}"
