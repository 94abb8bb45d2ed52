"""
Unit tests for API request/response models.

Tests Pydantic model validation for the link ownership endpoints.
"""

import uuid

import pytest
from pydantic import ValidationError

from src.api.models import (
    AddPackageRequest,
    ErrorResponse,
    LinkHandlingRequest,
    OwnersResponse,
    PackageStateResponse,
    VerificationRequestBody,
)
from src.domain.ports import DomainState
from src.domain.user_state import PackageUserState


class TestAddPackageRequest:
    def test_hosts_default_empty(self) -> None:
        assert AddPackageRequest().hosts == []

    def test_hosts_must_be_strings(self) -> None:
        with pytest.raises(ValidationError):
            AddPackageRequest(hosts=[{"host": "example.com"}])


class TestLinkHandlingRequest:
    def test_allowed_required(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LinkHandlingRequest()
        assert "allowed" in str(exc_info.value)

    def test_allowed_bool(self) -> None:
        assert LinkHandlingRequest(allowed=False).allowed is False


class TestPackageStateResponse:
    def test_from_state_renders_state_names(self) -> None:
        identifier = uuid.uuid4()
        state = PackageUserState(
            identifier=identifier,
            package_name="com.example.app",
            user=10,
            link_handling_allowed=False,
            host_to_state={
                "a.com": DomainState.NONE,
                "b.com": DomainState.SELECTED,
                "c.com": DomainState.VERIFIED,
            },
        )

        response = PackageStateResponse.from_state(state)

        assert response.identifier == identifier
        assert response.user == 10
        assert response.link_handling_allowed is False
        assert response.host_to_state == {"a.com": "NONE", "b.com": "SELECTED", "c.com": "VERIFIED"}


class TestVerificationRequestBody:
    def test_package_names_required(self) -> None:
        with pytest.raises(ValidationError):
            VerificationRequestBody()

    def test_package_names_not_empty(self) -> None:
        with pytest.raises(ValidationError):
            VerificationRequestBody(package_names=[])

    def test_valid(self) -> None:
        assert VerificationRequestBody(package_names=["com.a"]).package_names == ["com.a"]


class TestSimpleResponses:
    def test_owners_response(self) -> None:
        response = OwnersResponse(host="example.com", owners=["com.a"])
        assert response.model_dump() == {"host": "example.com", "owners": ["com.a"]}

    def test_error_response(self) -> None:
        assert ErrorResponse(detail="Package state not found").detail == "Package state not found"
