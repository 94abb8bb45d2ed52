"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.user_state import PackageUserState


class AddPackageRequest(BaseModel):
    """Request model for registering a package's declared hosts."""

    hosts: list[str] = Field(default_factory=list, description="Web domains declared by the package")


class LinkHandlingRequest(BaseModel):
    """Request model for toggling a package's link handling."""

    allowed: bool


class PackageStateResponse(BaseModel):
    """Response model describing one package's state for one user."""

    identifier: UUID
    package_name: str
    user: int
    link_handling_allowed: bool
    host_to_state: dict[str, str] = Field(description="Host to NONE, SELECTED or VERIFIED")

    @classmethod
    def from_state(cls, state: PackageUserState) -> "PackageStateResponse":
        return cls(
            identifier=state.identifier,
            package_name=state.package_name,
            user=state.user,
            link_handling_allowed=state.link_handling_allowed,
            host_to_state={host: value.name for host, value in state.host_to_state.items()},
        )


class OwnersResponse(BaseModel):
    """Response model listing the packages that would open a host."""

    host: str
    owners: list[str]


class VerificationRequestBody(BaseModel):
    """Request model for triggering re-verification."""

    package_names: list[str] = Field(..., min_length=1)


class VerificationRequestResponse(BaseModel):
    """Response model for an accepted re-verification request."""

    message: str
    package_names: list[str]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
