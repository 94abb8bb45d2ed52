"""
API v1 routes.

Defines REST endpoints for the link ownership API.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.dependencies import get_domain_verification_service
from src.api.models import (
    AddPackageRequest,
    ErrorResponse,
    LinkHandlingRequest,
    OwnersResponse,
    PackageStateResponse,
    VerificationRequestBody,
    VerificationRequestResponse,
)
from src.domain.exceptions import HostAlreadyOwned, UndeclaredHost, UnknownPackageState
from src.domain.service import DomainVerificationService

router = APIRouter(tags=["v1"])

PACKAGE_PATH = "/users/{user}/packages/{package_name}"

_not_found = {404: {"model": ErrorResponse, "description": "Unknown package for user"}}


def _unknown_package() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Package state not found",
    )


@router.put(
    PACKAGE_PATH,
    response_model=PackageStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a package for a user",
    description="Create the package's state with every declared host unverified and unselected. "
    "Registering an existing package returns its current state unchanged.",
)
async def add_package(
    user: int,
    package_name: str,
    request_data: AddPackageRequest,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> PackageStateResponse:
    state = service.add_package(user, package_name, request_data.hosts)
    return PackageStateResponse.from_state(state)


@router.get(
    PACKAGE_PATH,
    response_model=PackageStateResponse,
    responses=_not_found,
    summary="Get a package's domain state",
)
async def get_package(
    user: int,
    package_name: str,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> PackageStateResponse:
    try:
        state = service.get_user_state(user, package_name)
    except UnknownPackageState:
        raise _unknown_package() from None
    return PackageStateResponse.from_state(state)


@router.delete(
    PACKAGE_PATH,
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_not_found,
    summary="Remove a package for a user",
    description="Deletes the package's state and releases every host it owned.",
)
async def remove_package(
    user: int,
    package_name: str,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> Response:
    try:
        service.remove_package(user, package_name)
    except UnknownPackageState:
        raise _unknown_package() from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    PACKAGE_PATH + "/hosts/{host}/verify",
    response_model=PackageStateResponse,
    responses=_not_found,
    summary="Mark a host as verified",
    description="Records a successful verification. Never evicts other packages.",
)
async def verify_host(
    user: int,
    package_name: str,
    host: str,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> PackageStateResponse:
    try:
        state = service.set_verified(user, package_name, host)
    except UnknownPackageState:
        raise _unknown_package() from None
    return PackageStateResponse.from_state(state)


@router.put(
    PACKAGE_PATH + "/hosts/{host}/selection",
    response_model=PackageStateResponse,
    responses={
        **_not_found,
        409: {"model": ErrorResponse, "description": "Host owned by another package"},
        422: {"model": ErrorResponse, "description": "Host not declared by the package"},
    },
    summary="Select a host for a package",
    description="Only a single package can be selected for a host unless the packages "
    "are all verified for it. Only hosts the package declared can be selected.",
)
async def select_host(
    user: int,
    package_name: str,
    host: str,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> PackageStateResponse:
    try:
        state = service.set_selected(user, package_name, host)
    except UnknownPackageState:
        raise _unknown_package() from None
    except HostAlreadyOwned as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Host already owned by {e.owner}",
        ) from None
    except UndeclaredHost:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Host not declared by package",
        ) from None
    return PackageStateResponse.from_state(state)


@router.delete(
    PACKAGE_PATH + "/hosts/{host}/selection",
    response_model=PackageStateResponse,
    responses=_not_found,
    summary="Clear a host selection",
)
async def unselect_host(
    user: int,
    package_name: str,
    host: str,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> PackageStateResponse:
    try:
        state = service.clear_selected(user, package_name, host)
    except UnknownPackageState:
        raise _unknown_package() from None
    return PackageStateResponse.from_state(state)


@router.put(
    PACKAGE_PATH + "/link-handling",
    response_model=PackageStateResponse,
    responses=_not_found,
    summary="Toggle link handling for a package",
    description="When disabled the package opens no links; stored host states are kept.",
)
async def set_link_handling(
    user: int,
    package_name: str,
    request_data: LinkHandlingRequest,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> PackageStateResponse:
    try:
        state = service.set_link_handling_allowed(user, package_name, request_data.allowed)
    except UnknownPackageState:
        raise _unknown_package() from None
    return PackageStateResponse.from_state(state)


@router.get(
    "/users/{user}/hosts/{host}/owners",
    response_model=OwnersResponse,
    summary="List packages that would open a host",
)
async def get_owners(
    user: int,
    host: str,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> OwnersResponse:
    owners = service.get_owners(user, host)
    return OwnersResponse(host=host.strip().lower(), owners=sorted(owners))


@router.post(
    "/verification-requests",
    response_model=VerificationRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request re-verification of packages",
    description="Hands the package names to the domain verification agent.",
)
async def request_verification(
    request_data: VerificationRequestBody,
    service: DomainVerificationService = Depends(get_domain_verification_service),
) -> VerificationRequestResponse:
    request = service.request_verification(request_data.package_names)
    return VerificationRequestResponse(
        message="Verification requested",
        package_names=sorted(request.package_names),
    )
