"""
API v1 admin routes - registration review and account management.

Every route requires an ``admin`` or ``super admin`` token. Account
mutations additionally require the matching privilege from the role store.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_account_service,
    get_approval_service,
    require_admin,
    require_privilege,
)
from src.api.models import (
    AccountDecisionResponse,
    AccountProfile,
    AccountResponse,
    ApproveRequest,
    CreateAccountRequest,
    ErrorResponse,
    MessageResponse,
    UpdateAccountRequest,
)
from src.domain.accounts import AccountService
from src.domain.approval import ApprovalService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing token"},
        403: {"model": ErrorResponse, "description": "Insufficient role or privilege"},
    },
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "User not found"}}


@router.get(
    "/registration-requests",
    response_model=list[AccountProfile],
    summary="List registrations awaiting approval",
)
def registration_requests(
    service: ApprovalService = Depends(get_approval_service),
) -> list[AccountProfile]:
    return [AccountProfile.from_account(account) for account in service.list_pending()]


@router.post(
    "/approve-user/{account_id}",
    response_model=AccountDecisionResponse,
    responses={
        **_NOT_FOUND,
        400: {"model": ErrorResponse, "description": "Invalid role or already processed"},
    },
    summary="Approve a pending registration",
)
def approve_user(
    account_id: int,
    request_data: ApproveRequest,
    service: ApprovalService = Depends(get_approval_service),
) -> AccountDecisionResponse:
    account = service.approve(account_id, request_data.role)
    return AccountDecisionResponse(
        message="User approved successfully", user=AccountProfile.from_account(account)
    )


@router.post(
    "/reject-user/{account_id}",
    response_model=AccountDecisionResponse,
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse, "description": "Already processed"}},
    summary="Reject a pending registration",
)
def reject_user(
    account_id: int,
    service: ApprovalService = Depends(get_approval_service),
) -> AccountDecisionResponse:
    account = service.reject(account_id)
    return AccountDecisionResponse(
        message="User rejected successfully", user=AccountProfile.from_account(account)
    )


@router.get("/users", response_model=list[AccountProfile], summary="List all users")
def list_users(
    service: AccountService = Depends(get_account_service),
) -> list[AccountProfile]:
    return [AccountProfile.from_account(account) for account in service.list_accounts()]


@router.get(
    "/users/{account_id}",
    response_model=AccountProfile,
    responses=_NOT_FOUND,
    summary="Get a user by ID",
)
def get_user(
    account_id: int,
    service: AccountService = Depends(get_account_service),
) -> AccountProfile:
    return AccountProfile.from_account(service.get_account(account_id))


@router.post(
    "/users",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_privilege("create_user"))],
    summary="Create an approved user",
)
def create_user(
    request_data: CreateAccountRequest,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    account = service.create_account(
        request_data.email,
        request_data.password,
        request_data.name,
        request_data.surname,
        request_data.birthdate,
        request_data.role,
    )
    return AccountResponse(
        message="User created successfully", user=AccountProfile.from_account(account)
    )


@router.put(
    "/users/{account_id}",
    response_model=AccountResponse,
    responses=_NOT_FOUND,
    dependencies=[Depends(require_privilege("update_user"))],
    summary="Update a user by ID",
)
def update_user(
    account_id: int,
    request_data: UpdateAccountRequest,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    account = service.update_account(account_id, **request_data.model_dump(exclude_unset=True))
    return AccountResponse(
        message="User updated successfully", user=AccountProfile.from_account(account)
    )


@router.delete(
    "/users/{account_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    dependencies=[Depends(require_privilege("delete_user"))],
    summary="Delete a user by ID",
)
def delete_user(
    account_id: int,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    service.delete_account(account_id)
    return MessageResponse(message="User deleted successfully")
