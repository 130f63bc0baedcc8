"""
API v1 role routes - role and privilege management.

Reads require an ``admin`` or ``super admin`` token; changes additionally
require the ``manage_roles`` privilege.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_role_service, require_admin, require_privilege
from src.api.models import (
    CreateRoleRequest,
    ErrorResponse,
    MessageResponse,
    RoleModel,
    RoleResponse,
    UpdateRoleRequest,
)
from src.domain.roles import RoleService

router = APIRouter(
    prefix="/roles",
    tags=["roles"],
    dependencies=[Depends(require_admin)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing token"},
        403: {"model": ErrorResponse, "description": "Insufficient role or privilege"},
    },
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Role not found"}}
_MANAGE_ROLES = [Depends(require_privilege("manage_roles"))]


@router.get("", response_model=list[RoleModel], summary="List roles")
def list_roles(service: RoleService = Depends(get_role_service)) -> list[RoleModel]:
    return [RoleModel.from_record(role) for role in service.list_roles()]


@router.get("/{role_id}", response_model=RoleModel, responses=_NOT_FOUND, summary="Get a role")
def get_role(role_id: int, service: RoleService = Depends(get_role_service)) -> RoleModel:
    return RoleModel.from_record(service.get_role(role_id))


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=_MANAGE_ROLES,
    summary="Create a role",
)
def create_role(
    request_data: CreateRoleRequest,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    role = service.create_role(request_data.name, request_data.privileges)
    return RoleResponse(message="Role created successfully", role=RoleModel.from_record(role))


@router.put(
    "/{role_id}",
    response_model=RoleResponse,
    responses=_NOT_FOUND,
    dependencies=_MANAGE_ROLES,
    summary="Update a role",
)
def update_role(
    role_id: int,
    request_data: UpdateRoleRequest,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    role = service.update_role(role_id, request_data.name, request_data.privileges)
    return RoleResponse(message="Role updated successfully", role=RoleModel.from_record(role))


@router.delete(
    "/{role_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    dependencies=_MANAGE_ROLES,
    summary="Delete a role",
)
def delete_role(
    role_id: int, service: RoleService = Depends(get_role_service)
) -> MessageResponse:
    service.delete_role(role_id)
    return MessageResponse(message="Role deleted successfully")
