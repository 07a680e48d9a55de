import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from caseflow.api.deps import AuthContextDep, SessionDep
from caseflow.api.permissions import Action, Resource, require_permission
from caseflow.core.exception_handlers import NotFoundException
from caseflow.crud import (
    create_role,
    delete_role,
    get_role_by_id,
    list_roles,
    resolve_form_stage_permissions,
    update_role,
)
from caseflow.models import FormStageAccess, RoleCreate, RolePublic, RoleUpdate
from caseflow.utils import APIResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get(
    "/",
    dependencies=[Depends(require_permission(Resource.ROLES, Action.READ))],
    response_model=APIResponse[List[RolePublic]],
)
def read_roles(session: SessionDep, include_inactive: bool = Query(False)):
    roles = list_roles(session=session, include_inactive=include_inactive)
    return APIResponse.success_response(roles)


@router.get(
    "/me/form-stage-permissions",
    response_model=APIResponse[dict[str, FormStageAccess]],
)
def read_my_form_stage_permissions(auth_context: AuthContextDep):
    """
    Read/update access of the caller to each counseling form section. The
    `*` entry applies to sections without an explicit entry.
    """
    if auth_context.role is None:
        logger.error(
            f"[read_my_form_stage_permissions] Role missing | user_id={auth_context.user.id}, role={auth_context.user.role}"
        )
        raise NotFoundException("Role not found")
    return APIResponse.success_response(
        resolve_form_stage_permissions(auth_context.role)
    )


@router.post(
    "/",
    dependencies=[Depends(require_permission(Resource.ROLES, Action.CREATE))],
    response_model=APIResponse[RolePublic],
    status_code=201,
)
def create_new_role(*, session: SessionDep, role_in: RoleCreate):
    role = create_role(session=session, role_create=role_in)
    return APIResponse.success_response(role)


@router.get(
    "/{role_id}",
    dependencies=[Depends(require_permission(Resource.ROLES, Action.READ))],
    response_model=APIResponse[RolePublic],
)
def read_role(*, session: SessionDep, role_id: int):
    role = get_role_by_id(session=session, role_id=role_id)
    if role is None:
        logger.error(f"[read_role] Role not found | role_id={role_id}")
        raise NotFoundException("Role not found")
    return APIResponse.success_response(role)


@router.put(
    "/{role_id}",
    dependencies=[Depends(require_permission(Resource.ROLES, Action.UPDATE))],
    response_model=APIResponse[RolePublic],
)
def update_existing_role(*, session: SessionDep, role_id: int, role_in: RoleUpdate):
    role = update_role(session=session, role_id=role_id, role_update=role_in)
    return APIResponse.success_response(role)


@router.delete(
    "/{role_id}",
    dependencies=[Depends(require_permission(Resource.ROLES, Action.DELETE))],
    response_model=APIResponse[dict],
)
def delete_existing_role(*, session: SessionDep, role_id: int):
    delete_role(session=session, role_id=role_id)
    return APIResponse.success_response({"message": "Role deleted"})
