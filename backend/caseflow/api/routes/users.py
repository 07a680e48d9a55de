import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from caseflow.api.deps import CurrentUser, SessionDep
from caseflow.api.permissions import Action, Resource, require_permission
from caseflow.crud import assign_role, create_user, get_user, list_users
from caseflow.models import UserCreate, UserPublic, UserRoleAssign
from caseflow.utils import APIResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=APIResponse[UserPublic])
def read_user_me(current_user: CurrentUser):
    return APIResponse.success_response(current_user)


@router.get(
    "/",
    dependencies=[Depends(require_permission(Resource.USERS, Action.READ))],
    response_model=APIResponse[List[UserPublic]],
)
def read_users(
    session: SessionDep,
    role: str | None = Query(None),
    include_inactive: bool = Query(False),
):
    users = list_users(session=session, role=role, include_inactive=include_inactive)
    return APIResponse.success_response(users)


@router.post(
    "/",
    dependencies=[Depends(require_permission(Resource.USERS, Action.CREATE))],
    response_model=APIResponse[UserPublic],
    status_code=201,
)
def create_new_user(*, session: SessionDep, user_in: UserCreate):
    """
    Create a user with its role, areas and initial stage bindings.
    """
    user = create_user(session=session, user_create=user_in)
    return APIResponse.success_response(user)


@router.get(
    "/{user_id}",
    dependencies=[Depends(require_permission(Resource.USERS, Action.READ))],
    response_model=APIResponse[UserPublic],
)
def read_user(*, session: SessionDep, user_id: int):
    user = get_user(session=session, user_id=user_id)
    return APIResponse.success_response(user)


@router.put(
    "/{user_id}/role",
    dependencies=[Depends(require_permission(Resource.USERS, Action.UPDATE))],
    response_model=APIResponse[UserPublic],
)
def assign_user_role(*, session: SessionDep, user_id: int, role_in: UserRoleAssign):
    user = assign_role(session=session, user_id=user_id, role_assign=role_in)
    return APIResponse.success_response(user)
