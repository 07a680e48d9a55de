import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from caseflow.api.deps import SessionDep
from caseflow.api.permissions import Action, Resource, require_permission
from caseflow.crud import (
    add_role_to_stage,
    add_user_to_stage,
    create_stage,
    get_stage,
    get_stage_detail,
    list_available_roles,
    list_available_users,
    list_stages,
    list_workflow_by_case_type,
    remove_role_from_stage,
    remove_user_from_stage,
    reorder_stages,
    resolve_reorder_case_type,
    restore_stage,
    soft_delete_stage,
    update_role_permissions,
    update_stage,
    update_user_permissions,
)
from caseflow.models import (
    CaseTypeWorkflow,
    RolePublic,
    StageReorderRequest,
    StageRoleBindingCreate,
    StageRoleBindingPublic,
    StageRoleFlags,
    StageUserBindingCreate,
    StageUserBindingPublic,
    StageUserFlags,
    UserPublic,
    WorkflowStageCreate,
    WorkflowStageDetail,
    WorkflowStagePublic,
    WorkflowStageUpdate,
)
from caseflow.utils import APIResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/workflow-stages", tags=["Workflow Stages"])

can_read = Depends(require_permission(Resource.MASTER, Action.READ))
can_create = Depends(require_permission(Resource.MASTER, Action.CREATE))
can_update = Depends(require_permission(Resource.MASTER, Action.UPDATE))
can_delete = Depends(require_permission(Resource.MASTER, Action.DELETE))


@router.get(
    "/",
    dependencies=[can_read],
    response_model=APIResponse[List[WorkflowStagePublic]],
)
def read_stages(
    session: SessionDep,
    case_type_id: int | None = Query(None),
    include_deleted: bool = Query(False),
):
    stages = list_stages(
        session=session, case_type_id=case_type_id, include_deleted=include_deleted
    )
    return APIResponse.success_response(stages)


@router.get(
    "/by-case-type",
    dependencies=[can_read],
    response_model=APIResponse[List[CaseTypeWorkflow]],
)
def read_stages_by_case_type(session: SessionDep, include_deleted: bool = Query(False)):
    """
    Stage registry grouped by case type, with role and user bindings.
    """
    workflows = list_workflow_by_case_type(
        session=session, include_deleted=include_deleted
    )
    return APIResponse.success_response(workflows)


@router.get(
    "/available/roles",
    dependencies=[can_read],
    response_model=APIResponse[List[RolePublic]],
)
def read_available_roles(session: SessionDep, stage_id: int | None = Query(None)):
    roles = list_available_roles(session=session, stage_id=stage_id)
    return APIResponse.success_response(roles)


@router.get(
    "/available/users",
    dependencies=[can_read],
    response_model=APIResponse[List[UserPublic]],
)
def read_available_users(session: SessionDep, stage_id: int | None = Query(None)):
    users = list_available_users(session=session, stage_id=stage_id)
    return APIResponse.success_response(users)


@router.post(
    "/",
    dependencies=[can_create],
    response_model=APIResponse[WorkflowStagePublic],
    status_code=201,
)
def create_new_stage(*, session: SessionDep, stage_in: WorkflowStageCreate):
    stage = create_stage(session=session, stage_create=stage_in)
    return APIResponse.success_response(stage)


# Declared before /{stage_id} so "reorder" is not parsed as an id
@router.put(
    "/reorder",
    dependencies=[can_update],
    response_model=APIResponse[List[WorkflowStagePublic]],
)
def reorder_workflow_stages(*, session: SessionDep, reorder_in: StageReorderRequest):
    case_type_id = resolve_reorder_case_type(
        session=session,
        stage_ids=reorder_in.stage_ids,
        case_type_id=reorder_in.case_type_id,
    )
    stages = reorder_stages(
        session=session, case_type_id=case_type_id, stage_ids=reorder_in.stage_ids
    )
    return APIResponse.success_response(stages)


@router.get(
    "/{stage_id}",
    dependencies=[can_read],
    response_model=APIResponse[WorkflowStageDetail],
)
def read_stage(*, session: SessionDep, stage_id: int):
    stage = get_stage(session=session, stage_id=stage_id)
    return APIResponse.success_response(get_stage_detail(session=session, stage=stage))


@router.put(
    "/{stage_id}",
    dependencies=[can_update],
    response_model=APIResponse[WorkflowStagePublic],
)
def update_existing_stage(
    *, session: SessionDep, stage_id: int, stage_in: WorkflowStageUpdate
):
    stage = update_stage(session=session, stage_id=stage_id, stage_update=stage_in)
    return APIResponse.success_response(stage)


@router.delete(
    "/{stage_id}",
    dependencies=[can_delete],
    response_model=APIResponse[WorkflowStagePublic],
)
def delete_stage(*, session: SessionDep, stage_id: int):
    """
    Soft delete: the stage is hidden from the workflow, its bindings are kept.
    """
    stage = soft_delete_stage(session=session, stage_id=stage_id)
    return APIResponse.success_response(stage)


@router.put(
    "/{stage_id}/restore",
    dependencies=[can_update],
    response_model=APIResponse[WorkflowStagePublic],
)
def restore_deleted_stage(*, session: SessionDep, stage_id: int):
    stage = restore_stage(session=session, stage_id=stage_id)
    return APIResponse.success_response(stage)


@router.post(
    "/{stage_id}/roles",
    dependencies=[can_update],
    response_model=APIResponse[StageRoleBindingPublic],
    status_code=201,
)
def bind_role(*, session: SessionDep, stage_id: int, binding_in: StageRoleBindingCreate):
    binding = add_role_to_stage(session=session, stage_id=stage_id, binding_in=binding_in)
    return APIResponse.success_response(binding)


@router.put(
    "/{stage_id}/roles/{role_id}",
    dependencies=[can_update],
    response_model=APIResponse[StageRoleBindingPublic],
)
def update_role_binding(
    *, session: SessionDep, stage_id: int, role_id: int, flags_in: StageRoleFlags
):
    binding = update_role_permissions(
        session=session, stage_id=stage_id, role_id=role_id, flags=flags_in
    )
    return APIResponse.success_response(binding)


@router.delete(
    "/{stage_id}/roles/{role_id}",
    dependencies=[can_update],
    response_model=APIResponse[dict],
)
def unbind_role(*, session: SessionDep, stage_id: int, role_id: int):
    remove_role_from_stage(session=session, stage_id=stage_id, role_id=role_id)
    return APIResponse.success_response({"message": "Role removed from stage"})


@router.post(
    "/{stage_id}/users",
    dependencies=[can_update],
    response_model=APIResponse[StageUserBindingPublic],
    status_code=201,
)
def bind_user(*, session: SessionDep, stage_id: int, binding_in: StageUserBindingCreate):
    binding = add_user_to_stage(session=session, stage_id=stage_id, binding_in=binding_in)
    return APIResponse.success_response(binding)


@router.put(
    "/{stage_id}/users/{user_id}",
    dependencies=[can_update],
    response_model=APIResponse[StageUserBindingPublic],
)
def update_user_binding(
    *, session: SessionDep, stage_id: int, user_id: int, flags_in: StageUserFlags
):
    binding = update_user_permissions(
        session=session, stage_id=stage_id, user_id=user_id, flags=flags_in
    )
    return APIResponse.success_response(binding)


@router.delete(
    "/{stage_id}/users/{user_id}",
    dependencies=[can_update],
    response_model=APIResponse[dict],
)
def unbind_user(*, session: SessionDep, stage_id: int, user_id: int):
    remove_user_from_stage(session=session, stage_id=stage_id, user_id=user_id)
    return APIResponse.success_response({"message": "User removed from stage"})
