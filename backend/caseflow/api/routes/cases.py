import logging
from typing import List

from fastapi import APIRouter, Query

from caseflow.api.deps import AuthContextDep, SessionDep
from caseflow.api.permissions import Action, Resource, has_permission, is_admin
from caseflow.core.exception_handlers import PermissionDeniedException
from caseflow.core.workflow.assignment import (
    list_available_counselors,
    validate_counselor,
)
from caseflow.core.workflow.evaluator import (
    evaluate_case_permissions,
    evaluate_stage_permissions,
    require_case_permission,
    resolve_case_stage,
)
from caseflow.core.workflow.sla import calculate_sla_status
from caseflow.crud import (
    apply_workflow_action,
    create_case,
    get_case,
    get_first_stage,
    get_user,
    list_stages,
    update_case,
)
from caseflow.models import (
    CaseCreate,
    CaseDetail,
    CasePublic,
    CaseUpdate,
    CaseWorkflowActionRequest,
    CounselorPublic,
    StagePermissionSummary,
    WorkflowAction,
)
from caseflow.utils import APIResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cases", tags=["Cases"])


@router.get(
    "/available-counselors",
    response_model=APIResponse[List[CounselorPublic]],
)
def read_available_counselors(
    session: SessionDep,
    auth_context: AuthContextDep,
    case_id: int | None = Query(None, alias="caseId"),
    jamiat_id: int | None = Query(None),
    jamaat_id: int | None = Query(None),
):
    counselors = list_available_counselors(
        session, case_id=case_id, jamiat_id=jamiat_id, jamaat_id=jamaat_id
    )
    return APIResponse.success_response(counselors)


@router.get(
    "/counselor-permissions/{user_id}",
    response_model=APIResponse[List[StagePermissionSummary]],
)
def read_counselor_permissions(
    session: SessionDep, auth_context: AuthContextDep, user_id: int
):
    """
    Evaluated permissions of one user on every active stage.
    """
    if auth_context.user.id != user_id and not has_permission(
        auth_context, Resource.USERS, Action.READ
    ):
        raise PermissionDeniedException(
            "You can only view your own stage permissions"
        )

    user = get_user(session=session, user_id=user_id)
    summaries = [
        StagePermissionSummary(
            stage_id=stage.id,
            stage_key=stage.stage_key,
            stage_name=stage.stage_name,
            case_type_id=stage.case_type_id,
            permissions=evaluate_stage_permissions(session, user, stage),
        )
        for stage in list_stages(session=session)
    ]
    return APIResponse.success_response(summaries)


@router.post(
    "/",
    response_model=APIResponse[CasePublic],
    status_code=201,
)
def create_new_case(
    *, session: SessionDep, auth_context: AuthContextDep, case_in: CaseCreate
):
    first_stage = get_first_stage(session=session, case_type_id=case_in.case_type_id)

    if not has_permission(auth_context, Resource.CASES, Action.CREATE):
        permissions = evaluate_stage_permissions(session, auth_context.user, first_stage)
        if not permissions.can_create_case:
            logger.warning(
                f"[create_new_case] Permission denied | user_id={auth_context.user.id}, stage_id={first_stage.id}"
            )
            raise PermissionDeniedException(
                "You do not have permission to create cases in this workflow"
            )

    if case_in.assigned_counselor_id is not None:
        validate_counselor(session, case_in.assigned_counselor_id)

    case = create_case(session=session, case_create=case_in, first_stage=first_stage)
    return APIResponse.success_response(case)


@router.get(
    "/{case_id}",
    response_model=APIResponse[CaseDetail],
)
def read_case(*, session: SessionDep, auth_context: AuthContextDep, case_id: int):
    """
    Case with the caller's permissions at its current stage and its SLA status.
    """
    case = get_case(session=session, case_id=case_id)
    stage = resolve_case_stage(session, case)
    permissions = require_case_permission(session, auth_context.user, case, "can_view")

    detail = CaseDetail(
        case=CasePublic.model_validate(case),
        workflow_permissions=permissions,
        sla=calculate_sla_status(stage, case.current_stage_entered_at),
    )
    return APIResponse.success_response(detail)


@router.put(
    "/{case_id}",
    response_model=APIResponse[CasePublic],
)
def update_existing_case(
    *,
    session: SessionDep,
    auth_context: AuthContextDep,
    case_id: int,
    case_in: CaseUpdate,
):
    case = get_case(session=session, case_id=case_id)
    update_data = case_in.model_dump(exclude_unset=True)

    if "assigned_counselor_id" in update_data:
        if not (
            is_admin(auth_context)
            or has_permission(auth_context, Resource.CASES, Action.ASSIGN_COUNSELOR)
        ):
            raise PermissionDeniedException(
                "You do not have permission to assign counselors"
            )
        if update_data["assigned_counselor_id"] is not None:
            validate_counselor(session, update_data["assigned_counselor_id"])

    if update_data.get("status") is not None:
        require_case_permission(session, auth_context.user, case, "can_edit")

    case = update_case(session=session, case=case, update_data=update_data)
    return APIResponse.success_response(case)


@router.put(
    "/{case_id}/workflow-action",
    response_model=APIResponse[CasePublic],
)
def apply_case_workflow_action(
    *,
    session: SessionDep,
    auth_context: AuthContextDep,
    case_id: int,
    action_in: CaseWorkflowActionRequest,
):
    """
    Approve moves the case to the next active stage, reject sends it back to
    the previous one.
    """
    case = get_case(session=session, case_id=case_id)
    stage = resolve_case_stage(session, case)

    flag = "can_approve" if action_in.action == WorkflowAction.APPROVE else "can_reject"
    require_case_permission(session, auth_context.user, case, flag)

    case = apply_workflow_action(
        session=session, case=case, stage=stage, action=action_in.action
    )
    return APIResponse.success_response(case)
