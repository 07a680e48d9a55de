"""
Effective workflow permissions of a user on a case.

The permissions come from the stage the case currently sits at:

* `super_admin` gets every flag.
* Otherwise the stage-role binding of the user's role and the stage-user
  binding of the user are merged flag by flag with OR. `can_reject`,
  `can_edit` and `can_delete` exist only on role bindings.
* On counselor stages a counselor who is not the case's assigned counselor
  loses the mutating flags.

A case whose status matches no active stage of its case type is a
configuration error and raises `StageNotConfiguredException`.
"""

import logging

from sqlmodel import Session

from caseflow.core.config import settings
from caseflow.core.exception_handlers import (
    PermissionDeniedException,
    StageNotConfiguredException,
)
from caseflow.crud.stage_binding import (
    get_role_binding_by_name,
    get_user_binding,
    list_bound_role_names,
)
from caseflow.crud.workflow_stage import get_active_stage_by_key
from caseflow.models import (
    MUTATING_FLAGS,
    ROLE_ONLY_FLAGS,
    Case,
    User,
    WorkflowPermissions,
    WorkflowStage,
)

logger = logging.getLogger(__name__)

FLAG_ACTIONS = {
    "can_approve": "approve",
    "can_reject": "reject",
    "can_review": "review",
    "can_view": "view",
    "can_edit": "edit",
    "can_delete": "delete",
    "can_create_case": "create cases in",
    "can_fill_case": "fill",
}


def is_super_admin(user: User) -> bool:
    return user.role == settings.SUPER_ADMIN_ROLE


def is_counselor_role(role_name: str) -> bool:
    return (
        role_name in settings.COUNSELOR_ROLE_NAMES
        and role_name not in settings.ADMIN_ROLE_NAMES
    )


def is_counselor_stage(stage: WorkflowStage) -> bool:
    return settings.COUNSELOR_STAGE_KEYWORD in stage.stage_key


def resolve_case_stage(session: Session, case: Case) -> WorkflowStage:
    stage = get_active_stage_by_key(
        session=session, case_type_id=case.case_type_id, stage_key=case.status
    )
    if stage is None:
        logger.error(
            f"[resolve_case_stage] No active stage for case status | case_id={case.id}, case_type_id={case.case_type_id}, status={case.status}"
        )
        raise StageNotConfiguredException(case.case_type_id, case.status)
    return stage


def evaluate_stage_permissions(
    session: Session, user: User, stage: WorkflowStage
) -> WorkflowPermissions:
    """Merged role and user binding permissions of `user` at `stage`."""
    if is_super_admin(user):
        return WorkflowPermissions.all_granted()

    role_binding = get_role_binding_by_name(
        session=session, stage_id=stage.id, role_name=user.role
    )
    user_binding = get_user_binding(session=session, stage_id=stage.id, user_id=user.id)

    # A user binding whose role is not bound to the stage is dormant. Stages
    # without any role binding accept user bindings unless the strict policy
    # is on.
    if role_binding is None and user_binding is not None:
        if settings.STRICT_STAGE_USER_BINDINGS or list_bound_role_names(
            session=session, stage_id=stage.id
        ):
            user_binding = None

    merged = {}
    for flag in WorkflowPermissions.model_fields:
        granted = bool(getattr(role_binding, flag, False))
        if user_binding is not None and flag not in ROLE_ONLY_FLAGS:
            granted = granted or bool(getattr(user_binding, flag, False))
        merged[flag] = granted

    return WorkflowPermissions(**merged)


def apply_assignment_exclusivity(
    permissions: WorkflowPermissions, user: User, case: Case, stage: WorkflowStage
) -> WorkflowPermissions:
    if (
        case.assigned_counselor_id is None
        or not is_counselor_stage(stage)
        or user.id == case.assigned_counselor_id
        or not is_counselor_role(user.role)
    ):
        return permissions

    blocked = {flag: False for flag in MUTATING_FLAGS}
    if settings.RESTRICT_UNASSIGNED_COUNSELOR_VIEW:
        blocked["can_view"] = False
    logger.info(
        f"[apply_assignment_exclusivity] Case assigned to another counselor | case_id={case.id}, user_id={user.id}, assigned_counselor_id={case.assigned_counselor_id}"
    )
    return permissions.model_copy(update=blocked)


def evaluate_case_permissions(
    session: Session, user: User, case: Case
) -> WorkflowPermissions:
    stage = resolve_case_stage(session, case)
    if is_super_admin(user):
        return WorkflowPermissions.all_granted()

    permissions = evaluate_stage_permissions(session, user, stage)
    return apply_assignment_exclusivity(permissions, user, case, stage)


def require_case_permission(
    session: Session, user: User, case: Case, flag: str
) -> WorkflowPermissions:
    """
    Evaluate the user's permissions on the case and raise
    `PermissionDeniedException` unless `flag` is granted.
    """
    permissions = evaluate_case_permissions(session, user, case)
    if not getattr(permissions, flag):
        logger.warning(
            f"[require_case_permission] Permission denied | case_id={case.id}, user_id={user.id}, flag={flag}"
        )
        raise PermissionDeniedException(
            f"You do not have permission to {FLAG_ACTIONS.get(flag, flag)} this case"
        )
    return permissions
