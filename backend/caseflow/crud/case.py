import logging
from typing import Any, Optional

from sqlmodel import Session, select

from caseflow.core.exception_handlers import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from caseflow.core.util import now
from caseflow.crud.case_type import validate_case_type
from caseflow.crud.workflow_stage import (
    get_active_stage_by_key,
    list_stages_by_case_type,
)
from caseflow.models import Case, CaseCreate, WorkflowAction, WorkflowStage

logger = logging.getLogger(__name__)


def get_case_by_id(*, session: Session, case_id: int) -> Optional[Case]:
    return session.get(Case, case_id)


def get_case_by_number(*, session: Session, case_number: str) -> Optional[Case]:
    statement = select(Case).where(Case.case_number == case_number)
    return session.exec(statement).first()


def get_case(*, session: Session, case_id: int) -> Case:
    case = get_case_by_id(session=session, case_id=case_id)
    if not case:
        logger.error(f"[get_case] Case not found | case_id={case_id}")
        raise NotFoundException("Case not found")
    return case


def get_first_stage(*, session: Session, case_type_id: int) -> WorkflowStage:
    stages = list_stages_by_case_type(session=session, case_type_id=case_type_id)
    if not stages:
        logger.error(
            f"[get_first_stage] Case type has no active stages | case_type_id={case_type_id}"
        )
        raise ValidationException("Case type has no active workflow stages")
    return stages[0]


def get_adjacent_stage(
    *, session: Session, stage: WorkflowStage, step: int
) -> Optional[WorkflowStage]:
    """Active stage `step` positions away from `stage` in its case type."""
    stages = list_stages_by_case_type(session=session, case_type_id=stage.case_type_id)
    ids = [item.id for item in stages]
    if stage.id not in ids:
        return None
    position = ids.index(stage.id) + step
    if 0 <= position < len(stages):
        return stages[position]
    return None


def create_case(
    *, session: Session, case_create: CaseCreate, first_stage: WorkflowStage
) -> Case:
    """Create a case at the given first stage of its case type."""
    validate_case_type(session, case_create.case_type_id)

    if get_case_by_number(session=session, case_number=case_create.case_number):
        logger.error(
            f"[create_case] Case number already exists | case_number={case_create.case_number}"
        )
        raise ConflictException("Case number already exists")

    timestamp = now()
    case = Case.model_validate(
        case_create,
        update={
            "status": first_stage.stage_key,
            "current_stage_entered_at": timestamp,
            "inserted_at": timestamp,
            "updated_at": timestamp,
        },
    )
    session.add(case)
    session.commit()
    session.refresh(case)
    logger.info(
        f"[create_case] Case created | case_id={case.id}, case_type_id={case.case_type_id}, status={case.status}"
    )
    return case


def _enter_stage(case: Case, stage: WorkflowStage) -> None:
    if case.status != stage.stage_key:
        case.status = stage.stage_key
        case.current_stage_entered_at = now()


def update_case(*, session: Session, case: Case, update_data: dict[str, Any]) -> Case:
    """
    Apply `assigned_counselor_id` and `status` changes to a case.

    A new status must be the key of an active stage of the case's type.
    """
    if "status" in update_data and update_data["status"] is not None:
        stage = get_active_stage_by_key(
            session=session,
            case_type_id=case.case_type_id,
            stage_key=update_data["status"],
        )
        if stage is None:
            raise ValidationException(
                f"Status '{update_data['status']}' is not an active stage of this case type"
            )
        _enter_stage(case, stage)

    if "assigned_counselor_id" in update_data:
        case.assigned_counselor_id = update_data["assigned_counselor_id"]

    case.updated_at = now()
    session.add(case)
    session.commit()
    session.refresh(case)
    logger.info(
        f"[update_case] Case updated | case_id={case.id}, status={case.status}, assigned_counselor_id={case.assigned_counselor_id}"
    )
    return case


def apply_workflow_action(
    *, session: Session, case: Case, stage: WorkflowStage, action: WorkflowAction
) -> Case:
    """
    Approve moves the case to the next active stage, reject moves it back to
    the previous one.
    """
    step = 1 if action == WorkflowAction.APPROVE else -1
    target = get_adjacent_stage(session=session, stage=stage, step=step)
    if target is None:
        if action == WorkflowAction.APPROVE:
            raise ValidationException("Case is already at the final workflow stage")
        raise ValidationException("Case is already at the first workflow stage")

    _enter_stage(case, target)
    case.updated_at = now()
    session.add(case)
    session.commit()
    session.refresh(case)
    logger.info(
        f"[apply_workflow_action] Case moved | case_id={case.id}, action={action.value}, from={stage.stage_key}, to={target.stage_key}"
    )
    return case
