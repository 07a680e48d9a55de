import logging
import re
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from caseflow.core.exception_handlers import (
    NotFoundException,
    ValidationException,
)
from caseflow.core.util import now
from caseflow.crud.case_type import list_case_types, validate_case_type
from caseflow.models import (
    Case,
    CaseTypePublic,
    CaseTypeWorkflow,
    Role,
    SLAUnit,
    StageRoleBinding,
    StageRolePublic,
    StageUserBinding,
    StageUserPublic,
    User,
    WorkflowStage,
    WorkflowStageCreate,
    WorkflowStageDetail,
    WorkflowStageUpdate,
)

logger = logging.getLogger(__name__)

STAGE_KEY_PATTERN = re.compile(r"^[a-z_]+$")
SLA_UNITS = {unit.value for unit in SLAUnit}
BINDING_META_FIELDS = {"stage_id", "inserted_at", "updated_at"}


def validate_stage_key(stage_key: str) -> None:
    if not stage_key or not STAGE_KEY_PATTERN.match(stage_key):
        raise ValidationException(
            "Stage key must contain only lowercase letters and underscores"
        )


def validate_sla(value: float | None, unit: str | None, label: str = "SLA") -> None:
    """A duration is either fully unset or a positive value with a known unit."""
    if value is None and unit is None:
        return
    if value is None or unit is None:
        raise ValidationException(f"{label} value and unit must be provided together")
    if value <= 0:
        raise ValidationException(f"{label} value must be positive")
    if unit not in SLA_UNITS:
        raise ValidationException(
            f"{label} unit must be one of: {', '.join(sorted(SLA_UNITS))}"
        )


def get_stage_by_id(*, session: Session, stage_id: int) -> Optional[WorkflowStage]:
    return session.get(WorkflowStage, stage_id)


def get_stage(*, session: Session, stage_id: int) -> WorkflowStage:
    stage = get_stage_by_id(session=session, stage_id=stage_id)
    if not stage:
        logger.error(f"[get_stage] Workflow stage not found | stage_id={stage_id}")
        raise NotFoundException("Workflow stage not found")
    return stage


def validate_stage(session: Session, stage_id: int) -> WorkflowStage:
    """
    Ensures that a stage exists and has not been soft-deleted.
    """
    stage = get_stage(session=session, stage_id=stage_id)
    if not stage.is_active:
        logger.error(f"[validate_stage] Workflow stage is deleted | stage_id={stage_id}")
        raise NotFoundException("Workflow stage is not active")
    return stage


def get_stage_by_key(
    *, session: Session, case_type_id: int, stage_key: str
) -> Optional[WorkflowStage]:
    statement = select(WorkflowStage).where(
        WorkflowStage.case_type_id == case_type_id,
        WorkflowStage.stage_key == stage_key,
    )
    return session.exec(statement).first()


def get_active_stage_by_key(
    *, session: Session, case_type_id: int, stage_key: str
) -> Optional[WorkflowStage]:
    stage = get_stage_by_key(
        session=session, case_type_id=case_type_id, stage_key=stage_key
    )
    if stage and stage.is_active:
        return stage
    return None


def list_stages_by_case_type(
    *, session: Session, case_type_id: int, include_deleted: bool = False
) -> List[WorkflowStage]:
    statement = select(WorkflowStage).where(
        WorkflowStage.case_type_id == case_type_id
    )
    if not include_deleted:
        statement = statement.where(WorkflowStage.is_active)
    statement = statement.order_by(WorkflowStage.sort_order, WorkflowStage.id)
    return session.exec(statement).all()


def list_stages(
    *,
    session: Session,
    case_type_id: int | None = None,
    include_deleted: bool = False,
) -> List[WorkflowStage]:
    if case_type_id is not None:
        return list_stages_by_case_type(
            session=session, case_type_id=case_type_id, include_deleted=include_deleted
        )

    statement = select(WorkflowStage)
    if not include_deleted:
        statement = statement.where(WorkflowStage.is_active)
    statement = statement.order_by(
        WorkflowStage.case_type_id, WorkflowStage.sort_order, WorkflowStage.id
    )
    return session.exec(statement).all()


def get_stage_detail(*, session: Session, stage: WorkflowStage) -> WorkflowStageDetail:
    """Stage with its role and user bindings."""
    role_rows = session.exec(
        select(StageRoleBinding, Role)
        .join(Role, Role.id == StageRoleBinding.role_id)
        .where(StageRoleBinding.stage_id == stage.id)
        .order_by(Role.name)
    ).all()
    user_rows = session.exec(
        select(StageUserBinding, User)
        .join(User, User.id == StageUserBinding.user_id)
        .where(StageUserBinding.stage_id == stage.id)
        .order_by(User.full_name, User.id)
    ).all()

    roles = [
        StageRolePublic(
            name=role.name,
            display_name=role.display_name,
            **binding.model_dump(exclude=BINDING_META_FIELDS),
        )
        for binding, role in role_rows
    ]
    users = [
        StageUserPublic(
            full_name=user.full_name,
            email=user.email,
            role=user.role,
            **binding.model_dump(exclude=BINDING_META_FIELDS),
        )
        for binding, user in user_rows
    ]
    return WorkflowStageDetail.model_validate(
        stage, update={"roles": roles, "users": users}
    )


def list_workflow_by_case_type(
    *, session: Session, include_deleted: bool = False
) -> List[CaseTypeWorkflow]:
    """Every active case type with its ordered stages and their bindings."""
    workflows = []
    for case_type in list_case_types(session=session):
        stages = list_stages_by_case_type(
            session=session, case_type_id=case_type.id, include_deleted=include_deleted
        )
        workflows.append(
            CaseTypeWorkflow(
                case_type=CaseTypePublic.model_validate(case_type),
                stages=[
                    get_stage_detail(session=session, stage=stage) for stage in stages
                ],
            )
        )
    return workflows


def _next_sort_order(session: Session, case_type_id: int) -> int:
    statement = select(func.max(WorkflowStage.sort_order)).where(
        WorkflowStage.case_type_id == case_type_id
    )
    current_max = session.exec(statement).one()
    return (current_max or 0) + 1


def _stages_from_position(
    session: Session, case_type_id: int, sort_order: int
) -> List[WorkflowStage]:
    statement = select(WorkflowStage).where(
        WorkflowStage.case_type_id == case_type_id,
        WorkflowStage.sort_order >= sort_order,
    )
    return session.exec(statement).all()


def _count_cases_at_stage(session: Session, stage: WorkflowStage) -> int:
    statement = (
        select(func.count())
        .select_from(Case)
        .where(Case.case_type_id == stage.case_type_id, Case.status == stage.stage_key)
    )
    return session.exec(statement).one()


def create_stage(*, session: Session, stage_create: WorkflowStageCreate) -> WorkflowStage:
    validate_case_type(session, stage_create.case_type_id)
    validate_stage_key(stage_create.stage_key)
    if not stage_create.stage_name.strip():
        raise ValidationException("Stage name is required")
    validate_sla(stage_create.sla_value, stage_create.sla_unit)
    validate_sla(
        stage_create.sla_warning_value, stage_create.sla_warning_unit, "SLA warning"
    )

    if get_stage_by_key(
        session=session,
        case_type_id=stage_create.case_type_id,
        stage_key=stage_create.stage_key,
    ):
        logger.error(
            f"[create_stage] Stage key already exists | case_type_id={stage_create.case_type_id}, stage_key={stage_create.stage_key}"
        )
        raise ValidationException("Stage key already exists for this case type")

    next_sort_order = _next_sort_order(session, stage_create.case_type_id)
    sort_order = stage_create.sort_order
    if sort_order is None:
        sort_order = next_sort_order
    elif sort_order > next_sort_order:
        raise ValidationException(
            f"sort_order must be between 1 and {next_sort_order}"
        )

    stage = WorkflowStage.model_validate(
        stage_create, update={"sort_order": sort_order}
    )
    try:
        # Inserting mid-workflow pushes the later stages down by one
        for later in _stages_from_position(
            session, stage_create.case_type_id, sort_order
        ):
            later.sort_order += 1
            session.add(later)
        session.add(stage)
        session.commit()
    except Exception:
        session.rollback()
        logger.error(
            f"[create_stage] Failed to create stage | case_type_id={stage_create.case_type_id}, stage_key={stage_create.stage_key}",
            exc_info=True,
        )
        raise
    session.refresh(stage)
    logger.info(
        f"[create_stage] Workflow stage created | stage_id={stage.id}, case_type_id={stage.case_type_id}, stage_key={stage.stage_key}"
    )
    return stage


def update_stage(
    *, session: Session, stage_id: int, stage_update: WorkflowStageUpdate
) -> WorkflowStage:
    stage = get_stage(session=session, stage_id=stage_id)
    update_data = stage_update.model_dump(exclude_unset=True)

    new_case_type_id = update_data.pop("case_type_id", None)
    if new_case_type_id is not None and new_case_type_id != stage.case_type_id:
        logger.warning(
            f"[update_stage] Refused to move stage between case types | stage_id={stage_id}"
        )
        raise ValidationException("A stage cannot be moved to another case type")

    new_key = update_data.get("stage_key")
    if new_key is not None and new_key != stage.stage_key:
        validate_stage_key(new_key)
        if get_stage_by_key(
            session=session, case_type_id=stage.case_type_id, stage_key=new_key
        ):
            raise ValidationException("Stage key already exists for this case type")
        if _count_cases_at_stage(session, stage):
            raise ValidationException(
                "Stage key cannot change while cases are at this stage"
            )

    if "stage_name" in update_data and not (update_data["stage_name"] or "").strip():
        raise ValidationException("Stage name is required")

    validate_sla(
        update_data.get("sla_value", stage.sla_value),
        update_data.get("sla_unit", stage.sla_unit),
    )
    validate_sla(
        update_data.get("sla_warning_value", stage.sla_warning_value),
        update_data.get("sla_warning_unit", stage.sla_warning_unit),
        "SLA warning",
    )

    stage.sqlmodel_update(update_data)
    stage.updated_at = now()
    session.add(stage)
    session.commit()
    session.refresh(stage)
    logger.info(f"[update_stage] Workflow stage updated | stage_id={stage.id}")
    return stage


def soft_delete_stage(*, session: Session, stage_id: int) -> WorkflowStage:
    """
    Hide a stage from the active workflow. Bindings are kept so a restore
    brings the stage back exactly as it was.
    """
    stage = get_stage(session=session, stage_id=stage_id)

    case_count = _count_cases_at_stage(session, stage)
    if case_count:
        logger.warning(
            f"[soft_delete_stage] Stage in use | stage_id={stage_id}, cases={case_count}"
        )
        raise ValidationException(
            f"Cannot delete stage: {case_count} case(s) are currently at this stage"
        )

    stage.is_active = False
    stage.updated_at = now()
    session.add(stage)
    session.commit()
    session.refresh(stage)
    logger.info(f"[soft_delete_stage] Workflow stage deleted | stage_id={stage_id}")
    return stage


def restore_stage(*, session: Session, stage_id: int) -> WorkflowStage:
    stage = get_stage(session=session, stage_id=stage_id)
    stage.is_active = True
    stage.updated_at = now()
    session.add(stage)
    session.commit()
    session.refresh(stage)
    logger.info(f"[restore_stage] Workflow stage restored | stage_id={stage_id}")
    return stage


def reorder_stages(
    *, session: Session, case_type_id: int, stage_ids: list[int]
) -> List[WorkflowStage]:
    """
    Set the order of the active stages of a case type.

    `stage_ids` must list every active stage of the case type exactly once.
    Soft-deleted stages are renumbered after the active ones. All rows are
    written in a single transaction.
    """
    validate_case_type(session, case_type_id)

    if len(set(stage_ids)) != len(stage_ids):
        raise ValidationException("Reorder request contains duplicate stage ids")

    stages = list_stages_by_case_type(
        session=session, case_type_id=case_type_id, include_deleted=True
    )
    active = {stage.id: stage for stage in stages if stage.is_active}
    inactive = [stage for stage in stages if not stage.is_active]

    if set(stage_ids) != set(active):
        missing = sorted(set(active) - set(stage_ids))
        unknown = sorted(set(stage_ids) - set(active))
        logger.error(
            f"[reorder_stages] Stage list mismatch | case_type_id={case_type_id}, missing={missing}, unknown={unknown}"
        )
        raise ValidationException(
            "Reorder must list exactly the active stages of the case type"
        )

    timestamp = now()
    try:
        for index, stage_id in enumerate(stage_ids):
            stage = active[stage_id]
            stage.sort_order = index + 1
            stage.updated_at = timestamp
            session.add(stage)
        for offset, stage in enumerate(inactive, start=len(stage_ids) + 1):
            stage.sort_order = offset
            stage.updated_at = timestamp
            session.add(stage)
        session.commit()
    except Exception:
        session.rollback()
        logger.error(
            f"[reorder_stages] Failed to reorder stages | case_type_id={case_type_id}",
            exc_info=True,
        )
        raise

    logger.info(
        f"[reorder_stages] Stages reordered | case_type_id={case_type_id}, count={len(stage_ids)}"
    )
    return list_stages_by_case_type(session=session, case_type_id=case_type_id)


def resolve_reorder_case_type(
    *, session: Session, stage_ids: list[int], case_type_id: int | None = None
) -> int:
    """Case type of a reorder request, taken from its stages when not given."""
    if case_type_id is not None:
        return case_type_id
    if not stage_ids:
        raise ValidationException("case_type_id is required for an empty stage list")

    stage = get_stage_by_id(session=session, stage_id=stage_ids[0])
    if not stage:
        raise ValidationException(f"Unknown stage id in reorder request: {stage_ids[0]}")
    return stage.case_type_id
