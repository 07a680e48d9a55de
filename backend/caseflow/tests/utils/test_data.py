from typing import Any

from sqlmodel import Session

from caseflow.crud import (
    create_case_type,
    create_role,
    create_stage,
    get_case_type_by_name,
    get_stage_by_key,
)
from caseflow.models import (
    Case,
    CaseType,
    CaseTypeCreate,
    Role,
    RoleCreate,
    StageRoleBinding,
    StageUserBinding,
    User,
    WorkflowStage,
    WorkflowStageCreate,
)
from caseflow.tests.utils.utils import random_email, random_lower_string

SEEDED_CASE_TYPE = "Financial Assistance"


def create_test_case_type(db: Session) -> CaseType:
    """
    Creates and returns a test case type with a unique name.
    """
    case_type_in = CaseTypeCreate(name=f"TestCaseType-{random_lower_string()}")
    return create_case_type(session=db, case_type_create=case_type_in)


def create_test_stage(
    db: Session,
    case_type: CaseType | None = None,
    stage_key: str | None = None,
    **attrs: Any,
) -> WorkflowStage:
    """
    Creates a stage, under a new case type unless one is given.
    """
    case_type = case_type or create_test_case_type(db)
    stage_key = stage_key or random_lower_string()
    stage_in = WorkflowStageCreate(
        case_type_id=case_type.id,
        stage_key=stage_key,
        stage_name=attrs.pop("stage_name", stage_key.replace("_", " ").title()),
        **attrs,
    )
    return create_stage(session=db, stage_create=stage_in)


def create_test_role(
    db: Session, permissions: dict[str, list[str]] | None = None
) -> Role:
    role_in = RoleCreate(
        name=f"role_{random_lower_string()}",
        display_name="Test Role",
        permissions=permissions or {},
    )
    return create_role(session=db, role_create=role_in)


def create_test_user(
    db: Session,
    role: str = "counselor",
    full_name: str | None = None,
    jamiat_ids: list[int] | None = None,
    jamaat_ids: list[int] | None = None,
    is_active: bool = True,
) -> User:
    """
    Inserts a user directly, bypassing the stage binding checks of create_user.
    """
    user = User(
        email=random_email(),
        full_name=full_name or f"User {random_lower_string()[:8]}",
        role=role,
        is_active=is_active,
        jamiat_ids=jamiat_ids or [],
        jamaat_ids=jamaat_ids or [],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bind_role(db: Session, stage: WorkflowStage, role: Role, **flags: bool) -> StageRoleBinding:
    binding = StageRoleBinding(stage_id=stage.id, role_id=role.id, **flags)
    db.add(binding)
    db.commit()
    db.refresh(binding)
    return binding


def bind_user(db: Session, stage: WorkflowStage, user: User, **flags: bool) -> StageUserBinding:
    binding = StageUserBinding(stage_id=stage.id, user_id=user.id, **flags)
    db.add(binding)
    db.commit()
    db.refresh(binding)
    return binding


def create_test_case(
    db: Session,
    stage: WorkflowStage,
    assigned_counselor_id: int | None = None,
    jamiat_id: int | None = None,
    jamaat_id: int | None = None,
) -> Case:
    """
    Inserts a case sitting at `stage`.
    """
    case = Case(
        case_number=f"CASE-{random_lower_string()[:12]}",
        case_type_id=stage.case_type_id,
        status=stage.stage_key,
        assigned_counselor_id=assigned_counselor_id,
        jamiat_id=jamiat_id,
        jamaat_id=jamaat_id,
    )
    db.add(case)
    db.commit()
    db.refresh(case)
    return case


def get_seeded_stage(db: Session, stage_key: str) -> WorkflowStage:
    """A stage of the seeded "Financial Assistance" workflow."""
    case_type = get_case_type_by_name(session=db, name=SEEDED_CASE_TYPE)
    return get_stage_by_key(session=db, case_type_id=case_type.id, stage_key=stage_key)
