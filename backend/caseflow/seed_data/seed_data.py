import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field
from sqlmodel import Session, select

from caseflow.core.db import engine
from caseflow.models import (
    CaseType,
    FormStagePermission,
    Role,
    RoleCreate,
    StageRoleBinding,
    StageRoleFlags,
    User,
    WorkflowStage,
)


# Pydantic models for data validation
class RoleData(RoleCreate):
    is_system_role: bool = False


class StageData(BaseModel):
    stage_key: str
    stage_name: str
    description: Optional[str] = None
    sla_value: Optional[float] = None
    sla_unit: Optional[str] = None
    sla_warning_value: Optional[float] = None
    sla_warning_unit: Optional[str] = None
    roles: dict[str, StageRoleFlags] = Field(default_factory=dict)


class CaseTypeData(BaseModel):
    name: str
    description: Optional[str] = None
    sort_order: int = 0
    stages: list[StageData] = Field(default_factory=list)


class UserData(BaseModel):
    email: EmailStr
    full_name: str
    role: str
    is_active: bool = True


def load_seed_data() -> dict:
    """Load seed data from JSON file."""
    json_path = Path(__file__).parent / "seed_data.json"
    try:
        with open(json_path, "r") as f:
            return json.load(f)
    except FileNotFoundError:
        logging.error(f"Error: Seed data file not found at {json_path}")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"Error: Failed to decode JSON from {json_path}: {e}")
        raise


def create_role(session: Session, role_data_raw: dict[str, Any]) -> Role:
    """Create a role from data, or return the existing role of that name."""
    role_data = RoleData.model_validate(role_data_raw)
    existing = session.exec(select(Role).where(Role.name == role_data.name)).first()
    if existing:
        return existing

    logging.info(f"Creating role: {role_data.name}")
    role = Role(
        name=role_data.name,
        display_name=role_data.display_name,
        description=role_data.description,
        is_active=role_data.is_active,
        is_system_role=role_data.is_system_role,
        permissions=role_data.permissions,
        counseling_form_stages=[
            FormStagePermission.model_validate(stage).model_dump()
            for stage in role_data.counseling_form_stages
        ],
    )
    session.add(role)
    session.flush()  # Ensure ID is assigned
    return role


def create_case_type(session: Session, case_type_data_raw: dict[str, Any]) -> CaseType:
    """Create a case type with its stages and their role bindings."""
    case_type_data = CaseTypeData.model_validate(case_type_data_raw)
    case_type = session.exec(
        select(CaseType).where(CaseType.name == case_type_data.name)
    ).first()
    if case_type:
        return case_type

    logging.info(f"Creating case type: {case_type_data.name}")
    case_type = CaseType(
        name=case_type_data.name,
        description=case_type_data.description,
        sort_order=case_type_data.sort_order,
    )
    session.add(case_type)
    session.flush()

    for position, stage_data in enumerate(case_type_data.stages, start=1):
        stage = WorkflowStage(
            case_type_id=case_type.id,
            sort_order=position,
            **stage_data.model_dump(exclude={"roles"}),
        )
        session.add(stage)
        session.flush()

        for role_name, flags in stage_data.roles.items():
            role = session.exec(select(Role).where(Role.name == role_name)).first()
            if not role:
                raise ValueError(f"Role '{role_name}' not found")
            session.add(
                StageRoleBinding(stage_id=stage.id, role_id=role.id, **flags.model_dump())
            )
        session.flush()

    return case_type


def create_user(session: Session, user_data_raw: dict[str, Any]) -> User:
    """Create a user from data, or return the existing user with that email."""
    user_data = UserData.model_validate(user_data_raw)
    existing = session.exec(select(User).where(User.email == user_data.email)).first()
    if existing:
        return existing

    logging.info(f"Creating user: {user_data.email}")
    user = User(
        email=user_data.email,
        full_name=user_data.full_name,
        role=user_data.role,
        is_active=user_data.is_active,
    )
    session.add(user)
    session.flush()
    return user


def seed_database(session: Session) -> None:
    """
    Seed the database with the baseline roles and default workflow.

    This function creates:
    - Roles (super_admin, admin, counselor, welfare_reviewer, ...)
    - The "Financial Assistance" case type with its five stages
      (draft, counselor, welfare_review, executive_approval,
      finance_disbursement) and their role bindings
    - A super admin user

    Existing rows are left untouched, so seeding can be repeated.
    """
    logging.info("Starting database seeding...")

    try:
        seed_data = load_seed_data()

        for role_data in seed_data["roles"]:
            role = create_role(session, role_data)
            logging.info(f"Seeded role: {role.name} (ID: {role.id})")

        for case_type_data in seed_data["case_types"]:
            case_type = create_case_type(session, case_type_data)
            logging.info(f"Seeded case type: {case_type.name} (ID: {case_type.id})")

        for user_data in seed_data["users"]:
            user = create_user(session, user_data)
            logging.info(f"Seeded user: {user.email} (ID: {user.id})")

        session.commit()
        logging.info("Database seeding completed successfully!")
    except Exception as e:
        logging.error(f"Error during seeding: {e}")
        session.rollback()
        raise


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logging.info("Initializing database session...")
    with Session(engine) as session:
        seed_database(session)
