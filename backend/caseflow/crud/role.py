import logging
from typing import List, Optional

from sqlalchemy import delete, func
from sqlmodel import Session, select

from caseflow.core.config import settings
from caseflow.core.exception_handlers import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from caseflow.core.util import now
from caseflow.models import (
    FormStageAccess,
    Role,
    RoleCreate,
    RoleUpdate,
    StageRoleBinding,
    User,
)

logger = logging.getLogger(__name__)

# Role permission resource that applies to every counseling form section
COUNSELING_FORMS_RESOURCE = "counseling_forms"


def get_role_by_id(*, session: Session, role_id: int) -> Optional[Role]:
    return session.get(Role, role_id)


def get_role_by_name(*, session: Session, name: str) -> Optional[Role]:
    statement = select(Role).where(Role.name == name)
    return session.exec(statement).first()


def list_roles(*, session: Session, include_inactive: bool = False) -> List[Role]:
    statement = select(Role)
    if not include_inactive:
        statement = statement.where(Role.is_active)
    statement = statement.order_by(Role.name)
    return session.exec(statement).all()


def validate_role(session: Session, role_id: int) -> Role:
    """
    Ensures that a role exists and is active.
    """
    role = get_role_by_id(session=session, role_id=role_id)
    if not role:
        logger.error(f"[validate_role] Role not found | role_id={role_id}")
        raise NotFoundException("Role not found")

    if not role.is_active:
        logger.error(f"[validate_role] Role is not active | role_id={role_id}")
        raise NotFoundException("Role is not active")

    return role


def create_role(*, session: Session, role_create: RoleCreate) -> Role:
    if get_role_by_name(session=session, name=role_create.name):
        logger.error(
            f"[create_role] Role already exists | name={role_create.name}"
        )
        raise ConflictException("Role name already exists")

    db_role = Role.model_validate(
        role_create,
        update={
            "counseling_form_stages": [
                stage.model_dump() for stage in role_create.counseling_form_stages
            ]
        },
    )
    session.add(db_role)
    session.commit()
    session.refresh(db_role)
    logger.info(
        f"[create_role] Role created | role_id={db_role.id}, name={db_role.name}"
    )
    return db_role


def _count_stage_bindings(session: Session, role_id: int) -> int:
    statement = (
        select(func.count())
        .select_from(StageRoleBinding)
        .where(StageRoleBinding.role_id == role_id)
    )
    return session.exec(statement).one()


def _count_users_with_role(session: Session, role_name: str) -> int:
    statement = select(func.count()).select_from(User).where(User.role == role_name)
    return session.exec(statement).one()


def update_role(*, session: Session, role_id: int, role_update: RoleUpdate) -> Role:
    role = get_role_by_id(session=session, role_id=role_id)
    if not role:
        logger.error(f"[update_role] Role not found | role_id={role_id}")
        raise NotFoundException("Role not found")

    if role.is_system_role:
        logger.warning(f"[update_role] Refused to modify system role | role_id={role_id}")
        raise ValidationException("Cannot modify system roles")

    update_data = role_update.model_dump(exclude_unset=True)

    new_name = update_data.get("name")
    if new_name is not None and new_name != role.name:
        if _count_stage_bindings(session, role.id):
            logger.warning(
                f"[update_role] Role name is referenced by stage bindings | role_id={role_id}"
            )
            raise ValidationException(
                "Role name cannot change while the role is bound to workflow stages"
            )
        if _count_users_with_role(session, role.name):
            raise ValidationException(
                "Role name cannot change while users hold the role"
            )
        if get_role_by_name(session=session, name=new_name):
            raise ConflictException("Role name already exists")

    if update_data.get("permissions") is None:
        update_data.pop("permissions", None)
    if "counseling_form_stages" in update_data:
        if update_data["counseling_form_stages"] is None:
            update_data.pop("counseling_form_stages")

    role.sqlmodel_update(update_data)
    role.updated_at = now()
    session.add(role)
    session.commit()
    session.refresh(role)
    logger.info(f"[update_role] Role updated | role_id={role.id}, name={role.name}")
    return role


def delete_role(*, session: Session, role_id: int) -> None:
    """
    Delete a role together with its stage-role bindings.

    Refused for system roles and for roles still held by users.
    """
    role = get_role_by_id(session=session, role_id=role_id)
    if not role:
        logger.error(f"[delete_role] Role not found | role_id={role_id}")
        raise NotFoundException("Role not found")

    if role.is_system_role:
        raise ValidationException("Cannot delete system roles")

    user_count = _count_users_with_role(session, role.name)
    if user_count:
        logger.warning(
            f"[delete_role] Role still assigned | role_id={role_id}, users={user_count}"
        )
        raise ValidationException(
            f"Cannot delete role: {user_count} user(s) are assigned to it"
        )

    try:
        session.exec(delete(StageRoleBinding).where(StageRoleBinding.role_id == role.id))
        session.delete(role)
        session.commit()
    except Exception:
        session.rollback()
        logger.error(
            f"[delete_role] Failed to delete role | role_id={role_id}", exc_info=True
        )
        raise

    logger.info(f"[delete_role] Role deleted | role_id={role_id}")


def resolve_form_stage_permissions(role: Role) -> dict[str, FormStageAccess]:
    """
    Per-form-section access of a role.

    Sections listed on the role use their own flags; everything else falls
    back to the role's general `counseling_forms` permission under the
    `*` key.
    """
    if role.name == settings.SUPER_ADMIN_ROLE:
        return {"*": FormStageAccess(can_read=True, can_update=True)}

    access = {
        "*": FormStageAccess(
            can_read=role.has_permission(COUNSELING_FORMS_RESOURCE, "read"),
            can_update=role.has_permission(COUNSELING_FORMS_RESOURCE, "update"),
        )
    }
    for stage in role.counseling_form_stages or []:
        access[stage["stage_key"]] = FormStageAccess(
            can_read=bool(stage.get("can_read")),
            can_update=bool(stage.get("can_update")),
        )
    return access
