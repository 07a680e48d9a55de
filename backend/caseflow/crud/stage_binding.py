import logging
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from caseflow.core.config import settings
from caseflow.core.exception_handlers import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from caseflow.core.util import now
from caseflow.crud.role import validate_role
from caseflow.crud.workflow_stage import get_stage, validate_stage
from caseflow.models import (
    Role,
    StageRoleBinding,
    StageRoleBindingCreate,
    StageRoleFlags,
    StageUserBinding,
    StageUserBindingCreate,
    StageUserFlags,
    User,
    WorkflowStage,
)

logger = logging.getLogger(__name__)


def get_role_binding(
    *, session: Session, stage_id: int, role_id: int
) -> Optional[StageRoleBinding]:
    return session.get(StageRoleBinding, (stage_id, role_id))


def get_user_binding(
    *, session: Session, stage_id: int, user_id: int
) -> Optional[StageUserBinding]:
    return session.get(StageUserBinding, (stage_id, user_id))


def get_role_binding_by_name(
    *, session: Session, stage_id: int, role_name: str
) -> Optional[StageRoleBinding]:
    statement = (
        select(StageRoleBinding)
        .join(Role, Role.id == StageRoleBinding.role_id)
        .where(
            StageRoleBinding.stage_id == stage_id,
            Role.name == role_name,
            Role.is_active,
        )
    )
    return session.exec(statement).first()


def list_bound_role_names(*, session: Session, stage_id: int) -> List[str]:
    statement = (
        select(Role.name)
        .join(StageRoleBinding, StageRoleBinding.role_id == Role.id)
        .where(StageRoleBinding.stage_id == stage_id)
    )
    return list(session.exec(statement).all())


def check_user_role_bound(
    *, session: Session, stage: WorkflowStage, user: User
) -> None:
    """
    A stage that already has role bindings only accepts users whose role is
    one of them.
    """
    bound_roles = list_bound_role_names(session=session, stage_id=stage.id)
    if bound_roles and user.role not in bound_roles:
        logger.warning(
            f"[check_user_role_bound] User role not bound to stage | stage_id={stage.id}, user_id={user.id}, role={user.role}"
        )
        raise ValidationException(
            f"Role '{user.role}' is not assigned to stage '{stage.stage_name}'"
        )


def _validate_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        logger.error(f"[_validate_user] User not found | user_id={user_id}")
        raise NotFoundException("User not found")
    if not user.is_active:
        logger.error(f"[_validate_user] User is not active | user_id={user_id}")
        raise NotFoundException("User is not active")
    return user


def add_role_to_stage(
    *, session: Session, stage_id: int, binding_in: StageRoleBindingCreate
) -> StageRoleBinding:
    validate_stage(session, stage_id)
    validate_role(session, binding_in.role_id)

    if get_role_binding(session=session, stage_id=stage_id, role_id=binding_in.role_id):
        logger.error(
            f"[add_role_to_stage] Role already bound | stage_id={stage_id}, role_id={binding_in.role_id}"
        )
        raise ConflictException("Role is already assigned to this stage")

    binding = StageRoleBinding.model_validate(binding_in, update={"stage_id": stage_id})
    session.add(binding)
    session.commit()
    session.refresh(binding)
    logger.info(
        f"[add_role_to_stage] Role bound to stage | stage_id={stage_id}, role_id={binding.role_id}"
    )
    return binding


def update_role_permissions(
    *, session: Session, stage_id: int, role_id: int, flags: StageRoleFlags
) -> StageRoleBinding:
    """Replace every flag of a stage-role binding."""
    binding = get_role_binding(session=session, stage_id=stage_id, role_id=role_id)
    if not binding:
        logger.error(
            f"[update_role_permissions] Binding not found | stage_id={stage_id}, role_id={role_id}"
        )
        raise NotFoundException("Role is not assigned to this stage")

    binding.sqlmodel_update(StageRoleFlags.model_validate(flags).model_dump())
    binding.updated_at = now()
    session.add(binding)
    session.commit()
    session.refresh(binding)
    logger.info(
        f"[update_role_permissions] Role binding updated | stage_id={stage_id}, role_id={role_id}"
    )
    return binding


def remove_role_from_stage(*, session: Session, stage_id: int, role_id: int) -> None:
    """
    Unbind a role from a stage.

    User bindings of users holding the role stay in place unless
    CASCADE_USER_BINDINGS_ON_ROLE_REMOVAL is set, in which case they are
    removed in the same transaction.
    """
    binding = get_role_binding(session=session, stage_id=stage_id, role_id=role_id)
    if not binding:
        logger.error(
            f"[remove_role_from_stage] Binding not found | stage_id={stage_id}, role_id={role_id}"
        )
        raise NotFoundException("Role is not assigned to this stage")

    try:
        if settings.CASCADE_USER_BINDINGS_ON_ROLE_REMOVAL:
            role = session.get(Role, role_id)
            holders = select(User.id).where(User.role == role.name)
            session.exec(
                delete(StageUserBinding).where(
                    StageUserBinding.stage_id == stage_id,
                    StageUserBinding.user_id.in_(holders),
                )
            )
        session.delete(binding)
        session.commit()
    except Exception:
        session.rollback()
        logger.error(
            f"[remove_role_from_stage] Failed to unbind role | stage_id={stage_id}, role_id={role_id}",
            exc_info=True,
        )
        raise

    logger.info(
        f"[remove_role_from_stage] Role unbound from stage | stage_id={stage_id}, role_id={role_id}"
    )


def add_user_to_stage(
    *, session: Session, stage_id: int, binding_in: StageUserBindingCreate
) -> StageUserBinding:
    stage = validate_stage(session, stage_id)
    user = _validate_user(session, binding_in.user_id)

    if get_user_binding(session=session, stage_id=stage_id, user_id=user.id):
        logger.error(
            f"[add_user_to_stage] User already bound | stage_id={stage_id}, user_id={user.id}"
        )
        raise ConflictException("User is already assigned to this stage")

    check_user_role_bound(session=session, stage=stage, user=user)

    binding = StageUserBinding.model_validate(binding_in, update={"stage_id": stage_id})
    session.add(binding)
    session.commit()
    session.refresh(binding)
    logger.info(
        f"[add_user_to_stage] User bound to stage | stage_id={stage_id}, user_id={user.id}"
    )
    return binding


def update_user_permissions(
    *, session: Session, stage_id: int, user_id: int, flags: StageUserFlags
) -> StageUserBinding:
    """Replace every flag of a stage-user binding."""
    binding = get_user_binding(session=session, stage_id=stage_id, user_id=user_id)
    if not binding:
        logger.error(
            f"[update_user_permissions] Binding not found | stage_id={stage_id}, user_id={user_id}"
        )
        raise NotFoundException("User is not assigned to this stage")

    binding.sqlmodel_update(StageUserFlags.model_validate(flags).model_dump())
    binding.updated_at = now()
    session.add(binding)
    session.commit()
    session.refresh(binding)
    logger.info(
        f"[update_user_permissions] User binding updated | stage_id={stage_id}, user_id={user_id}"
    )
    return binding


def remove_user_from_stage(*, session: Session, stage_id: int, user_id: int) -> None:
    binding = get_user_binding(session=session, stage_id=stage_id, user_id=user_id)
    if not binding:
        logger.error(
            f"[remove_user_from_stage] Binding not found | stage_id={stage_id}, user_id={user_id}"
        )
        raise NotFoundException("User is not assigned to this stage")

    session.delete(binding)
    session.commit()
    logger.info(
        f"[remove_user_from_stage] User unbound from stage | stage_id={stage_id}, user_id={user_id}"
    )


def list_available_roles(*, session: Session, stage_id: int | None = None) -> List[Role]:
    """Active roles that are not yet bound to the stage."""
    statement = select(Role).where(Role.is_active)
    if stage_id is not None:
        get_stage(session=session, stage_id=stage_id)
        bound = select(StageRoleBinding.role_id).where(
            StageRoleBinding.stage_id == stage_id
        )
        statement = statement.where(Role.id.not_in(bound))
    statement = statement.order_by(Role.display_name, Role.name)
    return session.exec(statement).all()


def list_available_users(*, session: Session, stage_id: int | None = None) -> List[User]:
    """
    Active users that are not yet bound to the stage.

    Once the stage has role bindings only users holding one of the bound
    roles are offered.
    """
    statement = select(User).where(User.is_active)
    if stage_id is not None:
        get_stage(session=session, stage_id=stage_id)
        bound = select(StageUserBinding.user_id).where(
            StageUserBinding.stage_id == stage_id
        )
        statement = statement.where(User.id.not_in(bound))

        bound_roles = list_bound_role_names(session=session, stage_id=stage_id)
        if bound_roles:
            statement = statement.where(User.role.in_(bound_roles))
    statement = statement.order_by(User.full_name, User.id)
    return session.exec(statement).all()
