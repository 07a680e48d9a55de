import logging
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from caseflow.core.exception_handlers import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from caseflow.crud.role import get_role_by_name
from caseflow.crud.stage_binding import check_user_role_bound
from caseflow.crud.workflow_stage import validate_stage
from caseflow.models import (
    Role,
    StageUserBinding,
    User,
    UserCreate,
    UserRoleAssign,
    UserStageBindingIn,
)

logger = logging.getLogger(__name__)


def get_user_by_id(*, session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def get_user_by_email(*, session: Session, email: str) -> Optional[User]:
    statement = select(User).where(User.email == email)
    return session.exec(statement).first()


def get_user(*, session: Session, user_id: int) -> User:
    user = get_user_by_id(session=session, user_id=user_id)
    if not user:
        logger.error(f"[get_user] User not found | user_id={user_id}")
        raise NotFoundException("User not found")
    return user


def list_users(
    *, session: Session, role: str | None = None, include_inactive: bool = False
) -> List[User]:
    statement = select(User)
    if role is not None:
        statement = statement.where(User.role == role)
    if not include_inactive:
        statement = statement.where(User.is_active)
    statement = statement.order_by(User.full_name, User.id)
    return session.exec(statement).all()


def _validate_role_name(session: Session, role_name: str) -> Role:
    role = get_role_by_name(session=session, name=role_name)
    if not role or not role.is_active:
        logger.error(f"[_validate_role_name] Unknown role | role={role_name}")
        raise ValidationException(f"Role '{role_name}' does not exist or is inactive")
    return role


def _add_stage_bindings(
    session: Session, user: User, bindings: list[UserStageBindingIn]
) -> None:
    stage_ids = [binding.stage_id for binding in bindings]
    if len(set(stage_ids)) != len(stage_ids):
        raise ValidationException("Stage bindings contain duplicate stage ids")

    for binding_in in bindings:
        stage = validate_stage(session, binding_in.stage_id)
        check_user_role_bound(session=session, stage=stage, user=user)
        session.add(
            StageUserBinding.model_validate(binding_in, update={"user_id": user.id})
        )


def create_user(*, session: Session, user_create: UserCreate) -> User:
    """
    Create a user and its initial stage bindings in one transaction.
    """
    if get_user_by_email(session=session, email=user_create.email):
        logger.error(f"[create_user] Email already registered | email={user_create.email}")
        raise ConflictException("A user with this email already exists")

    _validate_role_name(session, user_create.role)

    user = User.model_validate(user_create)
    try:
        session.add(user)
        session.flush()
        _add_stage_bindings(session, user, user_create.stage_bindings)
        session.commit()
    except Exception:
        session.rollback()
        logger.error(
            f"[create_user] Failed to create user | email={user_create.email}",
            exc_info=True,
        )
        raise

    session.refresh(user)
    logger.info(
        f"[create_user] User created | user_id={user.id}, role={user.role}, bindings={len(user_create.stage_bindings)}"
    )
    return user


def assign_role(*, session: Session, user_id: int, role_assign: UserRoleAssign) -> User:
    """
    Change a user's role.

    When `stage_bindings` is given the user's stage bindings are replaced by
    it, otherwise they are left untouched. Either way the change is a single
    transaction.
    """
    user = get_user(session=session, user_id=user_id)
    _validate_role_name(session, role_assign.role)

    try:
        user.role = role_assign.role
        session.add(user)
        if role_assign.stage_bindings is not None:
            session.exec(
                delete(StageUserBinding).where(StageUserBinding.user_id == user.id)
            )
            _add_stage_bindings(session, user, role_assign.stage_bindings)
        session.commit()
    except Exception:
        session.rollback()
        logger.error(
            f"[assign_role] Failed to assign role | user_id={user_id}, role={role_assign.role}",
            exc_info=True,
        )
        raise

    session.refresh(user)
    logger.info(f"[assign_role] Role assigned | user_id={user.id}, role={user.role}")
    return user
