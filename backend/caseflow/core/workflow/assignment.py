import logging

from sqlmodel import Session, select

from caseflow.core.config import settings
from caseflow.core.exception_handlers import NotFoundException, ValidationException
from caseflow.models import (
    Case,
    CounselorPublic,
    Role,
    StageRoleBinding,
    StageUserBinding,
    User,
    WorkflowStage,
)

logger = logging.getLogger(__name__)


def list_counselor_stages(
    session: Session, case_type_id: int | None = None
) -> list[WorkflowStage]:
    statement = select(WorkflowStage).where(
        WorkflowStage.is_active,
        WorkflowStage.stage_key.contains(settings.COUNSELOR_STAGE_KEYWORD),
    )
    if case_type_id is not None:
        statement = statement.where(WorkflowStage.case_type_id == case_type_id)
    statement = statement.order_by(WorkflowStage.case_type_id, WorkflowStage.sort_order)
    return session.exec(statement).all()


def serves_area(user: User, jamiat_id: int | None, jamaat_id: int | None) -> bool:
    """
    True when the user may take cases from the given area.

    A match on either the jamiat or the jamaat is enough. Users without area
    assignments serve every area, and an unset area matches everyone.
    """
    if jamiat_id is None and jamaat_id is None:
        return True
    if not user.jamiat_ids and not user.jamaat_ids:
        return True
    if jamiat_id is not None and jamiat_id in user.jamiat_ids:
        return True
    return jamaat_id is not None and jamaat_id in user.jamaat_ids


def _stage_bound_counselors(session: Session, stage_ids: list[int]) -> list[User]:
    counselor_roles = settings.COUNSELOR_ROLE_NAMES

    statement = (
        select(User)
        .join(StageUserBinding, StageUserBinding.user_id == User.id)
        .where(
            StageUserBinding.stage_id.in_(stage_ids),
            User.is_active,
            User.role.in_(counselor_roles),
        )
    )
    users = session.exec(statement).all()
    if users:
        return users

    # No explicit user bindings, fall back to holders of a bound counselor role
    bound_roles = (
        select(Role.name)
        .join(StageRoleBinding, StageRoleBinding.role_id == Role.id)
        .where(StageRoleBinding.stage_id.in_(stage_ids), Role.is_active)
    )
    statement = select(User).where(
        User.is_active,
        User.role.in_(counselor_roles),
        User.role.in_(bound_roles),
    )
    return session.exec(statement).all()


def list_available_counselors(
    session: Session,
    case_id: int | None = None,
    jamiat_id: int | None = None,
    jamaat_id: int | None = None,
) -> list[CounselorPublic]:
    """
    Counselors that can take a case, filtered by the case's area.

    With `case_id` the case's own area and case type are used; otherwise the
    counselor stages of every case type are considered and the supplied
    area, if any, filters the result.
    """
    case_type_id = None
    if case_id is not None:
        case = session.get(Case, case_id)
        if not case:
            logger.error(f"[list_available_counselors] Case not found | case_id={case_id}")
            raise NotFoundException("Case not found")
        case_type_id = case.case_type_id
        jamiat_id, jamaat_id = case.jamiat_id, case.jamaat_id

    stage_ids = [stage.id for stage in list_counselor_stages(session, case_type_id)]
    if not stage_ids:
        logger.warning(
            f"[list_available_counselors] No counselor stage configured | case_type_id={case_type_id}"
        )
        return []

    unique = {user.id: user for user in _stage_bound_counselors(session, stage_ids)}
    counselors = [
        user for user in unique.values() if serves_area(user, jamiat_id, jamaat_id)
    ]
    counselors.sort(key=lambda user: ((user.full_name or "").lower(), user.id))

    logger.info(
        f"[list_available_counselors] Counselors resolved | case_id={case_id}, jamiat_id={jamiat_id}, jamaat_id={jamaat_id}, count={len(counselors)}"
    )
    return [CounselorPublic(id=user.id, full_name=user.full_name) for user in counselors]


def validate_counselor(session: Session, user_id: int) -> User:
    """
    Ensures that `user_id` is an active user holding a counselor role.
    """
    user = session.get(User, user_id)
    if not user or not user.is_active:
        logger.error(f"[validate_counselor] Counselor not found | user_id={user_id}")
        raise NotFoundException("Counselor not found")
    if user.role not in settings.COUNSELOR_ROLE_NAMES:
        logger.error(
            f"[validate_counselor] User is not a counselor | user_id={user_id}, role={user.role}"
        )
        raise ValidationException("Assigned user must hold a counselor role")
    return user
