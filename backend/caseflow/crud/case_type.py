import logging
from typing import List, Optional

from sqlmodel import Session, select

from caseflow.core.exception_handlers import ConflictException, NotFoundException
from caseflow.models import CaseType, CaseTypeCreate

logger = logging.getLogger(__name__)


def create_case_type(*, session: Session, case_type_create: CaseTypeCreate) -> CaseType:
    if get_case_type_by_name(session=session, name=case_type_create.name):
        logger.error(
            f"[create_case_type] Case type already exists | name={case_type_create.name}"
        )
        raise ConflictException("Case type already exists")

    case_type = CaseType.model_validate(case_type_create)
    session.add(case_type)
    session.commit()
    session.refresh(case_type)
    logger.info(
        f"[create_case_type] Case type created | case_type_id={case_type.id}, name={case_type.name}"
    )
    return case_type


def get_case_type_by_id(*, session: Session, case_type_id: int) -> Optional[CaseType]:
    return session.get(CaseType, case_type_id)


def get_case_type_by_name(*, session: Session, name: str) -> Optional[CaseType]:
    statement = select(CaseType).where(CaseType.name == name)
    return session.exec(statement).first()


def list_case_types(*, session: Session, include_inactive: bool = False) -> List[CaseType]:
    statement = select(CaseType)
    if not include_inactive:
        statement = statement.where(CaseType.is_active)
    statement = statement.order_by(CaseType.sort_order, CaseType.name)
    return session.exec(statement).all()


def validate_case_type(session: Session, case_type_id: int) -> CaseType:
    """
    Ensures that a case type exists and is active.
    """
    case_type = get_case_type_by_id(session=session, case_type_id=case_type_id)
    if not case_type:
        logger.error(
            f"[validate_case_type] Case type not found | case_type_id={case_type_id}"
        )
        raise NotFoundException("Case type not found")

    if not case_type.is_active:
        logger.error(
            f"[validate_case_type] Case type is not active | case_type_id={case_type_id}"
        )
        raise NotFoundException("Case type is not active")

    return case_type
