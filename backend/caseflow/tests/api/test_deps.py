from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlmodel import Session

from caseflow.api.deps import get_auth_context
from caseflow.api.permissions import Action, Resource, has_permission, is_admin
from caseflow.core.logger import request_log_context
from caseflow.core.security import create_access_token
from caseflow.crud import update_role
from caseflow.models import AuthContext, RoleUpdate, User
from caseflow.tests.utils.test_data import create_test_role, create_test_user
from caseflow.tests.utils.utils import get_non_existent_id, get_super_admin


def bearer(subject) -> HTTPAuthorizationCredentials:
    token = create_access_token(subject, timedelta(minutes=5))
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_auth_context_for_valid_token(db: Session):
    user = create_test_user(db)

    context = get_auth_context(session=db, token=bearer(user.id))

    assert isinstance(context, AuthContext)
    assert context.user.id == user.id
    assert context.role.name == "counselor"


def test_auth_context_binds_acting_user_for_logging(db: Session):
    user = create_test_user(db)
    log_context: dict = {}
    token = request_log_context.set(log_context)
    try:
        get_auth_context(session=db, token=bearer(user.id))
    finally:
        request_log_context.reset(token)

    assert log_context == {"acting_user": f"{user.id}:counselor"}


def test_missing_token():
    with pytest.raises(HTTPException) as exc_info:
        get_auth_context(session=None, token=None)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Not authenticated"


@pytest.mark.parametrize(
    "credentials",
    ["not-a-jwt", create_access_token("abc", timedelta(minutes=5))],
)
def test_invalid_token(db: Session, credentials: str):
    token = HTTPAuthorizationCredentials(scheme="Bearer", credentials=credentials)

    with pytest.raises(HTTPException) as exc_info:
        get_auth_context(session=db, token=token)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Could not validate credentials"


def test_expired_token(db: Session):
    user = create_test_user(db)
    token = HTTPAuthorizationCredentials(
        scheme="Bearer",
        credentials=create_access_token(user.id, timedelta(minutes=-5)),
    )

    with pytest.raises(HTTPException) as exc_info:
        get_auth_context(session=db, token=token)

    assert exc_info.value.status_code == 401


def test_unknown_and_inactive_user(db: Session):
    with pytest.raises(HTTPException) as exc_info:
        get_auth_context(session=db, token=bearer(get_non_existent_id(db, User)))
    assert exc_info.value.status_code == 404

    inactive = create_test_user(db, is_active=False)
    with pytest.raises(HTTPException) as exc_info:
        get_auth_context(session=db, token=bearer(inactive.id))
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "Inactive user"


def test_role_permissions(db: Session):
    super_admin = get_super_admin(db)
    counselor = create_test_user(db)
    super_context = get_auth_context(session=db, token=bearer(super_admin.id))
    counselor_context = get_auth_context(session=db, token=bearer(counselor.id))

    assert has_permission(super_context, Resource.MASTER, Action.DELETE)
    assert is_admin(super_context)
    assert has_permission(counselor_context, Resource.CASES, Action.READ)
    assert not has_permission(counselor_context, Resource.MASTER, Action.READ)
    assert not is_admin(counselor_context)


def test_inactive_role_grants_nothing(db: Session):
    role = create_test_role(db, permissions={"cases": ["all"]})
    user = create_test_user(db, role=role.name)
    update_role(session=db, role_id=role.id, role_update=RoleUpdate(is_active=False))

    context = get_auth_context(session=db, token=bearer(user.id))

    assert not has_permission(context, Resource.CASES, Action.READ)
