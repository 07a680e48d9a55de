from collections.abc import Generator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError
from pydantic import ValidationError
from sqlmodel import Session

from caseflow.core import security
from caseflow.core.config import settings
from caseflow.core.db import engine
from caseflow.core.logger import bind_acting_user
from caseflow.crud.role import get_role_by_name
from caseflow.models import AuthContext, TokenPayload, User


reusable_bearer = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]
TokenDep = Annotated[HTTPAuthorizationCredentials | None, Depends(reusable_bearer)]


def get_auth_context(session: SessionDep, token: TokenDep) -> AuthContext:
    """
    Verify the bearer token and return the authenticated user with its role.
    Authorization logic is handled by `caseflow.api.permissions` and the routes.
    """
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(
            token.credentials, settings.SECRET_KEY, algorithms=[security.ALGORITHM]
        )
        token_data = TokenPayload(**payload)
        user_id = int(token_data.sub)
    except (InvalidTokenError, ValidationError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Inactive user")

    bind_acting_user(user.id, user.role)
    return AuthContext(user=user, role=get_role_by_name(session=session, name=user.role))


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]


def get_current_user(auth_context: AuthContextDep) -> User:
    return auth_context.user


CurrentUser = Annotated[User, Depends(get_current_user)]
