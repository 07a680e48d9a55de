"""
Security helpers for bearer-token authentication.

Token issuance belongs to the external auth service; this module only
encodes tokens for local tooling and tests and defines the signing algorithm
shared with the verifier in `caseflow.api.deps`.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from caseflow.core.config import settings


# JWT configuration
ALGORITHM = "HS256"


def create_access_token(subject: str | Any, expires_delta: timedelta) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (typically user ID)
        expires_delta: Token expiration time delta

    Returns:
        str: Encoded JWT token
    """
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt
