import logging
import random
import string
from datetime import timedelta

from sqlmodel import Session, select

from caseflow.core.config import settings
from caseflow.core.security import create_access_token
from caseflow.models import User

logger = logging.getLogger(__name__)

SUPER_ADMIN_EMAIL = "superadmin@example.com"


def random_lower_string() -> str:
    """Generate a random lowercase string of 32 characters."""
    return "".join(random.choices(string.ascii_lowercase, k=32))


def random_email() -> str:
    """Generate a random email address."""
    return f"{random_lower_string()}@example.com"


def get_non_existent_id(session: Session, model) -> int:
    result = session.exec(select(model.id).order_by(model.id.desc())).first()
    return (result or 0) + 1


def get_token_headers(user: User) -> dict[str, str]:
    """Bearer authentication headers for `user`."""
    token = create_access_token(
        user.id, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"Authorization": f"Bearer {token}"}


def get_super_admin(db: Session) -> User:
    return db.exec(select(User).where(User.email == SUPER_ADMIN_EMAIL)).one()
