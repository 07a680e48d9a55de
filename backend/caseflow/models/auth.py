from sqlmodel import SQLModel

from caseflow.models.role import Role
from caseflow.models.user import User


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None


class AuthContext(SQLModel):
    user: User
    role: Role | None = None

    @property
    def role_(self) -> Role:
        """Non-optional role - raises if None"""
        if self.role is None:
            raise ValueError("Role is required but was None")
        return self.role
