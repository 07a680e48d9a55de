from enum import Enum

from fastapi import HTTPException

from caseflow.api.deps import AuthContextDep
from caseflow.core.config import settings
from caseflow.models import AuthContext


class Resource(str, Enum):
    """Resources guarded by role permissions"""

    MASTER = "master"
    ROLES = "roles"
    USERS = "users"
    CASES = "cases"
    COUNSELING_FORMS = "counseling_forms"


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ASSIGN_COUNSELOR = "assign_counselor"


def has_permission(
    auth_context: AuthContext, resource: Resource, action: Action
) -> bool:
    """
    Check the role permissions of the authenticated user.

    `super_admin` passes every check. Otherwise the user's role must be
    active and grant `action` (or `all`) on `resource`.

    Args:
        auth_context: The authenticated user context
        resource: The permission resource (Resource enum)
        action: The permission action (Action enum)

    Returns:
        bool: True if user has permission, False otherwise
    """
    if auth_context.user.role == settings.SUPER_ADMIN_ROLE:
        return True

    role = auth_context.role
    if role is None or not role.is_active:
        return False
    return role.has_permission(resource.value, action.value)


def is_admin(auth_context: AuthContext) -> bool:
    return auth_context.user.role in settings.ADMIN_ROLE_NAMES


def require_permission(resource: Resource, action: Action):
    """
    Dependency factory for requiring a role permission in FastAPI routes.

    Usage:
        @router.get("/endpoint", dependencies=[Depends(require_permission(Resource.MASTER, Action.READ))])
        def endpoint(...):
            pass
    """

    def permission_checker(auth_context: AuthContextDep):
        if not has_permission(auth_context, resource, action):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions - require {resource.value}:{action.value}.",
            )

    return permission_checker
