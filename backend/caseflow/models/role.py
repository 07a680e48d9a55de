from datetime import datetime
from typing import Any

from pydantic import field_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from caseflow.core.util import now

# Action that grants every other action on the same resource
ALL_ACTIONS = "all"


class FormStagePermission(SQLModel):
    """Read/update access of a role to one section of the counseling form."""

    stage_key: str = Field(min_length=1, max_length=100)
    stage_name: str | None = Field(default=None, max_length=255)
    can_read: bool = False
    can_update: bool = False


def normalize_permissions(value: Any) -> dict[str, list[str]]:
    """
    Convert role permissions to the canonical `resource -> [actions]` mapping.

    Accepts the mapping form (`{"cases": ["read", "update"]}`) or the legacy
    array form (`[{"resource": "cases", "action": "read"}, ...]`). Actions are
    de-duplicated and sorted so that stored permissions compare equal.
    """
    if value is None:
        return {}

    merged: dict[str, set[str]] = {}
    if isinstance(value, dict):
        for resource, actions in value.items():
            if isinstance(actions, str):
                actions = [actions]
            if not isinstance(actions, (list, tuple, set)):
                raise ValueError(
                    f"Actions for resource '{resource}' must be a list of strings"
                )
            merged.setdefault(str(resource), set()).update(
                str(action) for action in actions
            )
    elif isinstance(value, list):
        for entry in value:
            if not isinstance(entry, dict) or not entry.get("resource"):
                raise ValueError(
                    "Permission entries must be objects with 'resource' and 'action'"
                )
            action = entry.get("action")
            if not action:
                raise ValueError(
                    f"Permission entry for '{entry['resource']}' has no action"
                )
            merged.setdefault(str(entry["resource"]), set()).add(str(action))
    else:
        raise ValueError("Permissions must be a mapping or a list of entries")

    return {resource: sorted(actions) for resource, actions in merged.items()}


class RoleBase(SQLModel):
    name: str = Field(
        unique=True,
        index=True,
        min_length=1,
        max_length=100,
        sa_column_kwargs={"comment": "Unique role name referenced by users"},
    )
    display_name: str = Field(
        max_length=255,
        sa_column_kwargs={"comment": "Human readable role name"},
    )
    description: str | None = Field(
        default=None,
        max_length=500,
        sa_column_kwargs={"comment": "Role description"},
    )
    is_active: bool = Field(
        default=True,
        sa_column_kwargs={"comment": "Flag indicating if the role is active"},
    )


class RoleCreate(RoleBase):
    permissions: dict[str, list[str]] = Field(default_factory=dict)
    counseling_form_stages: list[FormStagePermission] = Field(default_factory=list)

    @field_validator("permissions", mode="before")
    @classmethod
    def _normalize_permissions(cls, value: Any) -> dict[str, list[str]]:
        return normalize_permissions(value)


class RoleUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    display_name: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    permissions: dict[str, list[str]] | None = None
    counseling_form_stages: list[FormStagePermission] | None = None

    @field_validator("permissions", mode="before")
    @classmethod
    def _normalize_permissions(cls, value: Any) -> dict[str, list[str]] | None:
        if value is None:
            return None
        return normalize_permissions(value)


class Role(RoleBase, table=True):
    id: int = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"comment": "Unique identifier for the role"},
    )
    is_system_role: bool = Field(
        default=False,
        nullable=False,
        sa_column_kwargs={"comment": "System roles cannot be edited or deleted"},
    )
    permissions: dict[str, list[str]] = Field(
        default_factory=dict,
        sa_column=Column(
            JSON,
            nullable=False,
            comment="Canonical mapping of resource to allowed actions",
        ),
    )
    counseling_form_stages: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(
            JSON,
            nullable=False,
            comment="Per-form-section read/update permissions",
        ),
    )
    inserted_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the role was created"},
    )
    updated_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the role was last updated"},
    )

    def has_permission(self, resource: str, action: str) -> bool:
        actions = (self.permissions or {}).get(resource, [])
        return action in actions or ALL_ACTIONS in actions


class RolePublic(RoleBase):
    id: int
    is_system_role: bool
    permissions: dict[str, list[str]]
    counseling_form_stages: list[FormStagePermission]
    inserted_at: datetime
    updated_at: datetime


class FormStageAccess(SQLModel):
    can_read: bool = False
    can_update: bool = False
