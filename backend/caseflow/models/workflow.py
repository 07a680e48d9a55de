from enum import Enum

from sqlmodel import SQLModel


class WorkflowPermissions(SQLModel):
    """Effective permissions of one user on one case at its current stage."""

    can_approve: bool = False
    can_reject: bool = False
    can_review: bool = False
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_create_case: bool = False
    can_fill_case: bool = False

    @classmethod
    def all_granted(cls) -> "WorkflowPermissions":
        return cls(**{name: True for name in cls.model_fields})

    @classmethod
    def none_granted(cls) -> "WorkflowPermissions":
        return cls()


# Flags that change a case and are withheld from counselors not assigned to it
MUTATING_FLAGS = (
    "can_approve",
    "can_reject",
    "can_edit",
    "can_delete",
    "can_fill_case",
)

# Flags granted only through the stage-role binding
ROLE_ONLY_FLAGS = ("can_reject", "can_edit", "can_delete")


class SLAState(str, Enum):
    ON_TIME = "on_time"
    WARNING = "warning"
    BREACHED = "breached"


class SLAStatus(SQLModel):
    status: SLAState
    hours_elapsed: float
    hours_remaining: float
    hours_overdue: float
    sla_hours: float
    warning_hours: float | None = None


class StagePermissionSummary(SQLModel):
    stage_id: int
    stage_key: str
    stage_name: str
    case_type_id: int
    permissions: WorkflowPermissions
