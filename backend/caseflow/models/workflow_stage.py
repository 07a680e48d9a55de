from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel, UniqueConstraint

from caseflow.core.util import now
from caseflow.models.case_type import CaseTypePublic


class SLAUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"
    BUSINESS_DAYS = "business_days"
    WEEKS = "weeks"
    MONTHS = "months"


# Shared properties for a WorkflowStage
class WorkflowStageBase(SQLModel):
    stage_name: str = Field(
        max_length=255,
        sa_column_kwargs={"comment": "Display name of the stage"},
    )
    stage_key: str = Field(
        index=True,
        max_length=100,
        sa_column_kwargs={
            "comment": "Machine key of the stage, matched against case status"
        },
    )
    description: str | None = Field(
        default=None,
        max_length=500,
        sa_column_kwargs={"comment": "Stage description"},
    )
    sla_value: float | None = Field(
        default=None,
        sa_column_kwargs={"comment": "Time allowed in the stage"},
    )
    sla_unit: str | None = Field(
        default=None,
        max_length=20,
        sa_column_kwargs={"comment": "Unit of sla_value"},
    )
    sla_warning_value: float | None = Field(
        default=None,
        sa_column_kwargs={"comment": "Elapsed time after which the SLA warns"},
    )
    sla_warning_unit: str | None = Field(
        default=None,
        max_length=20,
        sa_column_kwargs={"comment": "Unit of sla_warning_value"},
    )


# Properties to receive via API on creation
class WorkflowStageCreate(WorkflowStageBase):
    case_type_id: int
    sort_order: int | None = Field(default=None, ge=1)


# Properties to receive via API on update, all are optional
class WorkflowStageUpdate(SQLModel):
    case_type_id: int | None = None
    stage_name: str | None = Field(default=None, max_length=255)
    stage_key: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    sla_value: float | None = None
    sla_unit: str | None = None
    sla_warning_value: float | None = None
    sla_warning_unit: str | None = None


# Database model for WorkflowStage
class WorkflowStage(WorkflowStageBase, table=True):
    __tablename__ = "workflow_stage"
    __table_args__ = (
        UniqueConstraint(
            "case_type_id", "stage_key", name="uq_workflow_stage_case_type_key"
        ),
    )

    id: int = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"comment": "Unique identifier for the stage"},
    )
    case_type_id: int = Field(
        foreign_key="case_type.id",
        index=True,
        nullable=False,
        ondelete="CASCADE",
        sa_column_kwargs={"comment": "Case type this stage belongs to"},
    )
    sort_order: int = Field(
        default=1,
        nullable=False,
        sa_column_kwargs={"comment": "Position of the stage within its case type"},
    )
    is_active: bool = Field(
        default=True,
        nullable=False,
        sa_column_kwargs={"comment": "False when the stage is soft-deleted"},
    )
    inserted_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the stage was created"},
    )
    updated_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the stage was last updated"},
    )


# Properties to return via API
class WorkflowStagePublic(WorkflowStageBase):
    id: int
    case_type_id: int
    sort_order: int
    is_active: bool
    inserted_at: datetime
    updated_at: datetime


class StageRolePublic(SQLModel):
    role_id: int
    name: str
    display_name: str
    can_approve: bool
    can_reject: bool
    can_review: bool
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_create_case: bool
    can_fill_case: bool


class StageUserPublic(SQLModel):
    user_id: int
    full_name: str | None
    email: str
    role: str
    can_approve: bool
    can_review: bool
    can_view: bool
    can_create_case: bool
    can_fill_case: bool


class WorkflowStageDetail(WorkflowStagePublic):
    roles: list[StageRolePublic] = []
    users: list[StageUserPublic] = []


class CaseTypeWorkflow(SQLModel):
    case_type: CaseTypePublic
    stages: list[WorkflowStageDetail]


class StageReorderRequest(SQLModel):
    case_type_id: int | None = None
    stage_ids: list[int]
