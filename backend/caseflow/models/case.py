from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

from caseflow.core.util import now
from caseflow.models.workflow import SLAStatus, WorkflowPermissions


# Shared properties for a Case
class CaseBase(SQLModel):
    case_number: str = Field(
        unique=True,
        index=True,
        min_length=1,
        max_length=100,
        sa_column_kwargs={"comment": "Human readable case reference"},
    )
    jamiat_id: int | None = Field(
        default=None,
        index=True,
        sa_column_kwargs={"comment": "Jamiat (region) the case belongs to"},
    )
    jamaat_id: int | None = Field(
        default=None,
        index=True,
        sa_column_kwargs={"comment": "Jamaat (local community) the case belongs to"},
    )


# Properties to receive via API on creation
class CaseCreate(CaseBase):
    case_type_id: int
    assigned_counselor_id: int | None = None


# Properties to receive via API on update; unset fields are left untouched
class CaseUpdate(SQLModel):
    assigned_counselor_id: int | None = None
    status: str | None = Field(default=None, max_length=100)


class WorkflowAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class CaseWorkflowActionRequest(SQLModel):
    action: WorkflowAction
    comments: str | None = Field(default=None, max_length=2000)


# Database model for Case
class Case(CaseBase, table=True):
    __tablename__ = "cases"

    id: int = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"comment": "Unique identifier for the case"},
    )
    case_type_id: int = Field(
        foreign_key="case_type.id",
        index=True,
        nullable=False,
        sa_column_kwargs={"comment": "Case type, scopes the workflow"},
    )
    status: str = Field(
        index=True,
        max_length=100,
        sa_column_kwargs={"comment": "Key of the current workflow stage"},
    )
    assigned_counselor_id: int | None = Field(
        default=None,
        foreign_key="user.id",
        index=True,
        ondelete="SET NULL",
        sa_column_kwargs={"comment": "Counselor responsible for the case"},
    )
    current_stage_entered_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "When the case entered its current stage"},
    )
    inserted_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the case was created"},
    )
    updated_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the case was last updated"},
    )


# Properties to return via API
class CasePublic(CaseBase):
    id: int
    case_type_id: int
    status: str
    assigned_counselor_id: int | None
    current_stage_entered_at: datetime
    inserted_at: datetime
    updated_at: datetime


class CaseDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    case: CasePublic
    workflow_permissions: WorkflowPermissions = PydanticField(
        alias="workflowPermissions"
    )
    sla: SLAStatus | None = None
