from datetime import datetime

from sqlmodel import Field, SQLModel

from caseflow.core.util import now


# Shared properties for a CaseType
class CaseTypeBase(SQLModel):
    name: str = Field(
        unique=True,
        index=True,
        min_length=1,
        max_length=255,
        sa_column_kwargs={"comment": "Case type name"},
    )
    description: str | None = Field(
        default=None,
        max_length=500,
        sa_column_kwargs={"comment": "Case type description"},
    )
    is_active: bool = Field(
        default=True,
        sa_column_kwargs={"comment": "Flag indicating if the case type is active"},
    )
    sort_order: int = Field(
        default=0,
        sa_column_kwargs={"comment": "Display order among case types"},
    )


class CaseTypeCreate(CaseTypeBase):
    pass


# Database model for CaseType
class CaseType(CaseTypeBase, table=True):
    __tablename__ = "case_type"

    id: int = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"comment": "Unique identifier for the case type"},
    )
    inserted_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the case type was created"},
    )
    updated_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the case type was last updated"},
    )


class CaseTypePublic(CaseTypeBase):
    id: int
    inserted_at: datetime
    updated_at: datetime
