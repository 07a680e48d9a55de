from datetime import datetime

from pydantic import EmailStr
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from caseflow.core.util import now
from caseflow.models.stage_binding import UserStageBindingIn


# Shared properties
class UserBase(SQLModel):
    """Base model for users with common data fields."""

    email: EmailStr = Field(
        unique=True,
        index=True,
        max_length=255,
        sa_column_kwargs={"comment": "User's email address"},
    )
    full_name: str | None = Field(
        default=None,
        max_length=255,
        sa_column_kwargs={"comment": "User's full name"},
    )
    role: str = Field(
        foreign_key="role.name",
        index=True,
        max_length=100,
        sa_column_kwargs={"comment": "Name of the role held by the user"},
    )
    is_active: bool = Field(
        default=True,
        sa_column_kwargs={"comment": "Flag indicating if the user account is active"},
    )


# Properties to receive via API on creation
class UserCreate(UserBase):
    jamiat_ids: list[int] = Field(default_factory=list)
    jamaat_ids: list[int] = Field(default_factory=list)
    stage_bindings: list[UserStageBindingIn] = Field(default_factory=list)


class UserRoleAssign(SQLModel):
    role: str = Field(min_length=1, max_length=100)
    # None keeps the current bindings, a list replaces them
    stage_bindings: list[UserStageBindingIn] | None = None


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: int = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"comment": "Unique identifier for the user"},
    )
    jamiat_ids: list[int] = Field(
        default_factory=list,
        sa_column=Column(
            JSON,
            nullable=False,
            comment="Jamiats the user serves, empty for no restriction",
        ),
    )
    jamaat_ids: list[int] = Field(
        default_factory=list,
        sa_column=Column(
            JSON,
            nullable=False,
            comment="Jamaats the user serves, empty for no restriction",
        ),
    )
    inserted_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the user was created"},
    )


# Properties to return via API, id is always required
class UserPublic(UserBase):
    id: int
    jamiat_ids: list[int]
    jamaat_ids: list[int]


class CounselorPublic(SQLModel):
    id: int
    full_name: str | None
