from datetime import datetime

from sqlmodel import Field, SQLModel

from caseflow.core.util import now


class StageUserFlags(SQLModel):
    """Flags a stage-user binding can grant."""

    can_approve: bool = Field(
        default=False, sa_column_kwargs={"comment": "May approve cases"}
    )
    can_review: bool = Field(
        default=False, sa_column_kwargs={"comment": "May review cases"}
    )
    can_view: bool = Field(default=True, sa_column_kwargs={"comment": "May view cases"})
    can_create_case: bool = Field(
        default=False, sa_column_kwargs={"comment": "May create cases in the stage"}
    )
    can_fill_case: bool = Field(
        default=False, sa_column_kwargs={"comment": "May fill case forms"}
    )


class StageRoleFlags(StageUserFlags):
    """Flags a stage-role binding can grant: the user flags plus the role-only ones."""

    can_reject: bool = Field(
        default=False, sa_column_kwargs={"comment": "May reject cases"}
    )
    can_edit: bool = Field(
        default=False, sa_column_kwargs={"comment": "May edit cases"}
    )
    can_delete: bool = Field(
        default=False, sa_column_kwargs={"comment": "May delete cases"}
    )


class StageRoleBindingCreate(StageRoleFlags):
    role_id: int


class StageUserBindingCreate(StageUserFlags):
    user_id: int


class UserStageBindingIn(StageUserFlags):
    """A stage binding supplied as part of a user create or role assignment."""

    stage_id: int


class StageRoleBinding(StageRoleFlags, table=True):
    __tablename__ = "workflow_stage_role"

    stage_id: int = Field(
        foreign_key="workflow_stage.id",
        primary_key=True,
        ondelete="CASCADE",
        sa_column_kwargs={"comment": "Bound stage"},
    )
    role_id: int = Field(
        foreign_key="role.id",
        primary_key=True,
        ondelete="CASCADE",
        sa_column_kwargs={"comment": "Bound role"},
    )
    inserted_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the binding was created"},
    )
    updated_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the binding was last updated"},
    )


class StageUserBinding(StageUserFlags, table=True):
    __tablename__ = "workflow_stage_user"

    stage_id: int = Field(
        foreign_key="workflow_stage.id",
        primary_key=True,
        ondelete="CASCADE",
        sa_column_kwargs={"comment": "Bound stage"},
    )
    user_id: int = Field(
        foreign_key="user.id",
        primary_key=True,
        ondelete="CASCADE",
        sa_column_kwargs={"comment": "Bound user"},
    )
    inserted_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the binding was created"},
    )
    updated_at: datetime = Field(
        default_factory=now,
        nullable=False,
        sa_column_kwargs={"comment": "Timestamp when the binding was last updated"},
    )


class StageRoleBindingPublic(StageRoleFlags):
    stage_id: int
    role_id: int


class StageUserBindingPublic(StageUserFlags):
    stage_id: int
    user_id: int
