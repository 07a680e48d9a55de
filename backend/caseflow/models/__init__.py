from sqlmodel import SQLModel

from .auth import AuthContext, TokenPayload
from .case import (
    Case,
    CaseBase,
    CaseCreate,
    CaseDetail,
    CasePublic,
    CaseUpdate,
    CaseWorkflowActionRequest,
    WorkflowAction,
)
from .case_type import CaseType, CaseTypeBase, CaseTypeCreate, CaseTypePublic
from .role import (
    ALL_ACTIONS,
    FormStageAccess,
    FormStagePermission,
    Role,
    RoleBase,
    RoleCreate,
    RolePublic,
    RoleUpdate,
    normalize_permissions,
)
from .stage_binding import (
    StageRoleBinding,
    StageRoleBindingCreate,
    StageRoleBindingPublic,
    StageRoleFlags,
    StageUserBinding,
    StageUserBindingCreate,
    StageUserBindingPublic,
    StageUserFlags,
    UserStageBindingIn,
)
from .user import CounselorPublic, User, UserBase, UserCreate, UserPublic, UserRoleAssign
from .workflow import (
    MUTATING_FLAGS,
    ROLE_ONLY_FLAGS,
    SLAState,
    SLAStatus,
    StagePermissionSummary,
    WorkflowPermissions,
)
from .workflow_stage import (
    CaseTypeWorkflow,
    SLAUnit,
    StageReorderRequest,
    StageRolePublic,
    StageUserPublic,
    WorkflowStage,
    WorkflowStageBase,
    WorkflowStageCreate,
    WorkflowStageDetail,
    WorkflowStagePublic,
    WorkflowStageUpdate,
)
