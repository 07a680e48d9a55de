from .case import (
    apply_workflow_action,
    create_case,
    get_adjacent_stage,
    get_case,
    get_case_by_id,
    get_case_by_number,
    get_first_stage,
    update_case,
)
from .case_type import (
    create_case_type,
    get_case_type_by_id,
    get_case_type_by_name,
    list_case_types,
    validate_case_type,
)
from .role import (
    create_role,
    delete_role,
    get_role_by_id,
    get_role_by_name,
    list_roles,
    resolve_form_stage_permissions,
    update_role,
    validate_role,
)
from .stage_binding import (
    add_role_to_stage,
    add_user_to_stage,
    check_user_role_bound,
    get_role_binding,
    get_role_binding_by_name,
    get_user_binding,
    list_available_roles,
    list_available_users,
    list_bound_role_names,
    remove_role_from_stage,
    remove_user_from_stage,
    update_role_permissions,
    update_user_permissions,
)
from .user import (
    assign_role,
    create_user,
    get_user,
    get_user_by_email,
    get_user_by_id,
    list_users,
)
from .workflow_stage import (
    create_stage,
    get_active_stage_by_key,
    get_stage,
    get_stage_by_id,
    get_stage_by_key,
    get_stage_detail,
    list_stages,
    list_stages_by_case_type,
    list_workflow_by_case_type,
    reorder_stages,
    resolve_reorder_case_type,
    restore_stage,
    soft_delete_stage,
    update_stage,
    validate_sla,
    validate_stage,
    validate_stage_key,
)
