import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from caseflow.api.deps import AuthContextDep, SessionDep
from caseflow.api.permissions import Action, Resource, require_permission
from caseflow.crud import create_case_type, list_case_types
from caseflow.models import CaseTypeCreate, CaseTypePublic
from caseflow.utils import APIResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/case-types", tags=["Case Types"])


@router.get("/", response_model=APIResponse[List[CaseTypePublic]])
def read_case_types(
    session: SessionDep,
    auth_context: AuthContextDep,
    include_inactive: bool = Query(False),
):
    case_types = list_case_types(session=session, include_inactive=include_inactive)
    return APIResponse.success_response(case_types)


@router.post(
    "/",
    dependencies=[Depends(require_permission(Resource.MASTER, Action.CREATE))],
    response_model=APIResponse[CaseTypePublic],
    status_code=201,
)
def create_new_case_type(*, session: SessionDep, case_type_in: CaseTypeCreate):
    case_type = create_case_type(session=session, case_type_create=case_type_in)
    return APIResponse.success_response(case_type)
