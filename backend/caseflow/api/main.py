from fastapi import APIRouter

from caseflow.api.routes import (
    case_types,
    cases,
    roles,
    users,
    workflow_stages,
)

api_router = APIRouter()
api_router.include_router(case_types.router)
api_router.include_router(cases.router)
api_router.include_router(roles.router)
api_router.include_router(users.router)
api_router.include_router(workflow_stages.router)
