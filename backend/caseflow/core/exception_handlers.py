import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from caseflow.utils import APIResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

logger = logging.getLogger(__name__)


# Custom Exceptions
class ValidationException(Exception):
    pass


class NotFoundException(Exception):
    pass


class StageNotConfiguredException(NotFoundException):
    """The case's status does not match any active stage of its case type."""

    def __init__(self, case_type_id: int | None, status: str | None):
        self.case_type_id = case_type_id
        self.status = status
        super().__init__(
            f"Workflow stage not configured for status '{status}' "
            f"(case_type_id={case_type_id})"
        )


class ConflictException(Exception):
    pass


class PermissionDeniedException(Exception):
    pass


class DatabaseException(Exception):
    pass


# Exception Handler Registration
def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ValidationException)
    async def validation_exception_handler(
        request: Request, exc: ValidationException
    ):
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content=APIResponse.failure_response(str(exc)).model_dump(),
        )

    @app.exception_handler(StageNotConfiguredException)
    async def stage_not_configured_handler(
        request: Request, exc: StageNotConfiguredException
    ):
        logger.error(
            f"[stage_not_configured_handler] Workflow configuration error | "
            f"path={request.url.path}, case_type_id={exc.case_type_id}, status={exc.status}"
        )
        return JSONResponse(
            status_code=HTTP_404_NOT_FOUND,
            content=APIResponse.failure_response(
                str(exc), metadata={"reason": "stage_not_configured"}
            ).model_dump(),
        )

    @app.exception_handler(NotFoundException)
    async def not_found_handler(request: Request, exc: NotFoundException):
        return JSONResponse(
            status_code=HTTP_404_NOT_FOUND,
            content=APIResponse.failure_response(str(exc)).model_dump(),
        )

    @app.exception_handler(ConflictException)
    async def conflict_handler(request: Request, exc: ConflictException):
        return JSONResponse(
            status_code=HTTP_409_CONFLICT,
            content=APIResponse.failure_response(str(exc)).model_dump(),
        )

    @app.exception_handler(PermissionDeniedException)
    async def permission_denied_handler(
        request: Request, exc: PermissionDeniedException
    ):
        return JSONResponse(
            status_code=HTTP_403_FORBIDDEN,
            content=APIResponse.failure_response(str(exc)).model_dump(),
        )

    @app.exception_handler(DatabaseException)
    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: Exception):
        logger.error(
            f"[database_error_handler] Database error | path={request.url.path}, error={exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse.failure_response("Database error").model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_ENTITY,
            content=APIResponse.failure_response("Validation error").model_dump()
            | {"detail": jsonable_errors(exc)},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=APIResponse.failure_response(exc.detail).model_dump()
            | {"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"[generic_error_handler] Unhandled error | path={request.url.path}, error={exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse.failure_response(
                str(exc) or "An unexpected error occurred."
            ).model_dump(),
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may carry exception instances that are not JSON serializable
    return [
        {key: value for key, value in err.items() if key != "ctx"}
        for err in exc.errors()
    ]
