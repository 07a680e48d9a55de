import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError
from caseflow.core.exception_handlers import (
    register_exception_handlers,
    ConflictException,
    DatabaseException,
    NotFoundException,
    PermissionDeniedException,
    StageNotConfiguredException,
    ValidationException,
)


class Payload(BaseModel):
    count: int


@pytest.fixture
def app_with_exception_handlers():
    app = FastAPI()
    register_exception_handlers(app)

    # Add routes that trigger each exception
    @app.get("/raise/validation")
    def raise_validation():
        raise ValidationException("Stage key must contain only lowercase letters")

    @app.get("/raise/not_found")
    def raise_not_found():
        raise NotFoundException("Workflow stage not found")

    @app.get("/raise/conflict")
    def raise_conflict():
        raise ConflictException("Role is already assigned to this stage")

    @app.get("/raise/permission")
    def raise_permission():
        raise PermissionDeniedException("You do not have permission to edit this case")

    @app.get("/raise/database")
    def raise_database():
        raise DatabaseException("Integrity error")

    @app.get("/raise/sqlalchemy")
    def raise_sqlalchemy():
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    @app.get("/raise/http")
    def raise_http():
        raise HTTPException(status_code=401, detail="Not authenticated")

    @app.get("/raise/stage_not_configured")
    def raise_stage_not_configured():
        raise StageNotConfiguredException(3, "ghost")

    @app.post("/payload")
    def accept_payload(payload: Payload):
        return payload

    return app


@pytest.mark.parametrize(
    "path,status,message_substring",
    [
        ("/raise/validation", 400, "lowercase letters"),
        ("/raise/not_found", 404, "Workflow stage not found"),
        ("/raise/conflict", 409, "already assigned"),
        ("/raise/permission", 403, "permission to edit"),
        ("/raise/database", 500, "Database error"),
        ("/raise/sqlalchemy", 500, "Database error"),
        ("/raise/http", 401, "Not authenticated"),
    ],
)
def test_custom_exceptions(
    app_with_exception_handlers, path, status, message_substring
):
    client = TestClient(app_with_exception_handlers)
    response = client.get(path)
    json_data = response.json()

    assert response.status_code == status
    assert json_data["success"] is False
    assert "error" in json_data
    assert message_substring in json_data["error"]


def test_stage_not_configured_is_distinct_from_not_found(app_with_exception_handlers):
    client = TestClient(app_with_exception_handlers)

    configuration_error = client.get("/raise/stage_not_configured").json()
    missing = client.get("/raise/not_found").json()

    assert "'ghost'" in configuration_error["error"]
    assert configuration_error["metadata"] == {"reason": "stage_not_configured"}
    assert missing["metadata"] is None


def test_request_validation_error(app_with_exception_handlers):
    client = TestClient(app_with_exception_handlers)

    response = client.post("/payload", json={"count": "many"})
    json_data = response.json()

    assert response.status_code == 422
    assert json_data["success"] is False
    assert json_data["error"] == "Validation error"
    assert json_data["detail"][0]["loc"] == ["body", "count"]
