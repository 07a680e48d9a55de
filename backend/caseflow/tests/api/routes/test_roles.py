from fastapi.testclient import TestClient
from sqlmodel import Session

from caseflow.core.config import settings
from caseflow.crud import get_role_by_name
from caseflow.models import Role
from caseflow.tests.utils.test_data import (
    bind_role,
    create_test_role,
    create_test_stage,
    create_test_user,
)
from caseflow.tests.utils.utils import (
    get_non_existent_id,
    get_token_headers,
    random_lower_string,
)

BASE_URL = f"{settings.API_V1_STR}/roles"


def test_read_roles(client: TestClient, superuser_token_headers):
    response = client.get(f"{BASE_URL}/", headers=superuser_token_headers)

    assert response.status_code == 200
    roles = {role["name"]: role for role in response.json()["data"]}
    assert roles["super_admin"]["is_system_role"] is True
    assert roles["welfare_reviewer"]["permissions"] == {
        "cases": ["read", "update"],
        "counseling_forms": ["read"],
    }


def test_read_roles_forbidden_for_counselor(client: TestClient, db: Session):
    counselor = create_test_user(db)

    response = client.get(f"{BASE_URL}/", headers=get_token_headers(counselor))

    assert response.status_code == 403
    assert "roles:read" in response.json()["error"]


def test_create_role(client: TestClient, superuser_token_headers):
    name = f"role_{random_lower_string()}"

    response = client.post(
        f"{BASE_URL}/",
        json={
            "name": name,
            "display_name": "Zonal Coordinator",
            "permissions": [{"resource": "cases", "action": "read"}],
            "counseling_form_stages": [
                {"stage_key": "family_details", "can_read": True}
            ],
        },
        headers=superuser_token_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == name
    assert data["permissions"] == {"cases": ["read"]}
    assert data["counseling_form_stages"][0]["stage_key"] == "family_details"
    assert data["counseling_form_stages"][0]["can_update"] is False


def test_create_role_duplicate(client: TestClient, superuser_token_headers):
    response = client.post(
        f"{BASE_URL}/",
        json={"name": "counselor", "display_name": "Counselor"},
        headers=superuser_token_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "Role name already exists"


def test_read_role(client: TestClient, db: Session, superuser_token_headers):
    role = create_test_role(db)

    response = client.get(f"{BASE_URL}/{role.id}", headers=superuser_token_headers)
    assert response.status_code == 200
    assert response.json()["data"]["name"] == role.name

    missing = get_non_existent_id(db, Role)
    response = client.get(f"{BASE_URL}/{missing}", headers=superuser_token_headers)
    assert response.status_code == 404


def test_update_role(client: TestClient, db: Session, superuser_token_headers):
    role = create_test_role(db)

    response = client.put(
        f"{BASE_URL}/{role.id}",
        json={"display_name": "Renamed", "permissions": {"cases": ["read", "read"]}},
        headers=superuser_token_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["display_name"] == "Renamed"
    assert data["permissions"] == {"cases": ["read"]}


def test_update_system_role(client: TestClient, db: Session, superuser_token_headers):
    super_admin = get_role_by_name(session=db, name="super_admin")

    response = client.put(
        f"{BASE_URL}/{super_admin.id}",
        json={"display_name": "Root"},
        headers=superuser_token_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot modify system roles"


def test_rename_bound_role(client: TestClient, db: Session, superuser_token_headers):
    role = create_test_role(db)
    bind_role(db, create_test_stage(db), role)

    response = client.put(
        f"{BASE_URL}/{role.id}",
        json={"name": f"role_{random_lower_string()}"},
        headers=superuser_token_headers,
    )

    assert response.status_code == 400


def test_delete_role(client: TestClient, db: Session, superuser_token_headers):
    role = create_test_role(db)
    held = create_test_role(db)
    create_test_user(db, role=held.name)

    response = client.delete(f"{BASE_URL}/{role.id}", headers=superuser_token_headers)
    assert response.status_code == 200
    assert response.json()["data"]["message"] == "Role deleted"

    response = client.delete(f"{BASE_URL}/{held.id}", headers=superuser_token_headers)
    assert response.status_code == 400


def test_my_form_stage_permissions(client: TestClient, db: Session):
    counselor = create_test_user(db)

    response = client.get(
        f"{BASE_URL}/me/form-stage-permissions", headers=get_token_headers(counselor)
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["*"] == {"can_read": True, "can_update": False}
    assert data["personal_details"] == {"can_read": True, "can_update": True}
