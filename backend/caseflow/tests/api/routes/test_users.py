from fastapi.testclient import TestClient
from sqlmodel import Session

from caseflow.core.config import settings
from caseflow.crud import get_user_binding
from caseflow.models import User
from caseflow.tests.utils.test_data import (
    create_test_role,
    create_test_user,
    get_seeded_stage,
)
from caseflow.tests.utils.utils import (
    get_non_existent_id,
    get_token_headers,
    random_email,
)

BASE_URL = f"{settings.API_V1_STR}/users"


def test_read_user_me(client: TestClient, db: Session):
    counselor = create_test_user(db, jamiat_ids=[4])

    response = client.get(f"{BASE_URL}/me", headers=get_token_headers(counselor))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == counselor.id
    assert data["role"] == "counselor"
    assert data["jamiat_ids"] == [4]


def test_create_user(client: TestClient, db: Session, superuser_token_headers):
    stage = get_seeded_stage(db, "counselor")
    email = random_email()

    response = client.post(
        f"{BASE_URL}/",
        json={
            "email": email,
            "full_name": "New Counselor",
            "role": "counselor",
            "jamaat_ids": [12],
            "stage_bindings": [{"stage_id": stage.id, "can_fill_case": True}],
        },
        headers=superuser_token_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == email
    assert data["jamaat_ids"] == [12]
    assert get_user_binding(session=db, stage_id=stage.id, user_id=data["id"])


def test_create_user_duplicate_email(
    client: TestClient, db: Session, superuser_token_headers
):
    user = create_test_user(db)

    response = client.post(
        f"{BASE_URL}/",
        json={"email": user.email, "full_name": "Twin", "role": "counselor"},
        headers=superuser_token_headers,
    )

    assert response.status_code == 409


def test_create_user_forbidden(client: TestClient, db: Session):
    counselor = create_test_user(db)

    response = client.post(
        f"{BASE_URL}/",
        json={"email": random_email(), "full_name": "X", "role": "counselor"},
        headers=get_token_headers(counselor),
    )

    assert response.status_code == 403


def test_list_users_by_role(client: TestClient, db: Session, superuser_token_headers):
    role = create_test_role(db)
    holder = create_test_user(db, role=role.name)

    response = client.get(
        f"{BASE_URL}/", params={"role": role.name}, headers=superuser_token_headers
    )

    assert response.status_code == 200
    assert [user["id"] for user in response.json()["data"]] == [holder.id]


def test_read_user(client: TestClient, db: Session, superuser_token_headers):
    missing = get_non_existent_id(db, User)

    response = client.get(f"{BASE_URL}/{missing}", headers=superuser_token_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "User not found"


def test_assign_role(client: TestClient, db: Session, superuser_token_headers):
    user = create_test_user(db)
    stage = get_seeded_stage(db, "welfare_review")

    response = client.put(
        f"{BASE_URL}/{user.id}/role",
        json={"role": "welfare_reviewer", "stage_bindings": [{"stage_id": stage.id}]},
        headers=superuser_token_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "welfare_reviewer"
    assert get_user_binding(session=db, stage_id=stage.id, user_id=user.id)


def test_assign_unknown_role(client: TestClient, db: Session, superuser_token_headers):
    user = create_test_user(db)

    response = client.put(
        f"{BASE_URL}/{user.id}/role",
        json={"role": "astronaut"},
        headers=superuser_token_headers,
    )

    assert response.status_code == 400
