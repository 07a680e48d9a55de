from fastapi.testclient import TestClient
from sqlmodel import Session

from caseflow.core.config import settings
from caseflow.tests.utils.test_data import create_test_user
from caseflow.tests.utils.utils import get_token_headers

BASE_URL = f"{settings.API_V1_STR}/case-types"


def test_read_case_types(client: TestClient, db: Session):
    counselor = create_test_user(db)

    response = client.get(f"{BASE_URL}/", headers=get_token_headers(counselor))

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["data"]] == ["Financial Assistance"]


def test_create_case_type(client: TestClient, superuser_token_headers):
    response = client.post(
        f"{BASE_URL}/",
        json={"name": "Education Support", "sort_order": 2},
        headers=superuser_token_headers,
    )
    assert response.status_code == 201
    assert response.json()["data"]["name"] == "Education Support"

    response = client.post(
        f"{BASE_URL}/",
        json={"name": "Education Support"},
        headers=superuser_token_headers,
    )
    assert response.status_code == 409
