import pytest
import os

# Set environment before importing ANYTHING else
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"

from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, select
from collections.abc import Generator

# Now import after setting environment
from caseflow.core.db import engine
from caseflow.api.deps import get_db
from caseflow.main import app
from caseflow.models import Role
from caseflow.seed_data.seed_data import seed_database
from caseflow.tests.utils.utils import get_super_admin, get_token_headers


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema with the seeded baseline (roles, default workflow, super
    admin) for every test.
    """
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seed_database(session)
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def client(db: Session):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def superuser_token_headers(db: Session) -> dict[str, str]:
    return get_token_headers(get_super_admin(db))


@pytest.fixture(scope="function")
def counselor_role(db: Session) -> Role:
    return db.exec(select(Role).where(Role.name == "counselor")).one()


@pytest.fixture(scope="function")
def admin_role(db: Session) -> Role:
    return db.exec(select(Role).where(Role.name == "admin")).one()
