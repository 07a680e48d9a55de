from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from caseflow.core.config import settings


def get_engine():
    """Get database engine with current settings."""
    database_uri = settings.SQLALCHEMY_DATABASE_URI

    if database_uri.startswith("sqlite"):
        # A single shared connection keeps in-memory databases alive across
        # the threadpool FastAPI runs sync endpoints in
        return create_engine(
            database_uri,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # Configure connection pool settings
    pool_size = 20 if settings.ENVIRONMENT == "development" else 5
    max_overflow = 30 if settings.ENVIRONMENT == "development" else 10

    return create_engine(
        database_uri,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=300,  # Recycle connections after 5 minutes
    )


engine = get_engine()


# make sure all SQLModel models are imported (caseflow.models) before initializing DB
# otherwise, SQLModel might fail to initialize relationships properly


def init_db(session: Session) -> None:
    # Tables are created with Alembic migrations; this only loads the
    # baseline roles and default workflow.
    from caseflow.seed_data.seed_data import seed_database

    seed_database(session)
