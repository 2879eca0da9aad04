import os

# App startup runs init_db() on the production engine; keep it off disk
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from gallera.database import get_session  # noqa: E402
from gallera.main import app  # noqa: E402
from gallera.models.entities import BaseTeam, Front, TournamentRules  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tournament model imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session; tables are rebuilt for every test"""
    from gallera.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def teams():
    """T1 (with a second front T1F2), T2, T3"""
    return [
        BaseTeam(id="T1", name="Uno (F1)", city="Cali"),
        Front(id="T1F2", name="Uno (F2)", city="Cali", parent_id="T1"),
        BaseTeam(id="T2", name="Dos (F1)", city="Cali"),
        BaseTeam(id="T3", name="Tres (F1)", city="Pereira"),
    ]


@pytest.fixture
def rules():
    return TournamentRules(weight_tolerance=1, age_tolerance_months=2)
