import os
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set required environment variables for testing
os.environ["API_V1_STR"] = "/api/v1"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["STORAGE_USE_IN_MEMORY"] = "true"
os.environ["STORAGE_PROVIDER_DEFAULT"] = "R2"

from dutrel.main import app
from dutrel.database import get_db
from dutrel.models import Base, User, HouseholdRole
from dutrel.schemas.household import HouseholdCreate, HouseholdMemberCreate
from dutrel.services.household_service import HouseholdService
from dutrel.storage import get_storage_driver, reset_storage_drivers

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def engine():
    """A fresh in-memory database per test, shared by every connection."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """
    Create a new database session for each test.
    Requests made through ``client`` use the same session.
    """
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    def override_get_db():
        try:
            yield session
        finally:
            pass  # Closed after the test

    app.dependency_overrides[get_db] = override_get_db
    yield session

    session.close()
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def storage():
    """The in-memory driver for the default provider, emptied between tests."""
    reset_storage_drivers()
    yield get_storage_driver()
    reset_storage_drivers()


@pytest.fixture
def client(db_session):
    """Create a FastAPI TestClient with database session override."""
    with TestClient(app) as c:
        yield c


def _make_user(db_session, email, display_name):
    user = User(email=email, display_name=display_name, is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def payer_user(db_session):
    return _make_user(db_session, "payer@example.com", "Pat Payer")


@pytest.fixture
def member_user(db_session):
    return _make_user(db_session, "member@example.com", "Morgan Member")


@pytest.fixture
def secondary_user(db_session):
    return _make_user(db_session, "secondary@example.com", "Sam Secondary")


@pytest.fixture
def outsider_user(db_session):
    return _make_user(db_session, "outsider@example.com", "Olive Outsider")


def auth_headers_for(user):
    """Identify as ``user`` on a request."""
    return {"X-User-Id": str(user.id)}


@pytest.fixture
def payer_headers(payer_user):
    return auth_headers_for(payer_user)


@pytest.fixture
def member_headers(member_user):
    return auth_headers_for(member_user)


@pytest.fixture
def outsider_headers(outsider_user):
    return auth_headers_for(outsider_user)


@pytest.fixture
def test_household(db_session, payer_user, member_user):
    """Household with ``payer_user`` as PAYER (rank 1) and ``member_user`` as MEMBER (rank 2)."""
    service = HouseholdService(db_session)
    household = service.create_household(payer_user.id, HouseholdCreate(name="Maple Street"))
    service.add_member(
        household.id,
        payer_user.id,
        HouseholdMemberCreate(user_id=member_user.id, role=HouseholdRole.MEMBER),
    )
    db_session.refresh(household)
    return household


@pytest.fixture
def payer_member(test_household, payer_user):
    return next(m for m in test_household.members if m.user_id == payer_user.id)


@pytest.fixture
def member_member(test_household, member_user):
    return next(m for m in test_household.members if m.user_id == member_user.id)
