"""Pytest fixtures for API testing."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import get_db
from app.core.roles import RoleCode
from app.core.security import get_password_hash, create_access_token
from app.core.time import utc_now
from app.models.base import Base
from app.models.kri import KriDefinition
from app.models.organization import Organization
from app.models.risk_taxonomy import RiskCategory
from app.models.user import User, UserStatus

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db_session, email, role, organization=None, status=UserStatus.APPROVED.value,
              password="testpass123", full_name=None):
    user = User(
        email=email,
        full_name=full_name or email.split("@")[0].title(),
        password_hash=get_password_hash(password),
        role=role,
        status=status,
        organization_id=organization.organization_id if organization else None,
        approved_at=utc_now() if status == UserStatus.APPROVED.value else None,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def headers_for(user):
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def organization(db_session):
    org = Organization(name="Acme Bank", code="ACME", industry_type="banking")
    db_session.add(org)
    db_session.commit()
    db_session.refresh(org)
    return org


@pytest.fixture
def other_organization(db_session):
    org = Organization(name="Other Insurance", code="OTHER", industry_type="insurance")
    db_session.add(org)
    db_session.commit()
    db_session.refresh(org)
    return org


@pytest.fixture
def super_admin(db_session):
    return make_user(db_session, "root@example.com", RoleCode.SUPER_ADMIN.value)


@pytest.fixture
def primary_admin(db_session, organization):
    return make_user(db_session, "admin@example.com", RoleCode.PRIMARY_ADMIN.value, organization)


@pytest.fixture
def secondary_admin(db_session, organization):
    return make_user(db_session, "deputy@example.com", RoleCode.SECONDARY_ADMIN.value, organization)


@pytest.fixture
def test_user(db_session, organization):
    """Create a test user."""
    return make_user(db_session, "test@example.com", RoleCode.USER.value, organization,
                     full_name="Test User")


@pytest.fixture
def viewer_user(db_session, organization):
    return make_user(db_session, "viewer@example.com", RoleCode.VIEWER.value, organization)


@pytest.fixture
def other_admin(db_session, other_organization):
    return make_user(db_session, "other-admin@example.com", RoleCode.PRIMARY_ADMIN.value,
                     other_organization)


@pytest.fixture
def super_admin_headers(super_admin):
    return headers_for(super_admin)


@pytest.fixture
def admin_headers(primary_admin):
    """Get authorization headers for the organization's primary admin."""
    return headers_for(primary_admin)


@pytest.fixture
def secondary_admin_headers(secondary_admin):
    return headers_for(secondary_admin)


@pytest.fixture
def auth_headers(test_user):
    """Get authorization headers for test user."""
    return headers_for(test_user)


@pytest.fixture
def viewer_headers(viewer_user):
    return headers_for(viewer_user)


@pytest.fixture
def other_admin_headers(other_admin):
    return headers_for(other_admin)


@pytest.fixture
def taxonomy(db_session, organization):
    """Risk categories A, B and C for the organization."""
    categories = [
        RiskCategory(organization_id=organization.organization_id, name=name)
        for name in ("A", "B", "C")
    ]
    db_session.add_all(categories)
    db_session.commit()
    return categories


@pytest.fixture
def kri(db_session, organization):
    indicator = KriDefinition(
        organization_id=organization.organization_id,
        kri_code="KRI-001",
        kri_name="Non-performing loan ratio",
        unit="%",
    )
    db_session.add(indicator)
    db_session.commit()
    db_session.refresh(indicator)
    return indicator


@pytest.fixture
def user_factory(db_session):
    """Create extra users: ``user_factory(email, role, organization, status=...)``."""
    def factory(email, role=RoleCode.USER.value, organization=None, **kwargs):
        return make_user(db_session, email, role, organization, **kwargs)
    return factory
