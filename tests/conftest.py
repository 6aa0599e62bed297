"""
Test configuration for the veterinary clinic backend.
"""
import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-clinic-backend-0123456789")
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["PASSWORD_RESET_MISS_DELAY_MS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vetclinic.auth.models import Owner, User
from vetclinic.core.permissions import Role
from vetclinic.core.security import create_access_token, hash_password
from vetclinic.database import Base, get_db
from vetclinic.main import app

# Test database URL
TEST_DATABASE_URL = "sqlite:///./test.db"

DEFAULT_PASSWORD = "Clinic2024pass"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def make_user(db):
    """
    Factory for staff users.
    """
    def _make_user(email="staff@clinic.com", role=Role.RECEPTION, password=DEFAULT_PASSWORD,
                   name="Staff Member", is_active=True):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_owner(db):
    """
    Factory for pet owners. Pass password=None for an owner without portal access.
    """
    def _make_owner(email="owner@mail.com", password=DEFAULT_PASSWORD, name="Pet Owner", is_active=True):
        owner = Owner(
            name=name,
            email=email,
            document="CC123456",
            password_hash=hash_password(password) if password else None,
            is_active=is_active,
        )
        db.add(owner)
        db.commit()
        db.refresh(owner)
        return owner
    return _make_owner


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@clinic.com", role=Role.ADMIN, name="Clinic Admin")


def _auth_headers(user, role=None):
    """
    Authorization header carrying a fresh token for a user or owner.
    """
    role = role or (Role(user.role) if isinstance(user, User) else Role.CLIENT)
    token = create_access_token(user.email, extra_claims={"role": role.value, "id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
def admin_headers(admin):
    return _auth_headers(admin)
