"""Pytest fixtures and configuration for WorkOps tests."""

import os

# Must be set before any workops module reads its configuration.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from datetime import datetime

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from workops.auth.errors import TokenVerificationError, VerificationFailure
from workops.auth.firebase import FirebaseCredentials, VerifiedIdentity
from workops.auth.service import AuthService
from workops.database.database import Base
from workops.database import models  # noqa: F401
from workops.database.user_repository import UserRepository
from workops.models.user import User


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PROJECT_ID = "workops-test"
TEST_CLIENT_EMAIL = "firebase-adminsdk@workops-test.iam.gserviceaccount.com"
TEST_KEY_ID = "test-key-id"


class FakeIdentityProvider:
    """In-memory stand-in for FirebaseIdentityProvider.

    Tokens registered with `register` verify to the given identity, tokens
    registered with `fail` raise the given failure, anything else is invalid.
    """

    def __init__(self):
        self.identities = {}
        self.failures = {}
        self.minted_for = []

    def register(self, token: str, identity: VerifiedIdentity) -> None:
        self.identities[token] = identity

    def fail(self, token: str, kind: VerificationFailure) -> None:
        self.failures[token] = kind

    def verify_id_token(self, token: str) -> VerifiedIdentity:
        if not token:
            raise TokenVerificationError(VerificationFailure.MISSING)
        if token in self.failures:
            raise TokenVerificationError(self.failures[token])
        if token not in self.identities:
            raise TokenVerificationError(VerificationFailure.INVALID)
        return self.identities[token]

    def create_custom_token(self, uid: str) -> str:
        self.minted_for.append(uid)
        return f"custom-token-for-{uid}"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def sample_user_base():
    """Base user data for creating test users.

    Returns a dict with default user attributes that can be overridden.
    """
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "firebase_uid": "uid-1",
        "email": "a@x.com",
        "display_name": "Alice",
        "photo_url": "https://example.com/alice.png",
        "password_hash": None,
        "is_password_set": False,
        "role": "engineer",
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def make_user(user_repository, sample_user_base):
    """Factory that stores a user with overridden attributes."""

    def _make_user(**overrides) -> User:
        data = {**sample_user_base, "id": str(uuid.uuid4()), **overrides}
        return user_repository.create(User(**data))

    return _make_user


@pytest.fixture
def alice_identity():
    return VerifiedIdentity(
        uid="uid-1",
        email="a@x.com",
        name="Alice",
        picture="https://example.com/alice.png",
        claims={"sub": "uid-1", "email": "a@x.com"},
    )


@pytest.fixture
def identity_provider(alice_identity):
    """Fake provider with a valid token for uid-1 and an expired token."""
    provider = FakeIdentityProvider()
    provider.register("token-uid-1", alice_identity)
    provider.fail("expired-token", VerificationFailure.EXPIRED)
    return provider


@pytest.fixture
def auth_service(user_repository, identity_provider):
    return AuthService(user_repository, identity_provider)


@pytest.fixture(scope="session")
def rsa_key_pair():
    """Throwaway RSA key pair (private PEM, public PEM) for token tests."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


@pytest.fixture
def firebase_credentials(rsa_key_pair):
    private_pem, _ = rsa_key_pair
    return FirebaseCredentials(
        project_id=TEST_PROJECT_ID,
        client_email=TEST_CLIENT_EMAIL,
        private_key=private_pem,
        private_key_id=TEST_KEY_ID,
    )


@pytest.fixture
def test_client(db_session: Session, identity_provider):
    """Create a FastAPI test client with the test database and fake identity provider."""
    from workops.api.app import app
    from workops.auth.dependencies import get_identity_provider
    from workops.database.database import get_db

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    # Startup keeps a provider that is already set
    app.state.identity_provider = identity_provider

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    del app.state.identity_provider


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer token-uid-1"}
