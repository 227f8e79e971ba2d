import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["OIDC_CLIENT_ID"] = "client_test"
os.environ["OIDC_CLIENT_SECRET"] = "secret_test"
os.environ["OIDC_REDIRECT_URI"] = "http://testserver/api/v1/auth/federated/callback"

import pytest
from fastapi.testclient import TestClient

from main import app
from api.v1.models.user import User
from api.v1.services.auth import auth_service
from api.v1.services.session import SessionContext
from api.v1.utils.database import Base, SessionLocal, engine


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    def _make_user(email="alice@example.com", password="password123", name="Alice"):
        user = User(
            name=name,
            email=email,
            password=auth_service.hash_password(password) if password else None,
            currency="USD",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_context():
    def _make_context(user):
        return SessionContext(user_id=user.id, email=user.email, token="")

    return _make_context


@pytest.fixture
def auth_headers(client):
    def _auth_headers(email="alice@example.com", password="password123", name="Alice"):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        token = response.json()["data"]["access_token"]
        # the register response sets a cookie; drop it so headers are the only credential
        client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
