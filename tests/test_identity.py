from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from sqlalchemy import select

from api.v1.models.federated_account import FederatedAccount
from api.v1.models.user import User
from api.v1.services.auth import auth_service
from api.v1.services.identity import (
    FederatedAssertion,
    IdentityProvider,
    IdentityVerifier,
    PasswordCredentials,
)
from api.v1.services.oidc import (
    IdentityProviderUnavailable,
    NONCE_COOKIE_NAME,
    oidc_client,
)
from api.v1.utils.exceptions import InvalidCredentialsError, InvalidInputError

ISSUER = "https://idp.example.com"
METADATA = {
    "issuer": ISSUER,
    "authorization_endpoint": f"{ISSUER}/authorize",
    "token_endpoint": f"{ISSUER}/token",
    "jwks_uri": f"{ISSUER}/jwks",
}


@pytest.fixture
def verifier():
    return IdentityVerifier("workos")


@pytest.fixture
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def provider(monkeypatch, signing_key):
    class StaticJWKClient:
        def get_signing_key_from_jwt(self, token):
            return jwt.PyJWK.from_dict(
                jwt.algorithms.RSAAlgorithm.to_jwk(
                    signing_key.public_key(), as_dict=True
                )
            )

    monkeypatch.setattr(oidc_client, "_metadata", METADATA)
    monkeypatch.setattr(oidc_client, "_jwks_client", StaticJWKClient())
    return oidc_client


def make_id_token(key, **overrides):
    now = datetime.now(timezone.utc)
    claims = {
        "iss": ISSUER,
        "aud": "client_test",
        "sub": "user_01",
        "email": "fed@example.com",
        "name": "Fed User",
        "iat": now,
        "exp": now + timedelta(minutes=5),
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm="RS256")


class TestIdentityVerifier:
    def test_credentials_are_tagged_by_provider(self):
        assert PasswordCredentials("a@example.com", "pw").provider == IdentityProvider.CREDENTIALS
        assert FederatedAssertion(ISSUER, "sub", "a@example.com").provider == IdentityProvider.FEDERATED

    def test_password_variant_returns_the_user(self, db, make_user, verifier):
        user = make_user()

        verified = verifier.verify(PasswordCredentials("alice@example.com", "password123"), db)

        assert verified.id == user.id

    def test_password_variant_rejects_wrong_password(self, db, make_user, verifier):
        make_user()

        with pytest.raises(InvalidCredentialsError):
            verifier.verify(PasswordCredentials("alice@example.com", "nope"), db)

    def test_first_federated_sign_in_creates_passwordless_user(self, db, verifier):
        user = verifier.verify(
            FederatedAssertion(ISSUER, "user_01", "fed@example.com", "Fed User"), db
        )

        assert user.email == "fed@example.com"
        assert user.password is None
        assert user.currency == "USD"

    def test_federated_sign_in_links_verified_existing_email(self, db, make_user, verifier):
        existing = make_user(email="fed@example.com")

        user = verifier.verify(
            FederatedAssertion(ISSUER, "user_01", "fed@example.com", email_verified=True), db
        )

        assert user.id == existing.id
        account = db.scalar(select(FederatedAccount))
        assert (account.provider, account.subject, account.user_id) == (
            "workos",
            "user_01",
            existing.id,
        )

    def test_unverified_email_does_not_take_over_existing_account(self, db, make_user, verifier):
        make_user(email="fed@example.com")

        with pytest.raises(InvalidCredentialsError):
            verifier.verify(FederatedAssertion(ISSUER, "user_01", "fed@example.com"), db)

        assert db.scalar(select(FederatedAccount)) is None

    def test_repeat_sign_in_reuses_the_linked_account(self, db, verifier):
        first = verifier.verify(FederatedAssertion(ISSUER, "user_01", "fed@example.com"), db)
        # email changed at the provider; the subject still identifies the user
        second = verifier.verify(FederatedAssertion(ISSUER, "user_01", "new@example.com"), db)

        assert first.id == second.id
        assert db.scalar(select(User).where(User.email == "new@example.com")) is None

    def test_assertion_without_email_is_rejected(self, db, verifier):
        with pytest.raises(InvalidInputError):
            verifier.verify(FederatedAssertion(ISSUER, "user_02", None), db)


class TestOIDCClient:
    def test_authorization_url_carries_state_and_nonce(self, provider):
        authorization_url, nonce = provider.begin_sign_in()
        url = urlparse(authorization_url)
        params = parse_qs(url.query)

        assert f"{url.scheme}://{url.netloc}{url.path}" == METADATA["authorization_endpoint"]
        assert params["scope"] == ["openid profile email"]
        assert params["client_id"] == ["client_test"]
        assert params["nonce"] == [nonce]
        provider.check_state(params["state"][0], nonce)

    def test_state_is_bound_to_its_nonce(self, provider):
        state = provider.create_state("nonce-a")

        with pytest.raises(InvalidCredentialsError):
            provider.check_state(state, "nonce-b")
        with pytest.raises(InvalidCredentialsError):
            provider.check_state(state, None)

    def test_session_token_is_not_a_valid_state(self, provider, db, make_user):
        token = auth_service.issue_session(make_user()).access_token

        with pytest.raises(InvalidCredentialsError):
            provider.check_state(token, "nonce-a")

    def test_verify_id_token(self, provider, signing_key):
        assertion = provider.verify_id_token(
            make_id_token(signing_key, nonce="n-1", email_verified=True), "n-1"
        )

        assert assertion.subject == "user_01"
        assert assertion.email == "fed@example.com"
        assert assertion.issuer == ISSUER
        assert assertion.email_verified is True

    def test_email_verified_must_be_literally_true(self, provider, signing_key):
        assertion = provider.verify_id_token(
            make_id_token(signing_key, nonce="n-1", email_verified="true"), "n-1"
        )

        assert assertion.email_verified is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"aud": "someone_else"},
            {"iss": "https://evil.example.com"},
            {"nonce": "other-nonce"},
            {},
        ],
    )
    def test_verify_id_token_checks_claims(self, provider, signing_key, overrides):
        with pytest.raises(InvalidCredentialsError):
            provider.verify_id_token(make_id_token(signing_key, **overrides), "n-1")

    def test_verify_id_token_checks_signature(self, provider):
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

        with pytest.raises(InvalidCredentialsError):
            provider.verify_id_token(make_id_token(other_key, nonce="n-1"), "n-1")

    def test_unreadable_token_response_is_a_provider_failure(self, provider, monkeypatch):
        class HtmlResponse:
            status_code = 200

            def json(self):
                raise ValueError("Expecting value")

        monkeypatch.setattr(requests, "post", lambda *args, **kwargs: HtmlResponse())

        with pytest.raises(IdentityProviderUnavailable):
            provider.exchange_code("abc")


class TestFederatedRoutes:
    def start_sign_in(self, client):
        response = client.get("/api/v1/auth/federated/login", follow_redirects=False)
        params = parse_qs(urlparse(response.headers["location"]).query)
        return response, params["state"][0], params["nonce"][0]

    def test_login_redirects_to_provider_and_sets_nonce_cookie(self, client, provider):
        response, _, nonce = self.start_sign_in(client)

        assert response.status_code == 307
        assert response.headers["location"].startswith(METADATA["authorization_endpoint"])
        assert client.cookies.get(NONCE_COOKIE_NAME) == nonce

    def test_callback_issues_session(self, client, provider, signing_key, monkeypatch):
        _, state, nonce = self.start_sign_in(client)
        id_token = make_id_token(signing_key, nonce=nonce)
        monkeypatch.setattr(provider, "exchange_code", lambda code: {"id_token": id_token})

        response = client.get(
            "/api/v1/auth/federated/callback", params={"code": "abc", "state": state}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == "fed@example.com"
        assert client.get("/api/v1/dashboard").status_code == 200

    def test_callback_rejects_state_minted_for_another_browser(
        self, client, provider, signing_key, monkeypatch
    ):
        with TestClient(client.app) as attacker:
            _, attacker_state, attacker_nonce = self.start_sign_in(attacker)
        id_token = make_id_token(signing_key, nonce=attacker_nonce)
        monkeypatch.setattr(provider, "exchange_code", lambda code: {"id_token": id_token})
        self.start_sign_in(client)

        response = client.get(
            "/api/v1/auth/federated/callback",
            params={"code": "abc", "state": attacker_state},
        )

        assert response.status_code == 401
        assert "session_token" not in client.cookies

    def test_callback_without_nonce_cookie_is_rejected(self, client, provider):
        state = provider.create_state("nonce-a")

        response = client.get(
            "/api/v1/auth/federated/callback", params={"code": "abc", "state": state}
        )

        assert response.status_code == 401

    def test_callback_rejects_forged_state(self, client, provider):
        self.start_sign_in(client)

        response = client.get(
            "/api/v1/auth/federated/callback", params={"code": "abc", "state": "forged"}
        )

        assert response.status_code == 401
