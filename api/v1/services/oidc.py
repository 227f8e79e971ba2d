import os
import secrets
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode
import jwt
import requests
from jwt.exceptions import InvalidTokenError, PyJWKClientError
from api.v1.services.auth import auth_service
from api.v1.services.identity import FederatedAssertion
from api.v1.utils.exceptions import AppError, InvalidCredentialsError
from api.v1.utils.logger import get_logger

logger = get_logger("oidc_client")

WORKOS_DISCOVERY_URL = "https://api.workos.com/sso/oidc/.well-known/openid-configuration"
STATE_TTL = timedelta(minutes=10)
NONCE_COOKIE_NAME = "oidc_nonce"


class IdentityProviderUnavailable(AppError):
    status_code = 502
    message = "Identity provider unavailable"


class OIDCClient:
    """Authorization-code flow against an OpenID Connect provider."""

    def __init__(self):
        self.discovery_url = os.environ.get("OIDC_DISCOVERY_URL", WORKOS_DISCOVERY_URL)
        self.client_id = os.environ.get("OIDC_CLIENT_ID")
        self.client_secret = os.environ.get("OIDC_CLIENT_SECRET")
        self.redirect_uri = os.environ.get("OIDC_REDIRECT_URI")
        self.connection_id = os.environ.get("OIDC_CONNECTION_ID")
        self.timeout = int(os.environ.get("OIDC_TIMEOUT_SECONDS", 10))
        self._metadata: Optional[dict] = None
        self._jwks_client: Optional[jwt.PyJWKClient] = None

    def _get(self, url: str) -> dict:
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            logger.error(
                "Identity provider request failed",
                extra={"url": url, "error_type": type(exc).__name__},
            )
            raise IdentityProviderUnavailable()

    @property
    def metadata(self) -> dict:
        if self._metadata is None:
            self._metadata = self._get(self.discovery_url)
        return self._metadata

    @property
    def jwks_client(self) -> jwt.PyJWKClient:
        if self._jwks_client is None:
            self._jwks_client = jwt.PyJWKClient(self.metadata["jwks_uri"])
        return self._jwks_client

    def create_state(self, nonce: str) -> str:
        return auth_service.create_access_token(
            {"purpose": "oidc_state", "nonce": nonce}, expires_delta=STATE_TTL
        )

    def check_state(self, state: str, nonce: Optional[str]) -> None:
        """Reject a state that was not minted for this browser's nonce cookie."""
        payload = auth_service.decode_token(state)
        if (
            not payload
            or payload.get("purpose") != "oidc_state"
            or not nonce
            or not secrets.compare_digest(
                str(payload.get("nonce", "")).encode(), nonce.encode()
            )
        ):
            raise InvalidCredentialsError("Invalid sign-in state")

    def begin_sign_in(self) -> tuple[str, str]:
        """
        Build the provider authorization URL for a new sign-in.

        Returns:
            (authorization_url, nonce); the caller keeps the nonce in a cookie
            so the callback can prove it comes back to the same browser
        """
        nonce = secrets.token_urlsafe(16)
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": "openid profile email",
            "state": self.create_state(nonce),
            "nonce": nonce,
        }
        if self.connection_id:
            params["connection"] = self.connection_id
        return f"{self.metadata['authorization_endpoint']}?{urlencode(params)}", nonce

    def exchange_code(self, code: str) -> dict:
        try:
            response = requests.post(
                self.metadata["token_endpoint"],
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error(
                "Token exchange failed", extra={"error_type": type(exc).__name__}
            )
            raise IdentityProviderUnavailable()

        if response.status_code != 200:
            logger.warning(
                "Token exchange rejected", extra={"status_code": response.status_code}
            )
            raise InvalidCredentialsError("Sign-in was rejected by the identity provider")

        try:
            tokens = response.json()
        except ValueError:
            tokens = None
        if not isinstance(tokens, dict):
            logger.error("Token exchange returned an unreadable body")
            raise IdentityProviderUnavailable()

        return tokens

    def verify_id_token(self, id_token: str, nonce: str) -> FederatedAssertion:
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(id_token)
            claims = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=self.metadata.get("issuer"),
            )
        except (InvalidTokenError, PyJWKClientError):
            raise InvalidCredentialsError("Invalid identity token")

        if not secrets.compare_digest(
            str(claims.get("nonce", "")).encode(), nonce.encode()
        ):
            raise InvalidCredentialsError("Invalid identity token")

        return FederatedAssertion(
            issuer=claims.get("iss", ""),
            subject=claims["sub"],
            email=claims.get("email"),
            name=claims.get("name"),
            email_verified=claims.get("email_verified") is True,
        )

    def complete_sign_in(
        self, code: str, state: str, nonce: Optional[str]
    ) -> FederatedAssertion:
        self.check_state(state, nonce)
        tokens = self.exchange_code(code)
        id_token = tokens.get("id_token")
        if not id_token:
            raise InvalidCredentialsError("Identity provider returned no ID token")
        return self.verify_id_token(id_token, nonce)


oidc_client = OIDCClient()
