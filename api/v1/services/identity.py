"""
Identity verification.

Credentials arrive as one of two variants, tagged by ``provider``:

- ``PasswordCredentials``: an email and password checked against the stored
  argon2 hash.
- ``FederatedAssertion``: claims from an ID token that the OIDC client has
  already verified against the identity provider's signing keys. It is
  linked to an existing account with the same email only when the provider
  marks that email as verified.

``IdentityVerifier.verify`` dispatches on the tag through a handler table and
returns the local user the credentials belong to.
"""

import os
from dataclasses import dataclass, field
from enum import Enum as PyEnum
from typing import Callable, Optional, Union
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy import select
from api.v1.models.federated_account import FederatedAccount
from api.v1.models.user import User, DEFAULT_CURRENCY
from api.v1.services.auth import auth_service
from api.v1.utils.exceptions import InvalidCredentialsError, InvalidInputError
from api.v1.utils.logger import get_logger

logger = get_logger("identity_verifier")


class IdentityProvider(str, PyEnum):
    CREDENTIALS = "credentials"
    FEDERATED = "federated"


@dataclass(frozen=True)
class PasswordCredentials:
    email: str
    password: str
    provider: IdentityProvider = field(default=IdentityProvider.CREDENTIALS, init=False)


@dataclass(frozen=True)
class FederatedAssertion:
    issuer: str
    subject: str
    email: Optional[str]
    name: Optional[str] = None
    email_verified: bool = False
    provider: IdentityProvider = field(default=IdentityProvider.FEDERATED, init=False)


Credentials = Union[PasswordCredentials, FederatedAssertion]


class IdentityVerifier:
    def __init__(self, provider_label: str = "workos"):
        self.provider_label = provider_label
        self._handlers: dict[IdentityProvider, Callable[..., User]] = {
            IdentityProvider.CREDENTIALS: self._verify_password,
            IdentityProvider.FEDERATED: self._verify_federated,
        }

    def verify(self, credentials: Credentials, db: Session) -> User:
        handler = self._handlers.get(credentials.provider)
        if handler is None:
            raise InvalidCredentialsError()
        return handler(credentials, db)

    def _verify_password(self, credentials: PasswordCredentials, db: Session) -> User:
        try:
            user = auth_service.authenticate_user(
                credentials.email, credentials.password, db
            )
        except InvalidCredentialsError:
            logger.warning("Login failed", extra={"email": credentials.email})
            raise

        logger.info("User logged in", extra={"user_id": user.id})
        return user

    def _verify_federated(self, assertion: FederatedAssertion, db: Session) -> User:
        account = db.scalar(
            select(FederatedAccount).where(
                FederatedAccount.provider == self.provider_label,
                FederatedAccount.subject == assertion.subject,
            )
        )
        if account:
            return account.user

        if not assertion.email:
            raise InvalidInputError.for_field(
                "email", "Identity provider did not return an email address"
            )

        user = db.scalar(select(User).where(User.email == assertion.email))
        if user is not None and not assertion.email_verified:
            # an unverified email claim must not take over an existing account
            logger.warning(
                "Federated link refused",
                extra={"user_id": user.id, "provider": self.provider_label},
            )
            raise InvalidCredentialsError("Identity could not be linked")
        if user is None:
            user = User(
                name=assertion.name,
                email=assertion.email,
                password=None,
                currency=DEFAULT_CURRENCY,
            )
            db.add(user)
            db.flush()
            logger.info(
                "User created",
                extra={"user_id": user.id, "email": user.email, "via": "federated"},
            )

        db.add(
            FederatedAccount(
                user_id=user.id, provider=self.provider_label, subject=assertion.subject
            )
        )
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise InvalidCredentialsError("Identity could not be linked")
        db.refresh(user)

        logger.info(
            "Federated user linked",
            extra={"user_id": user.id, "provider": self.provider_label},
        )

        return user


identity_verifier = IdentityVerifier(os.environ.get("OIDC_PROVIDER", "workos"))
