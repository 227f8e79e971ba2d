import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError
import jwt
from jwt.exceptions import InvalidTokenError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy import select
from api.v1.models.user import User, DEFAULT_CURRENCY
from api.v1.models.blacklisted_token import BlacklistedToken
from api.v1.schemas.auth import UserCreate, UserResponse, SessionResponse
from api.v1.utils.exceptions import ConflictError, InvalidCredentialsError
from api.v1.utils.logger import get_logger

logger = get_logger("auth_service")


class AuthService:
    def __init__(self):
        self.ph = PasswordHasher()
        self.secret_key = os.environ.get("JWT_SECRET_KEY")
        self.algorithm = "HS256"
        self.access_token_expire_hours = int(
            os.environ.get("ACCESS_TOKEN_EXPIRE_HOURS", 3)
        )
        # verified against when the account is unknown so both paths hash once
        self._dummy_hash = self.ph.hash("not-a-real-password")

    def hash_password(self, password: str) -> str:
        return self.ph.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        try:
            self.ph.verify(hashed_password, plain_password)
            return True
        except (VerificationError, InvalidHashError):
            return False

    def create_access_token(
        self, data: dict, expires_delta: Optional[timedelta] = None
    ) -> str:
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                hours=self.access_token_expire_hours
            )

        to_encode.update({"exp": expire, "iat": datetime.now(timezone.utc)})
        encoded_jwt = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        return encoded_jwt

    def decode_token(self, token: str) -> Optional[dict]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except InvalidTokenError:
            return None

    def is_blacklisted(self, token: str, db: Session) -> bool:
        return (
            db.scalar(select(BlacklistedToken.id).where(BlacklistedToken.token == token))
            is not None
        )

    def verify_token(self, token: str, db: Session) -> Optional[dict]:
        if self.is_blacklisted(token, db):
            return None
        return self.decode_token(token)

    def issue_session(self, user: User) -> SessionResponse:
        access_token = self.create_access_token(
            data={"sub": user.id, "email": user.email},
            expires_delta=timedelta(hours=self.access_token_expire_hours),
        )
        return SessionResponse(
            access_token=access_token, user=UserResponse.model_validate(user)
        )

    def create_user(self, user_data: UserCreate, db: Session) -> User:
        existing_user = db.scalar(select(User.id).where(User.email == user_data.email))
        if existing_user:
            raise ConflictError("Email already registered")

        new_user = User(
            name=user_data.name or None,
            email=user_data.email,
            password=self.hash_password(user_data.password),
            currency=DEFAULT_CURRENCY,
        )

        db.add(new_user)
        try:
            db.commit()
        except IntegrityError:
            # lost a race against a concurrent registration for the same email
            db.rollback()
            raise ConflictError("Email already registered")
        db.refresh(new_user)

        logger.info(
            "User created",
            extra={"user_id": new_user.id, "email": new_user.email},
        )

        return new_user

    def authenticate_user(self, email: str, password: str, db: Session) -> User:
        user = db.scalar(select(User).where(User.email == email))

        if not user or not user.password:
            self.verify_password(password, self._dummy_hash)
            raise InvalidCredentialsError()

        if not self.verify_password(password, user.password):
            raise InvalidCredentialsError()

        return user

    def logout_user(self, token: str, db: Session) -> None:
        payload = self.verify_token(token, db)
        if not payload:
            return

        expires_at = datetime.fromtimestamp(payload.get("exp"), tz=timezone.utc)
        db.add(
            BlacklistedToken(
                token=token, user_id=payload.get("sub"), expires_at=expires_at
            )
        )
        db.commit()

        logger.info("User logged out", extra={"user_id": payload.get("sub")})


auth_service = AuthService()
