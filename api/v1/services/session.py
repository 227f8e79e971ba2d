import os
from dataclasses import dataclass
from typing import Annotated, Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from sqlalchemy import select
from api.v1.models.user import User
from api.v1.services.auth import auth_service
from api.v1.utils.dependencies import get_db
from api.v1.utils.exceptions import UnauthorizedError

SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "session_token")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


@dataclass(frozen=True)
class SessionContext:
    """The authenticated caller, passed explicitly into every ledger call."""

    user_id: str
    email: str
    token: str


def get_session_token(
    request: Request,
    bearer_token: Annotated[Optional[str], Depends(oauth2_scheme)],
) -> Optional[str]:
    return bearer_token or request.cookies.get(SESSION_COOKIE_NAME)


class SessionService:
    def resolve_session(self, token: Optional[str], db: Session) -> Optional[SessionContext]:
        if not token:
            return None

        payload = auth_service.verify_token(token, db)
        if not payload or not payload.get("sub"):
            return None

        user = db.scalar(select(User).where(User.id == payload["sub"]))
        if not user:
            return None

        return SessionContext(user_id=user.id, email=user.email, token=token)

    def require_session(
        self,
        token: Annotated[Optional[str], Depends(get_session_token)],
        db: Session = Depends(get_db),
    ) -> SessionContext:
        context = self.resolve_session(token, db)
        if context is None:
            raise UnauthorizedError()
        return context


session_service = SessionService()
