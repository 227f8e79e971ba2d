from typing import Optional
from fastapi import APIRouter, Cookie, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
from api.v1.models.user import User
from api.v1.schemas.auth import UserCreate, UserLogin, SessionResponse
from api.v1.services.auth import auth_service
from api.v1.services.identity import identity_verifier, PasswordCredentials
from api.v1.services.oidc import oidc_client, NONCE_COOKIE_NAME, STATE_TTL
from api.v1.services.session import (
    SessionContext,
    session_service,
    SESSION_COOKIE_NAME,
)
from api.v1.utils.dependencies import get_db
from api.v1.responses.success_response import success_response

auth = APIRouter(prefix="/auth", tags=["Authentication"])


def session_response(
    session: SessionResponse, message: str, status_code: int = status.HTTP_200_OK
) -> JSONResponse:
    response = success_response(
        status_code=status_code,
        message=message,
        data=session.model_dump(),
    )
    response.set_cookie(
        SESSION_COOKIE_NAME,
        session.access_token,
        max_age=auth_service.access_token_expire_hours * 3600,
        httponly=True,
        samesite="lax",
    )
    return response


@auth.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    user: User = auth_service.create_user(user_data, db)

    return session_response(
        auth_service.issue_session(user),
        message="User created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@auth.post(
    "/login",
    status_code=status.HTTP_200_OK,
)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = identity_verifier.verify(
        PasswordCredentials(email=credentials.email, password=credentials.password), db
    )

    return session_response(auth_service.issue_session(user), message="Login successful")


@auth.post(
    "/logout",
    status_code=status.HTTP_200_OK,
)
async def logout(
    context: SessionContext = Depends(session_service.require_session),
    db: Session = Depends(get_db),
):
    auth_service.logout_user(context.token, db)

    response = success_response(message="Logout successful")
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@auth.get("/federated/login", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
async def federated_login():
    authorization_url, nonce = oidc_client.begin_sign_in()

    response = RedirectResponse(authorization_url)
    response.set_cookie(
        NONCE_COOKIE_NAME,
        nonce,
        max_age=int(STATE_TTL.total_seconds()),
        httponly=True,
        samesite="lax",
    )
    return response


@auth.get("/federated/callback", status_code=status.HTTP_200_OK)
async def federated_callback(
    code: str,
    state: str,
    oidc_nonce: Optional[str] = Cookie(default=None, alias=NONCE_COOKIE_NAME),
    db: Session = Depends(get_db),
):
    assertion = oidc_client.complete_sign_in(code, state, oidc_nonce)
    user = identity_verifier.verify(assertion, db)

    response = session_response(
        auth_service.issue_session(user), message="Login successful"
    )
    response.delete_cookie(NONCE_COOKIE_NAME)
    return response
