from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from api.v1.responses.error_responses import ErrorResponse, ValidationErrorResponse
from api.v1.responses.success_response import success_response
from api.v1.schemas.auth import UserResponse
from api.v1.schemas.user import CurrencyUpdate, CurrencyResponse
from api.v1.services.session import SessionContext, session_service
from api.v1.services.user import user_service
from api.v1.utils.dependencies import get_db

user = APIRouter(
    prefix="/user", tags=["User"], responses={401: {"model": ErrorResponse}}
)


@user.get("/me", status_code=status.HTTP_200_OK)
async def get_profile(
    context: SessionContext = Depends(session_service.require_session),
    db: Session = Depends(get_db),
):
    current_user = user_service.get_current_user(context, db)

    return success_response(
        message="Profile retrieved",
        data=UserResponse.model_validate(current_user).model_dump(),
    )


@user.put(
    "/currency",
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ValidationErrorResponse}},
)
async def update_currency(
    payload: CurrencyUpdate,
    context: SessionContext = Depends(session_service.require_session),
    db: Session = Depends(get_db),
):
    updated = user_service.update_currency(context, payload.currency, db)

    return success_response(
        message="Currency updated",
        data=CurrencyResponse(currency=updated.currency).model_dump(),
    )
