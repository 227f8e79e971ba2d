from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from api.v1.responses.error_responses import ErrorResponse, ValidationErrorResponse
from api.v1.responses.success_response import success_response
from api.v1.schemas.transaction import (
    Pagination,
    TransactionCreate,
    TransactionPage,
    TransactionResponse,
)
from api.v1.services.session import SessionContext, session_service
from api.v1.services.transaction_service import transaction_service
from api.v1.utils.dependencies import get_db

transactions = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
    responses={401: {"model": ErrorResponse}},
)


@transactions.get("", status_code=status.HTTP_200_OK)
async def list_transactions(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    type: Optional[str] = None,
    context: SessionContext = Depends(session_service.require_session),
    db: Session = Depends(get_db),
):
    # page and limit stay strings so malformed values fall back to defaults
    items, total, page_number, page_size = transaction_service.list_transactions(
        context, db, page=page, limit=limit, transaction_type=type
    )

    data = TransactionPage(
        transactions=[TransactionResponse.from_model(t) for t in items],
        pagination=Pagination.build(page_number, page_size, total),
    )
    return success_response(message="Transactions retrieved", data=data.to_response())


@transactions.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ValidationErrorResponse}},
)
async def create_transaction(
    payload: TransactionCreate,
    context: SessionContext = Depends(session_service.require_session),
    db: Session = Depends(get_db),
):
    transaction = transaction_service.create_transaction(
        context, db, **payload.model_dump()
    )

    return success_response(
        status_code=status.HTTP_201_CREATED,
        message="Transaction created successfully",
        data=TransactionResponse.from_model(transaction).to_response(),
    )


@transactions.delete(
    "/{transaction_id}",
    status_code=status.HTTP_200_OK,
    responses={404: {"model": ErrorResponse}},
)
async def delete_transaction(
    transaction_id: str,
    context: SessionContext = Depends(session_service.require_session),
    db: Session = Depends(get_db),
):
    transaction_service.delete_transaction(context, transaction_id, db)

    return success_response(message="Transaction deleted successfully")
