from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from api.v1.responses.error_responses import ErrorResponse
from api.v1.responses.success_response import success_response
from api.v1.services.dashboard_service import dashboard_service
from api.v1.services.session import SessionContext, session_service
from api.v1.utils.dependencies import get_db

dashboard = APIRouter(
    prefix="/dashboard", tags=["Dashboard"], responses={401: {"model": ErrorResponse}}
)


@dashboard.get("", status_code=status.HTTP_200_OK)
async def get_dashboard(
    context: SessionContext = Depends(session_service.require_session),
    db: Session = Depends(get_db),
):
    """Income and expense totals, balance and the five newest transactions."""
    summary = dashboard_service.compute_dashboard(context, db)

    return success_response(message="Dashboard retrieved", data=summary.to_response())
