from sqlalchemy.orm import Session
from api.v1.models.transaction import TransactionType
from api.v1.models.user import DEFAULT_CURRENCY
from api.v1.schemas.transaction import DashboardResponse, TransactionResponse
from api.v1.services.session import SessionContext
from api.v1.services.transaction_service import transaction_service
from api.v1.services.user import user_service

RECENT_TRANSACTIONS = 5


class DashboardService:
    def __init__(self):
        pass

    def compute_dashboard(self, context: SessionContext, db: Session) -> DashboardResponse:
        """
        Summarize the caller's ledger.

        Totals and the recent list are read inside the session's single
        transaction. Without snapshot isolation a row committed between the
        two reads may show up in one and not the other.
        """
        user = user_service.get_current_user(context, db)
        totals = transaction_service.get_totals(context, db)
        recent = transaction_service.get_recent_transactions(
            context, db, limit=RECENT_TRANSACTIONS
        )

        total_income = totals[TransactionType.INCOME]
        total_expenses = totals[TransactionType.EXPENSE]

        return DashboardResponse(
            total_income=float(total_income),
            total_expenses=float(total_expenses),
            balance=float(total_income - total_expenses),
            recent_transactions=[TransactionResponse.from_model(t) for t in recent],
            currency=user.currency or DEFAULT_CURRENCY,
        )


dashboard_service = DashboardService()
