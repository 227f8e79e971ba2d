from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy import select, func, delete
from api.v1.models.transaction import Transaction, TransactionType
from api.v1.schemas.transaction import TransactionCreate
from api.v1.services.session import SessionContext
from api.v1.utils.exceptions import InvalidInputError, NotFoundError
from api.v1.utils.logger import get_logger

logger = get_logger("transaction_service")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def coerce_positive_int(value: Any, default: int, maximum: Optional[int] = None) -> int:
    """Parse a query parameter leniently, falling back to ``default``."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number


def parse_type_filter(value: Optional[str]) -> Optional[TransactionType]:
    if value is None or value.strip() == "":
        return None
    try:
        return TransactionType(value.strip().upper())
    except ValueError:
        raise InvalidInputError.for_field(
            "type", "Input should be 'INCOME' or 'EXPENSE'"
        )


class TransactionService:
    def __init__(self):
        pass

    def create_transaction(
        self,
        context: SessionContext,
        db: Session,
        **fields: Any,
    ) -> Transaction:
        try:
            data = TransactionCreate.model_validate(fields)
        except ValidationError as exc:
            raise InvalidInputError.from_validation_error(exc)

        transaction = Transaction(
            user_id=context.user_id,
            type=data.type,
            amount=data.amount,
            description=data.description,
            category=data.category,
            date=data.date or datetime.now(timezone.utc),
        )

        db.add(transaction)
        db.commit()
        db.refresh(transaction)

        logger.info(
            "Transaction created",
            extra={
                "transaction_id": transaction.id,
                "user_id": context.user_id,
                "type": transaction.type.value,
                "amount": str(transaction.amount),
            },
        )

        return transaction

    def list_transactions(
        self,
        context: SessionContext,
        db: Session,
        page: Any = DEFAULT_PAGE,
        limit: Any = DEFAULT_PAGE_SIZE,
        transaction_type: Optional[str] = None,
    ) -> tuple[list[Transaction], int, int, int]:
        """
        List the caller's transactions, most recent transaction date first.

        Returns:
            (items, total, page, limit) with page and limit as actually applied
        """
        page = coerce_positive_int(page, DEFAULT_PAGE)
        limit = coerce_positive_int(limit, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
        kind = parse_type_filter(transaction_type)

        conditions = [Transaction.user_id == context.user_id]
        if kind is not None:
            conditions.append(Transaction.type == kind)

        total = db.scalar(select(func.count(Transaction.id)).where(*conditions)) or 0

        query = (
            select(Transaction)
            .where(*conditions)
            .order_by(
                Transaction.date.desc(),
                Transaction.created_at.desc(),
                Transaction.id.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return list(db.scalars(query).all()), total, page, limit

    def delete_transaction(
        self, context: SessionContext, transaction_id: str, db: Session
    ) -> None:
        # owner id is part of the predicate so foreign rows look absent
        result = db.execute(
            delete(Transaction).where(
                Transaction.id == transaction_id,
                Transaction.user_id == context.user_id,
            )
        )
        db.commit()

        if result.rowcount == 0:
            raise NotFoundError("Transaction not found")

        logger.info(
            "Transaction deleted",
            extra={"transaction_id": transaction_id, "user_id": context.user_id},
        )

    def get_totals(
        self, context: SessionContext, db: Session
    ) -> dict[TransactionType, Decimal]:
        results = db.execute(
            select(Transaction.type, func.sum(Transaction.amount))
            .where(Transaction.user_id == context.user_id)
            .group_by(Transaction.type)
        ).all()

        totals = {kind: Decimal("0") for kind in TransactionType}
        for kind, total in results:
            totals[kind] = Decimal(total or 0)
        return totals

    def get_recent_transactions(
        self, context: SessionContext, db: Session, limit: int = 5
    ) -> list[Transaction]:
        query = (
            select(Transaction)
            .where(Transaction.user_id == context.user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        )
        return list(db.scalars(query).all())


transaction_service = TransactionService()
