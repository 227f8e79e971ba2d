import math
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from api.v1.models.transaction import Transaction, TransactionType
from api.v1.schemas.common import CamelModel, as_utc

CENTS = Decimal("0.01")
# the amount column is Numeric(12, 2)
MAX_AMOUNT = Decimal("1e10")


class TransactionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType
    amount: Decimal = Field(..., allow_inf_nan=False, lt=MAX_AMOUNT)
    description: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    date: Optional[datetime] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, value: Decimal) -> Decimal:
        try:
            value = value.quantize(CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValueError("Amount is out of range")
        if value <= 0:
            raise ValueError("Amount must be a positive number")
        if value >= MAX_AMOUNT:
            raise ValueError("Amount is out of range")
        return value

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class TransactionResponse(CamelModel):
    id: str
    type: TransactionType
    amount: float
    description: str
    category: str
    date: datetime
    created_at: datetime

    @field_serializer("date", "created_at")
    def serialize_datetime(self, value: datetime) -> str:
        return as_utc(value).isoformat()

    @classmethod
    def from_model(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            type=transaction.type,
            amount=float(transaction.amount),
            description=transaction.description,
            category=transaction.category,
            date=transaction.date,
            created_at=transaction.created_at,
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class TransactionPage(CamelModel):
    transactions: list[TransactionResponse]
    pagination: Pagination


class DashboardResponse(CamelModel):
    total_income: float
    total_expenses: float
    balance: float
    recent_transactions: list[TransactionResponse]
    currency: str
