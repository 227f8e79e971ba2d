from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from api.v1.models.abstract_base import AbstractBaseModel

if TYPE_CHECKING:
    from api.v1.models.transaction import Transaction
    from api.v1.models.federated_account import FederatedAccount

DEFAULT_CURRENCY = "USD"


class User(AbstractBaseModel):
    __tablename__ = "users"

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    # null for accounts that only ever signed in through the identity provider
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default=DEFAULT_CURRENCY
    )

    transactions: Mapped[list[Transaction]] = relationship(
        "Transaction", back_populates="user", cascade="all, delete-orphan"
    )
    federated_accounts: Mapped[list[FederatedAccount]] = relationship(
        "FederatedAccount", back_populates="user", cascade="all, delete-orphan"
    )
