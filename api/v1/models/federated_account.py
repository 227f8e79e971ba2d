from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from api.v1.models.abstract_base import AbstractBaseModel

if TYPE_CHECKING:
    from api.v1.models.user import User


class FederatedAccount(AbstractBaseModel):
    """An identity-provider subject linked to a local user."""

    __tablename__ = "federated_accounts"
    __table_args__ = (
        UniqueConstraint("provider", "subject", name="uq_federated_provider_subject"),
    )

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="federated_accounts")
