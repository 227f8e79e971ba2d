from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from api.v1.models.abstract_base import AbstractBaseModel


class BlacklistedToken(AbstractBaseModel):
    """A session token revoked by logout, kept until it would have expired."""

    __tablename__ = "blacklisted_tokens"

    token: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
