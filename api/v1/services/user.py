from typing import Optional
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy import select
from api.v1.models.user import User
from api.v1.schemas.user import CurrencyUpdate
from api.v1.services.session import SessionContext
from api.v1.utils.exceptions import InvalidInputError, NotFoundError
from api.v1.utils.logger import get_logger

logger = get_logger("user_service")


class UserService:
    def __init__(self):
        pass

    def get_user_by_id(self, user_id: str, db: Session) -> User | None:
        return db.scalar(select(User).where(User.id == user_id))

    def get_current_user(self, context: SessionContext, db: Session) -> User:
        user = self.get_user_by_id(context.user_id, db)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_currency(
        self, context: SessionContext, currency: Optional[str], db: Session
    ) -> User:
        try:
            data = CurrencyUpdate(currency=currency)
        except ValidationError as exc:
            raise InvalidInputError.from_validation_error(exc)

        user = self.get_current_user(context, db)
        user.currency = data.currency
        db.commit()
        db.refresh(user)

        logger.info(
            "Currency updated",
            extra={"user_id": user.id, "currency": user.currency},
        )

        return user


user_service = UserService()
