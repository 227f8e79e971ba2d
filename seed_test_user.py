"""Create a demo account with a handful of sample transactions.

Usage: python seed_test_user.py
"""

from datetime import datetime, timezone
from decimal import Decimal
from dotenv import load_dotenv
from sqlalchemy.orm import Session
from sqlalchemy import select

load_dotenv()

import api.v1.models  # noqa: F401
from api.v1.models.transaction import Transaction, TransactionType
from api.v1.models.user import User
from api.v1.services.auth import auth_service
from api.v1.utils.database import Base, SessionLocal, engine
from api.v1.utils.logger import get_logger, setup_logger

logger = get_logger("seed")

TEST_EMAIL = "test@example.com"
TEST_PASSWORD = "password123"

SAMPLE_TRANSACTIONS = [
    (TransactionType.INCOME, "5000", "Monthly Salary", "Salary", "2024-12-01"),
    (TransactionType.EXPENSE, "1200", "Rent Payment", "Bills & Utilities", "2024-12-01"),
    (TransactionType.EXPENSE, "300", "Grocery Shopping", "Food & Dining", "2024-12-02"),
    (TransactionType.INCOME, "800", "Freelance Project", "Freelance", "2024-12-03"),
    (TransactionType.EXPENSE, "150", "Gas Station", "Transportation", "2024-12-03"),
    (TransactionType.EXPENSE, "80", "Movie Night", "Entertainment", "2024-12-04"),
    (TransactionType.INCOME, "200", "Cash Gift", "Other Income", "2024-12-05"),
]


def seed_test_user(db: Session) -> tuple[User, bool]:
    """Returns the test user and whether it was created by this call."""
    existing_user = db.scalar(select(User).where(User.email == TEST_EMAIL))
    if existing_user:
        return existing_user, False

    test_user = User(
        name="Test User",
        email=TEST_EMAIL,
        password=auth_service.hash_password(TEST_PASSWORD),
        currency="USD",
    )
    db.add(test_user)
    db.flush()

    for kind, amount, description, category, day in SAMPLE_TRANSACTIONS:
        db.add(
            Transaction(
                user_id=test_user.id,
                type=kind,
                amount=Decimal(amount),
                description=description,
                category=category,
                date=datetime.fromisoformat(day).replace(tzinfo=timezone.utc),
            )
        )

    db.commit()
    db.refresh(test_user)
    return test_user, True


if __name__ == "__main__":
    setup_logger()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        user, created = seed_test_user(db)
    finally:
        db.close()

    if created:
        logger.info("Test user created", extra={"user_id": user.id})
    else:
        logger.info("Test user already exists", extra={"user_id": user.id})
    print(f"Email: {TEST_EMAIL}")
    print(f"Password: {TEST_PASSWORD}")
