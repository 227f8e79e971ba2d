from typing import Generator
from sqlalchemy.orm import Session
from api.v1.utils.database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
