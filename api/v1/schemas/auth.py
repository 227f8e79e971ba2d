from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer
from api.v1.schemas.common import as_utc


class UserCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: str
    currency: str
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return as_utc(value).isoformat()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SessionResponse(TokenResponse):
    user: UserResponse
