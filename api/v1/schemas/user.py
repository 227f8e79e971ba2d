from pydantic import BaseModel, Field


class CurrencyUpdate(BaseModel):
    # length only; membership in ISO 4217 is not checked
    currency: str = Field(..., min_length=3, max_length=3)


class CurrencyResponse(BaseModel):
    currency: str
