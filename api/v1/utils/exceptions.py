from typing import Optional
from fastapi import HTTPException, status
from pydantic import ValidationError


class AppError(HTTPException):
    """Base for the service-level error taxonomy.

    Services raise these instead of bare ``HTTPException`` so the kind of
    failure is part of the type; the exception handler turns them into the
    standard error envelope.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.message,
            headers=headers,
        )


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(UnauthorizedError):
    message = "Invalid email or password"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class InvalidInputError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Validation error"

    def __init__(self, errors: list[dict], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @property
    def fields(self) -> list[str]:
        return [error["field"] for error in self.errors]

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "InvalidInputError":
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field if field else "body",
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return cls(errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> "InvalidInputError":
        return cls([{"field": field, "message": message, "type": "value_error"}])
