from typing import List

from fastapi import status

from academy.core.validation import BASE, Errors


class ServiceError(Exception):
    """Base exception for service layer errors."""

    kind = "service"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def messages(self) -> List[str]:
        return [self.message]


class ValidationError(ServiceError):
    """One or more field-scoped validation failures. Nothing was written."""

    kind = "validation"

    def __init__(self, errors: Errors) -> None:
        self.errors = errors
        super().__init__(
            "Validation failed: " + ", ".join(errors.full_messages),
            status.HTTP_400_BAD_REQUEST,
        )

    @property
    def messages(self) -> List[str]:
        return self.errors.full_messages


class IntegrityError(ServiceError):
    """Deletion refused (dependents exist) or rolled back."""

    kind = "integrity"

    def __init__(self, errors: Errors) -> None:
        self.errors = errors
        super().__init__("; ".join(errors.full_messages), status.HTTP_409_CONFLICT)

    @property
    def messages(self) -> List[str]:
        return self.errors.full_messages

    @classmethod
    def from_message(cls, message: str) -> "IntegrityError":
        errors = Errors()
        errors.add(BASE, message)
        return cls(errors)


class NotFoundError(ServiceError):
    kind = "not_found"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)
