"""Typed failures returned by account operations."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

if TYPE_CHECKING:
    from chat_accounts.models.user import User


class AccountError(Exception):
    """Base class for every failure the account services report."""

    code = "account_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(AccountError):
    """A lookup or token did not match any record."""

    code = "not_found"


class ValidationError(AccountError):
    """Rejected input, with the causes grouped by field name."""

    code = "validation_error"

    def __init__(self, fields: dict[str, list[str]], message: str = "Invalid attributes") -> None:
        super().__init__(message)
        self.fields = fields

    @classmethod
    def for_field(cls, field: str, reason: str) -> "ValidationError":
        return cls({field: [reason]})

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        fields: dict[str, list[str]] = {}
        for error in exc.errors():
            name = ".".join(str(part) for part in error["loc"]) or "__root__"
            fields.setdefault(name, []).append(error["msg"])
        return cls(fields)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "fields": self.fields}


class Conflict(AccountError):
    """A uniqueness violation or a concurrent write to the same row."""

    code = "conflict"

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class DeliveryFailure(AccountError):
    """The change was persisted but the notification could not be sent."""

    code = "delivery_failure"

    def __init__(self, message: str, user: "User") -> None:
        super().__init__(message)
        self.user = user
