"""Translate service results into HTTP responses."""
from __future__ import annotations

from typing import TypeVar

from fastapi import HTTPException, status

from chat_accounts.core.errors import AccountError, Conflict, DeliveryFailure, NotFound, ValidationError
from chat_accounts.core.results import Err, Result

T = TypeVar("T")

_STATUS_BY_ERROR: dict[type[AccountError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    Conflict: status.HTTP_409_CONFLICT,
    DeliveryFailure: status.HTTP_502_BAD_GATEWAY,
}


def http_error(error: AccountError) -> HTTPException:
    status_code = next(
        (code for kind, code in _STATUS_BY_ERROR.items() if isinstance(error, kind)),
        status.HTTP_400_BAD_REQUEST,
    )
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status_code, detail=error.to_dict())
    return HTTPException(status_code=status_code, detail=error.message)


def unwrap(result: Result[T]) -> T:
    if isinstance(result, Err):
        raise http_error(result.error)
    return result.value
