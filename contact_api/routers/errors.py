"""Translate service exceptions into HTTP errors."""
from __future__ import annotations

from fastapi import HTTPException

from contact_api.domain.errors import InvalidArgumentError
from contact_api.services.auth_service import (
    AccountExistsError,
    AccountNotFoundError,
    InvalidCredentialsError,
    RegistrationError,
)
from contact_api.services.contact_service import ContactNotFoundError, DefaultListMissingError
from contact_api.services.list_service import AlarmNotFoundError, ItemNotFoundError, ListNotFoundError
from contact_api.services.share_service import CodeNotFoundError, CodeSpaceExhaustedError

_STATUS = (
    (InvalidArgumentError, 400),
    (RegistrationError, 400),
    (InvalidCredentialsError, 401),
    (AccountExistsError, 409),
    (AccountNotFoundError, 404),
    (CodeNotFoundError, 404),
    (ContactNotFoundError, 404),
    (DefaultListMissingError, 404),
    (ListNotFoundError, 404),
    (ItemNotFoundError, 404),
    (AlarmNotFoundError, 404),
    (CodeSpaceExhaustedError, 503),
)

HANDLED = tuple(exc_type for exc_type, _ in _STATUS)


def to_http(exc: Exception) -> HTTPException:
    for exc_type, status in _STATUS:
        if isinstance(exc, exc_type):
            return HTTPException(status, str(exc))
    return HTTPException(500, "Unexpected error")
