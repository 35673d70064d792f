"""
Account registration, login and profile use cases.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import structlog

from contact_api.core.security import hash_password, needs_rehash, verify_password
from contact_api.db.models import Account
from contact_api.domain.profile import PROFILE_KEYS, profile_completion, validate_profession_type
from contact_api.repositories.sql_repository import SQLRepository
from contact_api.services.session_service import delete_session, issue_session

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthError(Exception):
    """Base class for authentication-related exceptions."""


class RegistrationError(AuthError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccountExistsError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class AccountNotFoundError(AuthError):
    pass


@dataclass
class LoginSuccess:
    account_id: str
    email: str
    session_token: str


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def normalize_phone(value: str | None) -> Optional[str]:
    phone = (value or "").strip()
    return phone or None


class AuthService:
    """Handles registration, login and profile updates."""

    def __init__(self, repository: Optional[SQLRepository] = None) -> None:
        self.repository = repository or SQLRepository()

    # -------------------------------------- registration --------------------------------------
    def register(
        self,
        email: str,
        password: str,
        *,
        full_name: str,
        profession_type: str,
        phone: str | None = None,
        profession_info: Mapping[str, Any] | None = None,
    ) -> Account:
        raw_email = normalize_email(email)
        if not raw_email or "@" not in raw_email:
            raise RegistrationError("A valid email is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise RegistrationError(f"Password too short. Use at least {MIN_PASSWORD_LENGTH} characters")
        name = (full_name or "").strip()
        if not name:
            raise RegistrationError("Full name is required")
        profession = validate_profession_type(profession_type)
        phone_value = normalize_phone(phone)
        if self.repository.get_account_by_email(raw_email):
            raise AccountExistsError("An account with this email already exists")
        if phone_value and self.repository.get_account_by_phone(phone_value):
            raise AccountExistsError("An account with this phone number already exists")
        account = self.repository.create_account(
            raw_email,
            hash_password(password),
            full_name=name,
            profession_type=profession,
            phone=phone_value,
            profession_info=dict(profession_info or {}),
        )
        logger.info("account.registered", account_id=account.id, profession_type=profession)
        return account

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, password: str) -> LoginSuccess:
        raw_email = normalize_email(email)
        if not raw_email:
            raise InvalidCredentialsError("Invalid credentials")
        account = self.repository.get_account_by_email(raw_email)
        if not account or not account.is_active or not verify_password(password, account.password_hash):
            raise InvalidCredentialsError("Invalid credentials")
        if needs_rehash(account.password_hash):
            self.repository.update_account_password(account.id, hash_password(password))
        token = issue_session(account.id)
        return LoginSuccess(account_id=account.id, email=account.email, session_token=token)

    def logout(self, session_token: Optional[str]):
        if not session_token:
            return
        delete_session(session_token)

    # -------------------------------------- profile --------------------------------------
    def get_account(self, account_id: str) -> Account:
        account = self.repository.get_account(account_id)
        if not account:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def update_profile(self, account_id: str, changes: Mapping[str, Any]) -> Account:
        """Apply whitelisted changes; unknown keys are ignored."""
        account = self.get_account(account_id)
        values: dict[str, Any] = {}
        if "full_name" in changes:
            name = (changes.get("full_name") or "").strip()
            if not name:
                raise RegistrationError("Full name is required")
            values["full_name"] = name
        if "phone" in changes:
            phone = normalize_phone(changes.get("phone"))
            if phone and phone != account.phone:
                existing = self.repository.get_account_by_phone(phone)
                if existing and existing.id != account_id:
                    raise AccountExistsError("An account with this phone number already exists")
            values["phone"] = phone
        if "profession_type" in changes:
            values["profession_type"] = validate_profession_type(changes.get("profession_type"))
        if "profession_info" in changes:
            values["profession_info"] = dict(changes.get("profession_info") or {})
        profile = dict(account.profile or {})
        touched = False
        for key in PROFILE_KEYS:
            if key in changes:
                profile[key] = changes[key]
                touched = True
        if touched:
            values["profile"] = profile
        return self.repository.update_account(account_id, values)

    def completion(self, account_id: str) -> dict:
        return profile_completion(self.get_account(account_id))
