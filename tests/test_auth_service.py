from __future__ import annotations

import pytest

from contact_api.core.security import hash_password, verify_password
from contact_api.services.auth_service import (
    AccountExistsError,
    AuthService,
    InvalidCredentialsError,
    RegistrationError,
)
from contact_api.services.session_service import account_id_for_token


def _register(svc: AuthService, email: str = "ada@example.com", password: str = "correct-horse", **overrides):
    fields = {"full_name": "Ada Lovelace", "profession_type": "salaried", "phone": None}
    fields.update(overrides)
    return svc.register(email, password, **fields)


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret-pass")
    assert hashed.startswith("argon2$")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)


def test_register_and_login(temp_db):
    svc = AuthService()
    account = _register(svc, " Ada@Example.com ")

    assert account.email == "ada@example.com"
    assert account.share_code is None

    result = svc.login("ADA@example.com", "correct-horse")
    assert result.account_id == account.id
    assert account_id_for_token(result.session_token) == account.id

    svc.logout(result.session_token)
    assert account_id_for_token(result.session_token) is None


def test_login_rejects_bad_password(temp_db):
    svc = AuthService()
    _register(svc)
    with pytest.raises(InvalidCredentialsError):
        svc.login("ada@example.com", "not-the-password")
    with pytest.raises(InvalidCredentialsError):
        svc.login("nobody@example.com", "correct-horse")


def test_duplicate_email_or_phone(temp_db):
    svc = AuthService()
    _register(svc, phone="+1 555 0100")
    with pytest.raises(AccountExistsError):
        _register(svc)
    with pytest.raises(AccountExistsError):
        _register(svc, "other@example.com", phone="+1 555 0100")


def test_registration_validation(temp_db):
    svc = AuthService()
    with pytest.raises(RegistrationError):
        svc.register("ada@example.com", "short", full_name="Ada", profession_type="salaried")
    with pytest.raises(RegistrationError):
        svc.register("not-an-email", "correct-horse", full_name="Ada", profession_type="salaried")
    with pytest.raises(RegistrationError):
        svc.register("ada@example.com", "correct-horse", full_name=" ", profession_type="salaried")


def test_profile_update_and_completion(temp_db):
    svc = AuthService()
    account = _register(svc, phone="555-0100")
    start = svc.completion(account.id)
    # full_name, email, phone, profession_type
    assert start["score"] == 25
    assert start["max_score"] == 100

    svc.update_profile(
        account.id,
        {
            "profile_picture": "https://cdn.example.com/ada.png",
            "describe_need": "Investors",
            "regions": ["London"],
            "profession_info": {"company_name": "Analytical Engines", "designation": "Engineer"},
            "email": "ignored@example.com",
        },
    )
    after = svc.completion(account.id)

    assert after["score"] == 25 + 5 + 10 + 5 + 16
    assert after["breakdown"]["basic"] == 100
    assert svc.get_account(account.id).email == "ada@example.com"
