"""Session helpers (issue tokens, cookies, validation)."""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, Request, Response

from contact_api.core.config import get_settings
from contact_api.core.utils import as_utc
from contact_api.db.models import AccountSession
from contact_api.db.session import get_session

SESSION_COOKIE_NAME = "session"


def issue_session(account_id: str) -> str:
    """Create a new session token and persist it."""
    token = secrets.token_urlsafe(32)
    settings = get_settings()
    ttl = max(60, settings.session_ttl_seconds)
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)

    with get_session() as session:
        session.add(AccountSession(token=token, account_id=account_id, expires_at=expires_at))
        session.commit()
    return token


def account_id_for_token(token: str | None) -> str | None:
    if not token:
        return None

    now = datetime.now(timezone.utc)
    with get_session() as session:
        db_session = session.get(AccountSession, token)
        if db_session:
            if db_session.expires_at and as_utc(db_session.expires_at) < now:
                session.delete(db_session)
                session.commit()
                return None
            return db_session.account_id

    return None


def current_account_id(request: Request) -> str | None:
    """Return the account id bound to the session cookie (or bearer token), if any."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        header = request.headers.get("authorization") or ""
        if header.lower().startswith("bearer "):
            token = header[7:].strip()
    return account_id_for_token(token)


def require_account_id(request: Request) -> str:
    """FastAPI dependency: the authenticated account id or 401."""
    account_id = current_account_id(request)
    if not account_id:
        raise HTTPException(401, "Authentication required")
    return account_id


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    secure_cookie = settings.app_env == "prod"
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=secure_cookie,
        samesite="strict",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")


def delete_session(token: str) -> None:
    """Remove a session token from the store."""
    if not token:
        return
    with get_session() as session:
        entity = session.get(AccountSession, token)
        if entity:
            session.delete(entity)
            session.commit()
