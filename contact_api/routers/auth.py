from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field

from contact_api.core.rate_limiter import rate_limit_ip
from contact_api.routers.errors import HANDLED, to_http
from contact_api.services.auth_service import AuthService
from contact_api.services.presenters import account_to_dict
from contact_api.services.session_service import (
    SESSION_COOKIE_NAME,
    clear_session_cookie,
    set_session_cookie,
)

router = APIRouter(prefix="/auth", tags=["auth"])
auth_service = AuthService()


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str
    profession_type: str
    phone: Optional[str] = None
    profession_info: dict[str, Any] = Field(default_factory=dict)


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, request: Request):
    rate_limit_ip(request, "register", limit=10, window_seconds=3600)
    try:
        account = auth_service.register(
            payload.email,
            payload.password,
            full_name=payload.full_name,
            profession_type=payload.profession_type,
            phone=payload.phone,
            profession_info=payload.profession_info,
        )
    except HANDLED as exc:
        raise to_http(exc) from exc
    return account_to_dict(account)


@router.post("/login")
def login(payload: LoginRequest, request: Request, response: Response):
    rate_limit_ip(request, "login", limit=10, window_seconds=300)
    try:
        result = auth_service.login(payload.email, payload.password)
    except HANDLED as exc:
        raise to_http(exc) from exc
    set_session_cookie(response, result.session_token)
    return {"account_id": result.account_id, "email": result.email, "token": result.session_token}


@router.post("/logout")
def logout(request: Request, response: Response):
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        header = request.headers.get("authorization") or ""
        if header.lower().startswith("bearer "):
            token = header[7:].strip()
    if not token:
        raise HTTPException(401, "Authentication required")
    auth_service.logout(token)
    clear_session_cookie(response)
    return {"ok": True}
