from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from contact_api.core.rate_limiter import rate_limit_key
from contact_api.domain.profile import public_profile
from contact_api.routers.errors import HANDLED, to_http
from contact_api.services.session_service import require_account_id
from contact_api.services.share_service import ShareService

router = APIRouter(prefix="/share", tags=["share"])
share_service = ShareService()


class GrantRequest(BaseModel):
    grantee_id: str
    access_level: str = "view"


class RedeemRequest(BaseModel):
    code: str


@router.post("/code")
def ensure_code(account_id: str = Depends(require_account_id)):
    try:
        return {"share_code": share_service.ensure_share_code(account_id)}
    except HANDLED as exc:
        raise to_http(exc) from exc


@router.post("/grant")
def grant(payload: GrantRequest, account_id: str = Depends(require_account_id)):
    try:
        code = share_service.grant_access(account_id, payload.grantee_id, payload.access_level)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return {"share_code": code, "grantee_id": payload.grantee_id, "access_level": payload.access_level}


@router.post("/redeem")
def redeem(payload: RedeemRequest, account_id: str = Depends(require_account_id)):
    rate_limit_key("share_redeem", account_id, limit=20, window_seconds=60)
    try:
        owner = share_service.redeem_code(account_id, payload.code)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return public_profile(owner)


@router.get("/lookup/{code}")
def lookup(code: str, account_id: str = Depends(require_account_id)):
    rate_limit_key("share_lookup", account_id, limit=30, window_seconds=60)
    try:
        owner = share_service.find_by_code(code)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return {"id": owner.id, "full_name": owner.full_name, "share_code": owner.share_code}
