from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from contact_api.domain.profile import public_profile
from contact_api.routers.errors import HANDLED, to_http
from contact_api.services.auth_service import AuthService
from contact_api.services.presenters import account_to_dict
from contact_api.services.session_service import require_account_id
from contact_api.services.share_service import ShareService

router = APIRouter(prefix="/profile", tags=["profile"])
auth_service = AuthService()
share_service = ShareService()


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    profession_type: Optional[str] = None
    profession_info: Optional[dict[str, Any]] = None
    profile_picture: Optional[str] = None
    custom_tags: Optional[list[str]] = None
    searching_for: Optional[list[str]] = None
    looking_for: Optional[list[str]] = None
    describe_need: Optional[str] = None
    what_you_want: Optional[list[str]] = None
    what_you_can_offer: Optional[list[str]] = None
    regions: Optional[list[str]] = None
    portfolio: Optional[list[Any]] = None


@router.get("")
def get_profile(account_id: str = Depends(require_account_id)):
    try:
        account = auth_service.get_account(account_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return account_to_dict(account)


@router.patch("")
def update_profile(payload: ProfileUpdate, account_id: str = Depends(require_account_id)):
    try:
        account = auth_service.update_profile(account_id, payload.model_dump(exclude_unset=True))
    except HANDLED as exc:
        raise to_http(exc) from exc
    return account_to_dict(account)


@router.get("/completion")
def completion(account_id: str = Depends(require_account_id)):
    try:
        return auth_service.completion(account_id)
    except HANDLED as exc:
        raise to_http(exc) from exc


@router.get("/{owner_id}")
def view_profile(owner_id: str, account_id: str = Depends(require_account_id)):
    """Public card of another account; needs a share grant from its owner."""
    try:
        owner = auth_service.get_account(owner_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    if not share_service.can_access(account_id, owner.id):
        raise HTTPException(403, "No access to this profile")
    return public_profile(owner)
