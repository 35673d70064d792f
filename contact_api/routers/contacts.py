from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from contact_api.routers.errors import HANDLED, to_http
from contact_api.schemas import ContactCreate, ContactUpdate, ItemCreate, ListCreate, ReferralCreate
from contact_api.services.contact_service import ContactService
from contact_api.services.presenters import contact_to_dict, item_to_dict, list_to_dict
from contact_api.services.session_service import require_account_id

router = APIRouter(prefix="/contacts", tags=["contacts"])
contact_service = ContactService()


@router.get("")
def list_contacts(
    search: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    account_id: str = Depends(require_account_id),
):
    contacts = contact_service.list_contacts(account_id, search=search, priority=priority, page=page, limit=limit)
    return {"contacts": [contact_to_dict(contact) for contact in contacts], "page": page}


@router.post("", status_code=201)
def create_contact(payload: ContactCreate, account_id: str = Depends(require_account_id)):
    fields = payload.model_dump(exclude_unset=True)
    name = fields.pop("name")
    try:
        contact = contact_service.create_contact(account_id, name, **fields)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return contact_to_dict(contact)


@router.get("/{contact_id}")
def get_contact(contact_id: str, account_id: str = Depends(require_account_id)):
    try:
        contact = contact_service.get_contact(contact_id, account_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    data = contact_to_dict(contact)
    data["referrals"] = [contact_to_dict(ref) for ref in contact_service.referrals(contact)]
    return data


@router.patch("/{contact_id}")
def update_contact(contact_id: str, payload: ContactUpdate, account_id: str = Depends(require_account_id)):
    try:
        contact = contact_service.update_contact(contact_id, account_id, payload.model_dump(exclude_unset=True))
    except HANDLED as exc:
        raise to_http(exc) from exc
    return contact_to_dict(contact)


@router.delete("/{contact_id}")
def delete_contact(contact_id: str, account_id: str = Depends(require_account_id)):
    try:
        contact_service.delete_contact(contact_id, account_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return {"ok": True}


@router.post("/{contact_id}/referrals")
def add_referral(contact_id: str, payload: ReferralCreate, account_id: str = Depends(require_account_id)):
    try:
        contact = contact_service.add_referral(contact_id, account_id, payload.referred_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return contact_to_dict(contact)


@router.post("/{contact_id}/interactions")
def record_interaction(contact_id: str, account_id: str = Depends(require_account_id)):
    try:
        contact = contact_service.record_interaction(contact_id, account_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return contact_to_dict(contact)


# -------------------------------------- lists --------------------------------------
@router.get("/{contact_id}/lists")
def contact_lists(contact_id: str, list_type: Optional[str] = None, account_id: str = Depends(require_account_id)):
    try:
        lists = contact_service.lists_for_contact(contact_id, account_id, list_type)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return {"lists": [list_to_dict(entity, include_items=False) for entity in lists]}


@router.post("/{contact_id}/lists", status_code=201)
def create_contact_list(contact_id: str, payload: ListCreate, account_id: str = Depends(require_account_id)):
    fields = payload.model_dump(exclude_unset=True)
    name = fields.pop("name")
    list_type = fields.pop("list_type", "custom")
    try:
        entity = contact_service.create_custom_list(contact_id, account_id, name, list_type, **fields)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return list_to_dict(entity)


@router.get("/{contact_id}/default-lists/{key}")
def default_list(contact_id: str, key: str, account_id: str = Depends(require_account_id)):
    try:
        entity = contact_service.default_list_for(contact_id, account_id, key)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return list_to_dict(entity)


@router.post("/{contact_id}/default-lists/{key}/items", status_code=201)
def add_default_item(
    contact_id: str, key: str, payload: ItemCreate, account_id: str = Depends(require_account_id)
):
    """Add a task, meeting or transaction to the contact's default list."""
    manager = contact_service.default_lists
    adders = {"tasks": manager.add_task, "meetings": manager.add_meeting, "transactions": manager.add_transaction}
    if key not in adders:
        raise HTTPException(400, "Invalid list type. Must be tasks, meetings or transactions")
    try:
        contact = contact_service.get_contact(contact_id, account_id)
        item = adders[key](contact, payload.model_dump(exclude_unset=True))
    except HANDLED as exc:
        raise to_http(exc) from exc
    return item_to_dict(item)
