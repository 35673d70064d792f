from __future__ import annotations

from fastapi import APIRouter, Depends

from contact_api.routers.errors import HANDLED, to_http
from contact_api.schemas import AlarmCreate, ItemCreate, ItemUpdate, ListCreate, ListShareCreate, ListUpdate
from contact_api.services.list_service import ListService
from contact_api.services.presenters import alarm_to_dict, item_to_dict, list_to_dict
from contact_api.services.session_service import require_account_id

router = APIRouter(prefix="/lists", tags=["lists"])
list_service = ListService()


def _owned_list(list_id: str, account_id: str):
    try:
        return list_service.get_list(list_id, account_id)
    except HANDLED as exc:
        raise to_http(exc) from exc


@router.post("", status_code=201)
def create_list(payload: ListCreate, account_id: str = Depends(require_account_id)):
    fields = payload.model_dump(exclude_unset=True)
    name = fields.pop("name")
    list_type = fields.pop("list_type", "custom")
    try:
        entity = list_service.create_list(account_id, name, list_type, **fields)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return list_to_dict(entity)


@router.get("/alarms/due")
def due_alarms(account_id: str = Depends(require_account_id)):
    pending = list_service.due_alarms(owner_id=account_id)
    return {
        "alarms": [
            {**alarm_to_dict(alarm), "item_id": item.id, "list_id": item.list_id, "item_title": item.title}
            for alarm, item in pending
        ]
    }


@router.get("/{list_id}")
def get_list(list_id: str, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    data = list_to_dict(entity)
    data["summary"] = list_service.summary(entity)
    return data


@router.patch("/{list_id}")
def update_list(list_id: str, payload: ListUpdate, account_id: str = Depends(require_account_id)):
    try:
        entity = list_service.update_list(list_id, account_id, payload.model_dump(exclude_unset=True))
    except HANDLED as exc:
        raise to_http(exc) from exc
    return list_to_dict(entity)


@router.delete("/{list_id}")
def delete_list(list_id: str, account_id: str = Depends(require_account_id)):
    try:
        list_service.delete_list(list_id, account_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return {"ok": True}


@router.get("/{list_id}/summary")
def list_summary(list_id: str, account_id: str = Depends(require_account_id)):
    return list_service.summary(_owned_list(list_id, account_id))


@router.post("/{list_id}/shares")
def share_list(list_id: str, payload: ListShareCreate, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    try:
        entity = list_service.share_list(entity, payload.user_id, payload.permission)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return list_to_dict(entity, include_items=False)


# -------------------------------------- items --------------------------------------
@router.post("/{list_id}/items", status_code=201)
def add_item(list_id: str, payload: ItemCreate, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    try:
        item = list_service.add_item(entity, payload.model_dump(exclude_unset=True))
    except HANDLED as exc:
        raise to_http(exc) from exc
    return item_to_dict(item)


@router.patch("/{list_id}/items/{item_id}")
def update_item(list_id: str, item_id: int, payload: ItemUpdate, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    try:
        item = list_service.update_item(entity, item_id, payload.model_dump(exclude_unset=True))
    except HANDLED as exc:
        raise to_http(exc) from exc
    return item_to_dict(item)


@router.delete("/{list_id}/items/{item_id}")
def delete_item(list_id: str, item_id: int, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    try:
        list_service.delete_item(entity, item_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return {"ok": True}


# -------------------------------------- alarms --------------------------------------
@router.post("/{list_id}/items/{item_id}/alarms", status_code=201)
def add_alarm(list_id: str, item_id: int, payload: AlarmCreate, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    try:
        item = list_service.add_alarm(entity, item_id, payload.model_dump(exclude_unset=True))
    except HANDLED as exc:
        raise to_http(exc) from exc
    return item_to_dict(item)


@router.delete("/{list_id}/items/{item_id}/alarms/{alarm_id}")
def remove_alarm(list_id: str, item_id: int, alarm_id: int, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    try:
        list_service.remove_alarm(entity, item_id, alarm_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return {"ok": True}


@router.post("/{list_id}/items/{item_id}/alarms/{alarm_id}/trigger")
def trigger_alarm(list_id: str, item_id: int, alarm_id: int, account_id: str = Depends(require_account_id)):
    entity = _owned_list(list_id, account_id)
    try:
        alarm = list_service.trigger_alarm(entity, item_id, alarm_id)
    except HANDLED as exc:
        raise to_http(exc) from exc
    return alarm_to_dict(alarm)
