"""
List, item and alarm use cases.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

import structlog

from contact_api.core.config import get_settings
from contact_api.db.models import ItemAlarm, ItemList, ListItem
from contact_api.domain.errors import InvalidArgumentError
from contact_api.domain.items import build_alarm, build_item, item_changes, summarize_items, validate_list_type
from contact_api.repositories.sql_repository import SQLRepository
from contact_api.services.auth_service import AccountNotFoundError

logger = structlog.get_logger(__name__)

SORT_FIELDS = ("due_date", "priority", "created_at", "status")
SORT_ORDERS = ("asc", "desc")
LIST_PERMISSIONS = ("view", "edit")
_LIST_FIELDS = ("name", "description", "color", "icon", "default_alarm_minutes", "sort_by", "sort_order", "is_archived")


class ListError(Exception):
    """Base exception for list workflows."""


class ListNotFoundError(ListError):
    pass


class ItemNotFoundError(ListError):
    pass


class AlarmNotFoundError(ListError):
    pass


ListRef = Union[ItemList, str]


def _validate_list_fields(values: Mapping[str, Any]) -> dict:
    clean: dict[str, Any] = {}
    for key in _LIST_FIELDS:
        if key not in values:
            continue
        value = values[key]
        if key == "name":
            value = (value or "").strip()
            if not value:
                raise InvalidArgumentError("List name is required")
        elif key == "sort_by" and value not in SORT_FIELDS:
            raise InvalidArgumentError(f"Invalid sort field: {value!r}")
        elif key == "sort_order" and value not in SORT_ORDERS:
            raise InvalidArgumentError(f"Invalid sort order: {value!r}")
        elif key == "default_alarm_minutes" and value is not None:
            if int(value) < 0:
                raise InvalidArgumentError("Alarm lead time must be non-negative")
            value = int(value)
        clean[key] = value
    return clean


class ListService:
    """Creates lists and manages their items and alarms."""

    def __init__(self, repository: Optional[SQLRepository] = None) -> None:
        self.repository = repository or SQLRepository()

    # -------------------------------------- lists --------------------------------------
    def get_list(self, list_id: str, owner_id: str | None = None) -> ItemList:
        entity = self.repository.get_list(list_id, owner_id)
        if not entity:
            raise ListNotFoundError(f"List {list_id} not found")
        return entity

    def _resolve(self, item_list: ListRef) -> ItemList:
        if isinstance(item_list, ItemList):
            return item_list
        return self.get_list(item_list)

    def create_list(
        self,
        owner_id: str,
        name: str,
        list_type: str = "custom",
        *,
        member_ids: Iterable[str] = (),
        **fields: Any,
    ) -> ItemList:
        values = _validate_list_fields({"name": name, **fields})
        values.setdefault("default_alarm_minutes", get_settings().default_alarm_lead_minutes)
        values.pop("is_archived", None)
        entity = self.repository.create_list(
            owner_id,
            values.pop("name"),
            validate_list_type(list_type),
            member_ids=member_ids,
            **values,
        )
        logger.info("list.created", list_id=entity.id, owner_id=owner_id, list_type=entity.list_type)
        return entity

    def update_list(self, list_id: str, owner_id: str, changes: Mapping[str, Any]) -> ItemList:
        self.get_list(list_id, owner_id)
        return self.repository.update_list(list_id, _validate_list_fields(changes))

    def delete_list(self, list_id: str, owner_id: str) -> None:
        entity = self.get_list(list_id, owner_id)
        if entity.is_default:
            raise InvalidArgumentError("Default lists are removed together with their contact")
        self.repository.delete_list(list_id)

    def share_list(self, item_list: ListRef, user_id: str, permission: str = "view") -> ItemList:
        """Add ``user_id`` to the list's own grant set (independent of share codes)."""
        if permission not in LIST_PERMISSIONS:
            raise InvalidArgumentError(f"Invalid permission: {permission!r}")
        entity = self._resolve(item_list)
        if user_id == entity.owner_id:
            raise InvalidArgumentError("The owner already has access to this list")
        if self.repository.get_account(user_id) is None:
            raise AccountNotFoundError(f"Account {user_id} not found")
        self.repository.add_list_share(entity.id, user_id, permission)
        return self.repository.get_list(entity.id)

    def summary(self, item_list: ListRef, now: Optional[datetime] = None) -> dict:
        entity = self._resolve(item_list)
        return summarize_items(entity.items, now)

    # -------------------------------------- items --------------------------------------
    def add_item(self, item_list: ListRef, data: Mapping[str, Any], *, now: Optional[datetime] = None) -> ListItem:
        entity = self._resolve(item_list)
        draft = build_item(entity.list_type, data, default_alarm_minutes=entity.default_alarm_minutes, now=now)
        item = self.repository.append_item(entity.id, draft)
        if item is None:
            raise ListNotFoundError(f"List {entity.id} not found")
        return item

    def get_item(self, item_list: ListRef, item_id: int) -> ListItem:
        entity = self._resolve(item_list)
        item = self.repository.get_item(entity.id, item_id)
        if not item:
            raise ItemNotFoundError(f"Item {item_id} not found")
        return item

    def update_item(
        self, item_list: ListRef, item_id: int, changes: Mapping[str, Any], *, now: Optional[datetime] = None
    ) -> ListItem:
        entity = self._resolve(item_list)
        current = self.get_item(entity, item_id)
        values = item_changes(entity.list_type, current.completed_at, changes, now=now)
        updated = self.repository.update_item(entity.id, item_id, values)
        if updated is None:
            raise ItemNotFoundError(f"Item {item_id} not found")
        return updated

    def delete_item(self, item_list: ListRef, item_id: int) -> None:
        entity = self._resolve(item_list)
        if not self.repository.delete_item(entity.id, item_id):
            raise ItemNotFoundError(f"Item {item_id} not found")

    # -------------------------------------- alarms --------------------------------------
    def add_alarm(self, item_list: ListRef, item_id: int, data: Mapping[str, Any]) -> ListItem:
        entity = self._resolve(item_list)
        item = self.repository.append_alarm(entity.id, item_id, build_alarm(data))
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} not found")
        return item

    def remove_alarm(self, item_list: ListRef, item_id: int, alarm_id: int) -> None:
        entity = self._resolve(item_list)
        self.get_item(entity, item_id)
        if not self.repository.delete_alarm(entity.id, item_id, alarm_id):
            raise AlarmNotFoundError(f"Alarm {alarm_id} not found")

    def trigger_alarm(
        self, item_list: ListRef, item_id: int, alarm_id: int, *, now: Optional[datetime] = None
    ) -> ItemAlarm:
        """Mark an alarm as fired. Already-triggered alarms keep their first timestamp."""
        entity = self._resolve(item_list)
        self.get_item(entity, item_id)
        if self.repository.get_alarm(item_id, alarm_id) is None:
            raise AlarmNotFoundError(f"Alarm {alarm_id} not found")
        self.repository.mark_alarm_triggered(alarm_id, now or datetime.now(timezone.utc))
        return self.repository.get_alarm(item_id, alarm_id)

    def due_alarms(self, now: Optional[datetime] = None, owner_id: str | None = None) -> list[tuple[ItemAlarm, ListItem]]:
        """Alarms whose trigger time has passed and that have not fired yet."""
        return self.repository.due_alarms(now or datetime.now(timezone.utc), owner_id)
