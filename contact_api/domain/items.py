"""
Rules for list items and their alarms.

Items carry exactly one category payload (``task_info``, ``meeting_info``...)
chosen by the parent list's type. Alarms are derived from the list's default
lead time when the item has a due date.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional

from contact_api.core.utils import as_utc

from .errors import InvalidArgumentError

LIST_TYPES = ("task", "meeting", "transaction", "booking", "custom")
ITEM_STATUSES = ("pending", "in-progress", "completed", "cancelled")
ITEM_PRIORITIES = ("low", "medium", "high", "urgent")
ALARM_CHANNELS = ("notification", "email", "sms")
TRANSACTION_TYPES = ("payment", "receipt", "invoice", "expense")

PAYLOAD_KEYS = {
    "task": "task_info",
    "meeting": "meeting_info",
    "transaction": "transaction_info",
    "booking": "booking_info",
}

_UPDATABLE_FIELDS = ("title", "description", "status", "priority", "due_date", "start_time", "end_time", "tags", "notes")
_DATETIME_FIELDS = ("due_date", "start_time", "end_time")


@dataclass
class AlarmDraft:
    trigger_time: datetime
    channel: str = "notification"
    message: Optional[str] = None


@dataclass
class ItemDraft:
    title: str
    description: Optional[str] = None
    status: str = "pending"
    priority: str = "medium"
    related_contact_id: Optional[str] = None
    due_date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    details: dict = field(default_factory=dict)
    tags: list = field(default_factory=list)
    notes: Optional[str] = None
    alarms: list[AlarmDraft] = field(default_factory=list)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Accept datetimes or ISO-8601 strings; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid datetime: {value!r}") from exc
    else:
        raise InvalidArgumentError(f"Invalid datetime: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _choice(value: Any, allowed: Iterable[str], label: str, default: str) -> str:
    candidate = (value or default)
    if candidate not in allowed:
        raise InvalidArgumentError(f"Invalid {label}: {candidate!r}")
    return candidate


def validate_list_type(value: str | None) -> str:
    return _choice(value, LIST_TYPES, "list type", "custom")


def _payload_for(list_type: str, data: Mapping[str, Any]) -> dict:
    key = PAYLOAD_KEYS.get(list_type)
    payload = data.get(key) if key else data.get("details")
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise InvalidArgumentError(f"{key or 'details'} must be an object")
    payload = dict(payload)
    if list_type == "transaction":
        payload.setdefault("currency", "USD")
        tx_type = payload.get("transaction_type")
        if tx_type is not None and tx_type not in TRANSACTION_TYPES:
            raise InvalidArgumentError(f"Invalid transaction type: {tx_type!r}")
    return payload


def build_alarm(data: Mapping[str, Any]) -> AlarmDraft:
    trigger_time = parse_datetime(data.get("trigger_time"))
    if trigger_time is None:
        raise InvalidArgumentError("Alarm trigger_time is required")
    return AlarmDraft(
        trigger_time=trigger_time,
        channel=_choice(data.get("channel"), ALARM_CHANNELS, "alarm channel", "notification"),
        message=data.get("message"),
    )


def reminder_alarm(title: str, due_date: datetime, lead_minutes: int) -> AlarmDraft:
    return AlarmDraft(
        trigger_time=due_date - timedelta(minutes=lead_minutes),
        channel="notification",
        message=f"Reminder: {title}",
    )


def build_item(
    list_type: str,
    data: Mapping[str, Any],
    *,
    default_alarm_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ItemDraft:
    """Validate ``data`` and produce the item to append.

    Explicit alarms are kept as given; when the list has a lead time and the
    item has a due date one reminder alarm is appended after them.
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise InvalidArgumentError("Item title is required")
    status = _choice(data.get("status"), ITEM_STATUSES, "status", "pending")
    draft = ItemDraft(
        title=title,
        description=data.get("description"),
        status=status,
        priority=_choice(data.get("priority"), ITEM_PRIORITIES, "priority", "medium"),
        related_contact_id=data.get("related_contact_id"),
        due_date=parse_datetime(data.get("due_date")),
        start_time=parse_datetime(data.get("start_time")),
        end_time=parse_datetime(data.get("end_time")),
        details=_payload_for(list_type, data),
        tags=list(data.get("tags") or []),
        notes=data.get("notes"),
        alarms=[build_alarm(alarm) for alarm in (data.get("alarms") or [])],
    )
    if status == "completed":
        draft.completed_at = now or datetime.now(timezone.utc)
    if default_alarm_minutes and draft.due_date is not None:
        draft.alarms.append(reminder_alarm(title, draft.due_date, default_alarm_minutes))
    return draft


def item_changes(
    list_type: str,
    current_completed_at: Optional[datetime],
    changes: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> dict:
    """Translate a partial update into column values.

    Moving into ``completed`` stamps ``completed_at`` only when the item has
    never been completed; later transitions keep the first timestamp.
    """
    values: dict[str, Any] = {}
    for name in _UPDATABLE_FIELDS:
        if name not in changes:
            continue
        value = changes[name]
        if name in _DATETIME_FIELDS:
            value = parse_datetime(value)
        elif name == "status":
            value = _choice(value, ITEM_STATUSES, "status", "pending")
        elif name == "priority":
            value = _choice(value, ITEM_PRIORITIES, "priority", "medium")
        elif name == "title":
            value = (value or "").strip()
            if not value:
                raise InvalidArgumentError("Item title is required")
        elif name == "tags":
            value = list(value or [])
        values[name] = value
    payload_key = PAYLOAD_KEYS.get(list_type) or "details"
    if changes.get(payload_key) is not None:
        values["details"] = _payload_for(list_type, changes)
    if values.get("status") == "completed" and current_completed_at is None:
        values["completed_at"] = now or datetime.now(timezone.utc)
    return values


def summarize_items(items: Iterable[Any], now: Optional[datetime] = None) -> dict:
    """Counts used by list views: completed, pending/in-progress and overdue ids."""
    moment = now or datetime.now(timezone.utc)
    completed = pending = 0
    overdue: list = []
    for item in items:
        if item.status == "completed":
            completed += 1
        elif item.status in ("pending", "in-progress"):
            pending += 1
        due = as_utc(item.due_date)
        if due is not None and due < moment and item.status not in ("completed", "cancelled"):
            overdue.append(item.id)
    return {"completed_count": completed, "pending_count": pending, "overdue_item_ids": overdue}
