"""
Entity-to-dict helpers shared by routers and scripts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from contact_api.core.utils import as_utc
from contact_api.db.models import Account, Contact, ItemAlarm, ItemList, ListItem


def _iso(value: Optional[datetime]) -> Optional[str]:
    normalized = as_utc(value)
    return normalized.isoformat() if normalized else None


def account_to_dict(entity: Account) -> dict:
    """Private view for the account holder (no password hash)."""
    return {
        "id": entity.id,
        "email": entity.email,
        "phone": entity.phone,
        "full_name": entity.full_name,
        "profession_type": entity.profession_type,
        "profession_info": dict(entity.profession_info or {}),
        "profile": dict(entity.profile or {}),
        "share_code": entity.share_code,
        "shared_with": [
            {"account_id": grant.grantee_id, "access_level": grant.access_level, "shared_at": _iso(grant.granted_at)}
            for grant in entity.share_grants
        ],
        "accessing_via_code": [
            {"code": record.code, "owner_id": record.owner_id, "accessed_at": _iso(record.redeemed_at)}
            for record in entity.access_records
        ],
    }


def contact_to_dict(entity: Contact) -> dict:
    return {
        "id": entity.id,
        "owner_id": entity.owner_id,
        "name": entity.name,
        "mobile_number": entity.mobile_number,
        "email": entity.email,
        "company": entity.company,
        "designation": entity.designation,
        "notes": entity.notes,
        "profile_photo": entity.profile_photo,
        "tags": list(entity.tags or []),
        "linked_account_id": entity.linked_account_id,
        "referred_by_id": entity.referred_by_id,
        "referral_ids": list(entity.referral_ids or []),
        "default_lists": {
            "tasks": entity.default_tasks_list_id,
            "meetings": entity.default_meetings_list_id,
            "transactions": entity.default_transactions_list_id,
        },
        "priority": entity.priority,
        "is_favorite": bool(entity.is_favorite),
        "last_contacted": _iso(entity.last_contacted),
        "interaction_count": int(entity.interaction_count or 0),
    }


def alarm_to_dict(entity: ItemAlarm) -> dict:
    return {
        "id": entity.id,
        "trigger_time": _iso(entity.trigger_time),
        "channel": entity.channel,
        "message": entity.message,
        "triggered": bool(entity.triggered),
        "triggered_at": _iso(entity.triggered_at),
    }


def item_to_dict(entity: ListItem) -> dict:
    return {
        "id": entity.id,
        "list_id": entity.list_id,
        "title": entity.title,
        "description": entity.description,
        "status": entity.status,
        "priority": entity.priority,
        "related_contact_id": entity.related_contact_id,
        "due_date": _iso(entity.due_date),
        "start_time": _iso(entity.start_time),
        "end_time": _iso(entity.end_time),
        "completed_at": _iso(entity.completed_at),
        "details": dict(entity.details or {}),
        "tags": list(entity.tags or []),
        "notes": entity.notes,
        "alarms": [alarm_to_dict(alarm) for alarm in entity.alarms],
    }


def list_to_dict(entity: ItemList, *, include_items: bool = True) -> dict:
    data = {
        "id": entity.id,
        "owner_id": entity.owner_id,
        "list_type": entity.list_type,
        "name": entity.name,
        "description": entity.description,
        "color": entity.color,
        "icon": entity.icon,
        "is_default": bool(entity.is_default),
        "contact_owner_id": entity.contact_owner_id,
        "contact_ids": [member.id for member in entity.members],
        "settings": {
            "is_shared": bool(entity.is_shared),
            "shared_with": [{"user_id": share.user_id, "permission": share.permission} for share in entity.shares],
            "default_alarm_minutes": entity.default_alarm_minutes,
            "sort_by": entity.sort_by,
            "sort_order": entity.sort_order,
        },
        "is_archived": bool(entity.is_archived),
    }
    if include_items:
        data["items"] = [item_to_dict(item) for item in entity.items]
    return data
