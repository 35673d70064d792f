"""Request bodies accepted by the JSON routers."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class ContactBase(BaseModel):
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    designation: Optional[str] = None
    notes: Optional[str] = None
    profile_photo: Optional[str] = None
    tags: Optional[List[str]] = None
    linked_account_id: Optional[str] = None
    priority: Optional[str] = None
    is_favorite: Optional[bool] = None


class ContactCreate(ContactBase):
    name: str
    referred_by_id: Optional[str] = None


class ContactUpdate(ContactBase):
    name: Optional[str] = None


class ReferralCreate(BaseModel):
    referred_id: str


class AlarmCreate(BaseModel):
    trigger_time: datetime
    channel: Optional[str] = None
    message: Optional[str] = None


class ItemFields(BaseModel):
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    # Category payloads; only the one matching the list type is kept.
    task_info: Optional[dict[str, Any]] = None
    meeting_info: Optional[dict[str, Any]] = None
    transaction_info: Optional[dict[str, Any]] = None
    booking_info: Optional[dict[str, Any]] = None
    details: Optional[dict[str, Any]] = None


class ItemCreate(ItemFields):
    title: str
    alarms: Optional[List[AlarmCreate]] = None


class ItemUpdate(ItemFields):
    title: Optional[str] = None


class ListFields(BaseModel):
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    default_alarm_minutes: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


class ListCreate(ListFields):
    name: str
    list_type: str = "custom"


class ListUpdate(ListFields):
    name: Optional[str] = None
    is_archived: Optional[bool] = None


class ListShareCreate(BaseModel):
    user_id: str
    permission: str = "view"
