"""
Contact use cases and the default-list lifecycle.

Every contact owns exactly one default list per category (tasks, meetings,
transactions). ``DefaultListManager.on_contact_created`` is called explicitly
by ``ContactService.create_contact``; it is idempotent and resumes a partially
provisioned contact instead of duplicating lists.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

import structlog
from sqlalchemy.exc import IntegrityError

from contact_api.core.config import get_settings
from contact_api.db.models import Contact, ItemList, ListItem
from contact_api.domain.default_lists import DEFAULT_LIST_CATEGORIES, category_for
from contact_api.domain.errors import InvalidArgumentError
from contact_api.repositories.sql_repository import SQLRepository
from contact_api.services.list_service import ListService

logger = structlog.get_logger(__name__)

CONTACT_PRIORITIES = ("low", "medium", "high")
_CONTACT_FIELDS = (
    "name",
    "mobile_number",
    "email",
    "company",
    "designation",
    "notes",
    "profile_photo",
    "tags",
    "linked_account_id",
    "priority",
    "is_favorite",
)


class ContactError(Exception):
    """Base exception for contact workflows."""


class ContactNotFoundError(ContactError):
    pass


class DefaultListMissingError(ContactError):
    """A contact's default-list reference is empty or dangling."""


ContactRef = Union[Contact, str]


def _clean_contact_fields(values: Mapping[str, Any]) -> dict:
    clean: dict[str, Any] = {}
    for key in _CONTACT_FIELDS:
        if key not in values:
            continue
        value = values[key]
        if key == "name":
            value = (value or "").strip()
            if not value:
                raise InvalidArgumentError("Contact name is required")
        elif key == "email":
            value = (value or "").strip().lower() or None
        elif key == "priority":
            value = value or "medium"
            if value not in CONTACT_PRIORITIES:
                raise InvalidArgumentError(f"Invalid priority: {value!r}")
        elif key == "tags":
            value = [str(tag).strip() for tag in (value or []) if str(tag).strip()]
        elif key == "is_favorite":
            value = bool(value)
        elif isinstance(value, str):
            value = value.strip() or None
        clean[key] = value
    return clean


class DefaultListManager:
    """Provisions and resolves the three default lists of a contact."""

    def __init__(self, repository: Optional[SQLRepository] = None, lists: Optional[ListService] = None) -> None:
        self.repository = repository or SQLRepository()
        self.lists = lists or ListService(self.repository)

    def on_contact_created(self, contact: Contact) -> Contact:
        return self.ensure_default_lists(contact)

    def ensure_default_lists(self, contact: ContactRef) -> Contact:
        """Create only the missing default lists; a complete contact is left untouched."""
        entity = contact
        if not isinstance(entity, Contact):
            entity = self.repository.get_contact(contact)
            if entity is None:
                raise ContactNotFoundError(f"Contact {contact} not found")
        if all(getattr(entity, category.reference_field) for category in DEFAULT_LIST_CATEGORIES):
            return entity
        lead = get_settings().default_alarm_lead_minutes
        try:
            refreshed, created = self.repository.provision_default_lists(
                entity.id, DEFAULT_LIST_CATEGORIES, default_alarm_minutes=lead
            )
        except IntegrityError:
            # A concurrent call inserted the same default list first; link to it.
            logger.info("default_lists.retry", contact_id=entity.id)
            refreshed, created = self.repository.provision_default_lists(
                entity.id, DEFAULT_LIST_CATEGORIES, default_alarm_minutes=lead
            )
        if refreshed is None:
            raise ContactNotFoundError(f"Contact {entity.id} not found")
        if created:
            logger.info("default_lists.provisioned", contact_id=entity.id, created=created)
        return refreshed

    def default_list(self, contact: Contact, key: str) -> ItemList:
        category = category_for(key)
        if category is None:
            raise InvalidArgumentError(f"Invalid default list: {key!r}. Use tasks, meetings or transactions")
        list_id = getattr(contact, category.reference_field)
        if not list_id:
            raise DefaultListMissingError(f"Default {category.key} list not found for contact {contact.id}")
        entity = self.repository.get_list(list_id)
        if entity is None:
            raise DefaultListMissingError(f"Default {category.key} list not found for contact {contact.id}")
        return entity

    def default_lists(self, contact: Contact) -> dict[str, Optional[ItemList]]:
        found = {entity.list_type: entity for entity in self.repository.get_default_lists(contact.id)}
        return {category.key: found.get(category.list_type) for category in DEFAULT_LIST_CATEGORIES}

    def _add(self, contact: Contact, key: str, data: Mapping[str, Any]) -> ListItem:
        target = self.default_list(contact, key)
        return self.lists.add_item(target, {**data, "related_contact_id": contact.id})

    def add_task(self, contact: Contact, task_data: Mapping[str, Any]) -> ListItem:
        return self._add(contact, "tasks", task_data)

    def add_meeting(self, contact: Contact, meeting_data: Mapping[str, Any]) -> ListItem:
        return self._add(contact, "meetings", meeting_data)

    def add_transaction(self, contact: Contact, transaction_data: Mapping[str, Any]) -> ListItem:
        return self._add(contact, "transactions", transaction_data)


class ContactService:
    """Contact CRUD, referrals and custom lists scoped to one owner."""

    def __init__(
        self,
        repository: Optional[SQLRepository] = None,
        default_lists: Optional[DefaultListManager] = None,
        lists: Optional[ListService] = None,
    ) -> None:
        self.repository = repository or SQLRepository()
        self.lists = lists or ListService(self.repository)
        self.default_lists = default_lists or DefaultListManager(self.repository, self.lists)

    def get_contact(self, contact_id: str, owner_id: str) -> Contact:
        contact = self.repository.get_contact(contact_id, owner_id)
        if not contact:
            raise ContactNotFoundError(f"Contact {contact_id} not found")
        return contact

    def create_contact(self, owner_id: str, name: str, **fields: Any) -> Contact:
        values = _clean_contact_fields({"name": name, **fields})
        referred_by = fields.get("referred_by_id")
        if referred_by:
            self.get_contact(referred_by, owner_id)
        contact = self.repository.create_contact(owner_id, values.pop("name"), **values)
        logger.info("contact.created", contact_id=contact.id, owner_id=owner_id)
        contact = self.default_lists.on_contact_created(contact)
        if referred_by:
            self.repository.add_referral(referred_by, contact.id)
            contact = self.repository.get_contact(contact.id)
        return contact

    def list_contacts(
        self,
        owner_id: str,
        *,
        search: str | None = None,
        priority: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> list[Contact]:
        page = max(1, page)
        limit = max(1, min(limit, 100))
        return self.repository.list_contacts(
            owner_id, search=search, priority=priority, limit=limit, offset=(page - 1) * limit
        )

    def update_contact(self, contact_id: str, owner_id: str, changes: Mapping[str, Any]) -> Contact:
        self.get_contact(contact_id, owner_id)
        return self.repository.update_contact(contact_id, _clean_contact_fields(changes))

    def delete_contact(self, contact_id: str, owner_id: str) -> None:
        """Delete the contact; its default lists go with it."""
        self.get_contact(contact_id, owner_id)
        self.repository.delete_contact(contact_id)
        logger.info("contact.deleted", contact_id=contact_id, owner_id=owner_id)

    # -------------------------------------- referrals --------------------------------------
    def add_referral(self, contact_id: str, owner_id: str, referred_id: str) -> Contact:
        """Record that ``contact_id`` introduced ``referred_id``. Cycles are allowed."""
        if contact_id == referred_id:
            raise InvalidArgumentError("A contact cannot refer itself")
        self.get_contact(contact_id, owner_id)
        self.get_contact(referred_id, owner_id)
        return self.repository.add_referral(contact_id, referred_id)

    def referrals(self, contact: Contact) -> list[Contact]:
        found = {entity.id: entity for entity in self.repository.get_contacts(contact.referral_ids or [])}
        return [found[cid] for cid in (contact.referral_ids or []) if cid in found]

    def record_interaction(self, contact_id: str, owner_id: str, *, when: Optional[datetime] = None) -> Contact:
        self.get_contact(contact_id, owner_id)
        return self.repository.record_interaction(contact_id, when or datetime.now(timezone.utc))

    # -------------------------------------- lists --------------------------------------
    def create_custom_list(self, contact_id: str, owner_id: str, name: str, list_type: str = "custom", **fields: Any) -> ItemList:
        self.get_contact(contact_id, owner_id)
        return self.lists.create_list(owner_id, name, list_type, member_ids=[contact_id], **fields)

    def lists_for_contact(self, contact_id: str, owner_id: str, list_type: str | None = None) -> list[ItemList]:
        self.get_contact(contact_id, owner_id)
        return self.repository.lists_for_contact(contact_id, list_type)

    def default_list_for(self, contact_id: str, owner_id: str, key: str) -> ItemList:
        return self.default_lists.default_list(self.get_contact(contact_id, owner_id), key)
