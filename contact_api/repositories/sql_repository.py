"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError

from contact_api.core.utils import new_id
from contact_api.db.models import (
    AccessRecord,
    Account,
    Contact,
    ItemAlarm,
    ItemList,
    ListItem,
    ListShare,
    ShareGrant,
)
from contact_api.db.session import get_session
from contact_api.domain.default_lists import DefaultListCategory
from contact_api.domain.items import AlarmDraft, ItemDraft


class ShareCodeTakenError(Exception):
    """The unique index on accounts.share_code rejected a write."""

    def __init__(self, code: str):
        super().__init__(f"Share code {code} already assigned")
        self.code = code


def _duplicate(exc: IntegrityError, constraint: str, column: str) -> bool:
    """True only for a unique violation of ``constraint``; FK and NOT NULL failures do not match."""
    message = str(getattr(exc, "orig", exc)).lower()
    if constraint in message:
        return True
    # SQLite names the columns, not the constraint
    return "unique constraint failed" in message and column in message


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _alarm_entity(draft: AlarmDraft) -> ItemAlarm:
    return ItemAlarm(trigger_time=draft.trigger_time, channel=draft.channel, message=draft.message, triggered=False)


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- loaders --------------------------
    @staticmethod
    def _load_account(session, account_id: str) -> Optional[Account]:
        stmt = select(Account).where(Account.id == account_id).execution_options(populate_existing=True)
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _load_contact(session, contact_id: str) -> Optional[Contact]:
        stmt = select(Contact).where(Contact.id == contact_id).execution_options(populate_existing=True)
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _load_list(session, list_id: str) -> Optional[ItemList]:
        stmt = select(ItemList).where(ItemList.id == list_id).execution_options(populate_existing=True)
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _load_item(session, item_id: int) -> Optional[ListItem]:
        stmt = select(ListItem).where(ListItem.id == item_id).execution_options(populate_existing=True)
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _item_in_list(session, list_id: str, item_id: int) -> Optional[ListItem]:
        stmt = select(ListItem).where(ListItem.id == item_id, ListItem.list_id == list_id)
        return session.execute(stmt).scalar_one_or_none()

    # -------------------------- accounts --------------------------
    def get_account(self, account_id: str) -> Optional[Account]:
        with get_session() as session:
            return session.get(Account, account_id)

    def get_account_by_email(self, email: str) -> Optional[Account]:
        with get_session() as session:
            stmt = select(Account).where(Account.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def get_account_by_phone(self, phone: str) -> Optional[Account]:
        with get_session() as session:
            stmt = select(Account).where(Account.phone == phone)
            return session.execute(stmt).scalar_one_or_none()

    def get_account_by_share_code(self, code: str) -> Optional[Account]:
        with get_session() as session:
            stmt = select(Account).where(Account.share_code == code)
            return session.execute(stmt).scalar_one_or_none()

    def share_code_exists(self, code: str) -> bool:
        with get_session() as session:
            stmt = select(Account.id).where(Account.share_code == code).limit(1)
            return session.execute(stmt).first() is not None

    def list_accounts_without_share_code(self, limit: int | None = None) -> list[Account]:
        with get_session() as session:
            stmt = select(Account).where(Account.share_code.is_(None), Account.is_active.is_(True)).order_by(Account.created_at)
            if limit:
                stmt = stmt.limit(limit)
            return session.execute(stmt).scalars().all()

    def create_account(
        self,
        email: str,
        password_hash: str,
        *,
        full_name: str,
        profession_type: str,
        phone: str | None = None,
        profession_info: dict | None = None,
        profile: dict | None = None,
    ) -> Account:
        now = _now()
        entity = Account(
            id=new_id(),
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            profession_type=profession_type,
            phone=phone,
            profession_info=profession_info or {},
            profile=profile or {},
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            return self._load_account(session, entity.id)

    def update_account_password(self, account_id: str, password_hash: str) -> None:
        with get_session() as session:
            stmt = (
                update(Account)
                .where(Account.id == account_id)
                .values(password_hash=password_hash, updated_at=_now())
            )
            session.execute(stmt)
            session.commit()

    def update_account(self, account_id: str, values: dict) -> Optional[Account]:
        if not values:
            return self.get_account(account_id)
        with get_session() as session:
            stmt = update(Account).where(Account.id == account_id).values(**values, updated_at=_now())
            session.execute(stmt)
            session.commit()
            return self._load_account(session, account_id)

    def assign_share_code(self, account_id: str, code: str) -> bool:
        """Compare-and-set: write ``code`` only while the account has none.

        Returns False when the account already holds a code (another request
        won). Raises ShareCodeTakenError when a different account owns ``code``.
        """
        with get_session() as session:
            stmt = (
                update(Account)
                .where(Account.id == account_id, Account.share_code.is_(None))
                .values(share_code=code, updated_at=_now())
            )
            try:
                result = session.execute(stmt)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if _duplicate(exc, "uq_accounts_share_code", "accounts.share_code"):
                    raise ShareCodeTakenError(code) from exc
                raise
            return result.rowcount == 1

    def add_share_grant(self, owner_id: str, grantee_id: str, access_level: str) -> bool:
        """Append a grant unless one already exists for ``grantee_id``. True when created."""
        with get_session() as session:
            stmt = select(ShareGrant.id).where(ShareGrant.owner_id == owner_id, ShareGrant.grantee_id == grantee_id)
            if session.execute(stmt).first() is not None:
                return False
            session.add(ShareGrant(owner_id=owner_id, grantee_id=grantee_id, access_level=access_level, granted_at=_now()))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if _duplicate(exc, "uq_share_grants_owner_grantee", "share_grants.grantee_id"):
                    return False
                raise
            return True

    def add_access_record(self, account_id: str, code: str, owner_id: str) -> bool:
        """Append a redemption record unless ``code`` was already redeemed. True when created."""
        with get_session() as session:
            stmt = select(AccessRecord.id).where(AccessRecord.account_id == account_id, AccessRecord.code == code)
            if session.execute(stmt).first() is not None:
                return False
            session.add(AccessRecord(account_id=account_id, code=code, owner_id=owner_id, redeemed_at=_now()))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if _duplicate(exc, "uq_access_records_account_code", "access_records.code"):
                    return False
                raise
            return True

    # -------------------------- contacts --------------------------
    def create_contact(self, owner_id: str, name: str, **fields) -> Contact:
        now = _now()
        entity = Contact(id=new_id(), owner_id=owner_id, name=name, created_at=now, updated_at=now, **fields)
        with get_session() as session:
            session.add(entity)
            session.commit()
            return self._load_contact(session, entity.id)

    def get_contact(self, contact_id: str, owner_id: str | None = None) -> Optional[Contact]:
        with get_session() as session:
            contact = session.get(Contact, contact_id)
            if contact and owner_id is not None and contact.owner_id != owner_id:
                return None
            return contact

    def get_contacts(self, contact_ids: Iterable[str]) -> list[Contact]:
        ids = list(contact_ids)
        if not ids:
            return []
        with get_session() as session:
            stmt = select(Contact).where(Contact.id.in_(ids))
            return session.execute(stmt).scalars().all()

    def list_contacts(
        self,
        owner_id: str,
        *,
        search: str | None = None,
        priority: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Contact]:
        with get_session() as session:
            stmt = select(Contact).where(Contact.owner_id == owner_id)
            if search:
                pattern = f"%{search}%"
                stmt = stmt.where(
                    or_(Contact.name.ilike(pattern), Contact.mobile_number.ilike(pattern), Contact.email.ilike(pattern))
                )
            if priority:
                stmt = stmt.where(Contact.priority == priority)
            stmt = stmt.order_by(Contact.name).limit(limit).offset(offset)
            return session.execute(stmt).scalars().all()

    def list_contacts_missing_default_lists(self, limit: int | None = None) -> list[Contact]:
        with get_session() as session:
            stmt = select(Contact).where(
                or_(
                    Contact.default_tasks_list_id.is_(None),
                    Contact.default_meetings_list_id.is_(None),
                    Contact.default_transactions_list_id.is_(None),
                )
            ).order_by(Contact.created_at)
            if limit:
                stmt = stmt.limit(limit)
            return session.execute(stmt).scalars().all()

    def update_contact(self, contact_id: str, values: dict) -> Optional[Contact]:
        with get_session() as session:
            if values:
                stmt = update(Contact).where(Contact.id == contact_id).values(**values, updated_at=_now())
                session.execute(stmt)
                session.commit()
            return self._load_contact(session, contact_id)

    def set_default_list_reference(self, contact_id: str, field: str, list_id: str | None) -> None:
        with get_session() as session:
            stmt = update(Contact).where(Contact.id == contact_id).values(**{field: list_id}, updated_at=_now())
            session.execute(stmt)
            session.commit()

    def delete_contact(self, contact_id: str) -> bool:
        """Delete the contact together with its default lists."""
        with get_session() as session:
            contact = session.get(Contact, contact_id)
            if not contact:
                return False
            session.execute(
                update(Contact)
                .where(Contact.id == contact_id)
                .values(default_tasks_list_id=None, default_meetings_list_id=None, default_transactions_list_id=None)
            )
            session.execute(
                delete(ItemList).where(ItemList.contact_owner_id == contact_id, ItemList.is_default.is_(True))
            )
            session.execute(
                update(Contact).where(Contact.referred_by_id == contact_id).values(referred_by_id=None)
            )
            session.delete(contact)
            session.commit()
            return True

    def add_referral(self, contact_id: str, referred_id: str) -> Optional[Contact]:
        with get_session() as session:
            contact = session.get(Contact, contact_id)
            referred = session.get(Contact, referred_id)
            if not contact or not referred:
                return None
            referral_ids = list(contact.referral_ids or [])
            if referred_id not in referral_ids:
                referral_ids.append(referred_id)
                contact.referral_ids = referral_ids
                referred.referred_by_id = contact_id
                contact.updated_at = referred.updated_at = _now()
                session.commit()
            return self._load_contact(session, contact_id)

    def record_interaction(self, contact_id: str, when: datetime) -> Optional[Contact]:
        with get_session() as session:
            stmt = (
                update(Contact)
                .where(Contact.id == contact_id)
                .values(last_contacted=when, interaction_count=Contact.interaction_count + 1, updated_at=_now())
            )
            session.execute(stmt)
            session.commit()
            return self._load_contact(session, contact_id)

    def provision_default_lists(
        self,
        contact_id: str,
        categories: Sequence[DefaultListCategory],
        *,
        default_alarm_minutes: int | None = 30,
    ) -> tuple[Optional[Contact], list[str]]:
        """Create whatever default lists the contact is missing, in one transaction.

        A category is satisfied when the contact's back-reference points at the
        contact's default list of that type. A default list that exists without
        a back-reference (interrupted earlier attempt) is re-linked, not
        duplicated. Returns the refreshed contact and the list types created.
        """
        with get_session() as session:
            contact = session.get(Contact, contact_id, with_for_update=True)
            if not contact:
                return None, []
            stmt = select(ItemList).where(ItemList.contact_owner_id == contact_id, ItemList.is_default.is_(True))
            existing = {entity.list_type: entity for entity in session.execute(stmt).scalars()}
            created: list[str] = []
            links: dict[str, str] = {}
            now = _now()
            for category in categories:
                current = existing.get(category.list_type)
                if current is not None and getattr(contact, category.reference_field) == current.id:
                    continue
                if current is None:
                    current = ItemList(
                        id=new_id(),
                        owner_id=contact.owner_id,
                        list_type=category.list_type,
                        name=category.display_name(contact.name),
                        description=category.description(contact.name),
                        color=category.color,
                        icon=category.icon,
                        is_default=True,
                        contact_owner_id=contact.id,
                        default_alarm_minutes=default_alarm_minutes,
                        created_at=now,
                        updated_at=now,
                    )
                    session.add(current)
                    created.append(category.list_type)
                links[category.reference_field] = current.id
            if links:
                session.flush()
                for field, list_id in links.items():
                    setattr(contact, field, list_id)
                contact.updated_at = now
                session.commit()
            return self._load_contact(session, contact_id), created

    # -------------------------- lists --------------------------
    def get_list(self, list_id: str, owner_id: str | None = None) -> Optional[ItemList]:
        with get_session() as session:
            entity = session.get(ItemList, list_id)
            if entity and owner_id is not None and entity.owner_id != owner_id:
                return None
            return entity

    def get_default_lists(self, contact_id: str) -> list[ItemList]:
        with get_session() as session:
            stmt = (
                select(ItemList)
                .where(ItemList.contact_owner_id == contact_id, ItemList.is_default.is_(True))
                .order_by(ItemList.list_type)
            )
            return session.execute(stmt).scalars().all()

    def lists_for_contact(self, contact_id: str, list_type: str | None = None) -> list[ItemList]:
        with get_session() as session:
            stmt = select(ItemList).where(
                or_(ItemList.contact_owner_id == contact_id, ItemList.members.any(Contact.id == contact_id))
            )
            if list_type:
                stmt = stmt.where(ItemList.list_type == list_type)
            stmt = stmt.order_by(ItemList.created_at.desc())
            return session.execute(stmt).scalars().all()

    def create_list(self, owner_id: str, name: str, list_type: str, member_ids: Iterable[str] = (), **fields) -> ItemList:
        now = _now()
        with get_session() as session:
            entity = ItemList(
                id=new_id(),
                owner_id=owner_id,
                name=name,
                list_type=list_type,
                is_default=False,
                created_at=now,
                updated_at=now,
                **fields,
            )
            ids = list(member_ids)
            if ids:
                entity.members = session.execute(select(Contact).where(Contact.id.in_(ids))).scalars().all()
            session.add(entity)
            session.commit()
            return self._load_list(session, entity.id)

    def update_list(self, list_id: str, values: dict) -> Optional[ItemList]:
        with get_session() as session:
            if values:
                stmt = update(ItemList).where(ItemList.id == list_id).values(**values, updated_at=_now())
                session.execute(stmt)
                session.commit()
            return self._load_list(session, list_id)

    def delete_list(self, list_id: str) -> bool:
        with get_session() as session:
            entity = session.get(ItemList, list_id)
            if not entity:
                return False
            session.delete(entity)
            session.commit()
            return True

    def add_list_share(self, list_id: str, user_id: str, permission: str) -> bool:
        with get_session() as session:
            stmt = select(ListShare.id).where(ListShare.list_id == list_id, ListShare.user_id == user_id)
            if session.execute(stmt).first() is not None:
                return False
            session.add(ListShare(list_id=list_id, user_id=user_id, permission=permission))
            session.execute(update(ItemList).where(ItemList.id == list_id).values(is_shared=True, updated_at=_now()))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if _duplicate(exc, "uq_list_shares_list_user", "list_shares.user_id"):
                    return False
                raise
            return True

    # -------------------------- items --------------------------
    def append_item(self, list_id: str, draft: ItemDraft) -> Optional[ListItem]:
        now = _now()
        with get_session() as session:
            if session.get(ItemList, list_id) is None:
                return None
            entity = ListItem(
                list_id=list_id,
                title=draft.title,
                description=draft.description,
                status=draft.status,
                priority=draft.priority,
                related_contact_id=draft.related_contact_id,
                due_date=draft.due_date,
                start_time=draft.start_time,
                end_time=draft.end_time,
                completed_at=draft.completed_at,
                details=draft.details,
                tags=draft.tags,
                notes=draft.notes,
                created_at=now,
                updated_at=now,
                alarms=[_alarm_entity(alarm) for alarm in draft.alarms],
            )
            session.add(entity)
            session.execute(update(ItemList).where(ItemList.id == list_id).values(updated_at=now))
            session.commit()
            return self._load_item(session, entity.id)

    def get_item(self, list_id: str, item_id: int) -> Optional[ListItem]:
        with get_session() as session:
            return self._item_in_list(session, list_id, item_id)

    def update_item(self, list_id: str, item_id: int, values: dict) -> Optional[ListItem]:
        with get_session() as session:
            entity = self._item_in_list(session, list_id, item_id)
            if not entity:
                return None
            for key, value in values.items():
                setattr(entity, key, value)
            entity.updated_at = _now()
            session.commit()
            return self._load_item(session, item_id)

    def delete_item(self, list_id: str, item_id: int) -> bool:
        with get_session() as session:
            entity = self._item_in_list(session, list_id, item_id)
            if not entity:
                return False
            session.delete(entity)
            session.commit()
            return True

    # -------------------------- alarms --------------------------
    def append_alarm(self, list_id: str, item_id: int, draft: AlarmDraft) -> Optional[ListItem]:
        with get_session() as session:
            entity = self._item_in_list(session, list_id, item_id)
            if not entity:
                return None
            entity.alarms.append(_alarm_entity(draft))
            entity.updated_at = _now()
            session.commit()
            return self._load_item(session, item_id)

    def delete_alarm(self, list_id: str, item_id: int, alarm_id: int) -> bool:
        with get_session() as session:
            if self._item_in_list(session, list_id, item_id) is None:
                return False
            result = session.execute(delete(ItemAlarm).where(ItemAlarm.id == alarm_id, ItemAlarm.item_id == item_id))
            session.commit()
            return result.rowcount == 1

    def get_alarm(self, item_id: int, alarm_id: int) -> Optional[ItemAlarm]:
        with get_session() as session:
            stmt = select(ItemAlarm).where(ItemAlarm.id == alarm_id, ItemAlarm.item_id == item_id)
            return session.execute(stmt).scalar_one_or_none()

    def mark_alarm_triggered(self, alarm_id: int, when: datetime) -> bool:
        """Flip ``triggered`` once; a second call leaves triggered_at untouched."""
        with get_session() as session:
            stmt = (
                update(ItemAlarm)
                .where(ItemAlarm.id == alarm_id, ItemAlarm.triggered.is_(False))
                .values(triggered=True, triggered_at=when)
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1

    def due_alarms(self, now: datetime, owner_id: str | None = None, limit: int = 500) -> list[tuple[ItemAlarm, ListItem]]:
        with get_session() as session:
            stmt = (
                select(ItemAlarm, ListItem)
                .join(ListItem, ListItem.id == ItemAlarm.item_id)
                .where(ItemAlarm.triggered.is_(False), ItemAlarm.trigger_time <= now)
                .order_by(ItemAlarm.trigger_time)
                .limit(limit)
            )
            if owner_id is not None:
                stmt = stmt.join(ItemList, ItemList.id == ListItem.list_id).where(ItemList.owner_id == owner_id)
            return [(alarm, item) for alarm, item in session.execute(stmt).all()]

    # -------------------------- grants lookup --------------------------
    def get_share_grant(self, owner_id: str, grantee_id: str) -> Optional[ShareGrant]:
        with get_session() as session:
            stmt = select(ShareGrant).where(ShareGrant.owner_id == owner_id, ShareGrant.grantee_id == grantee_id)
            return session.execute(stmt).scalar_one_or_none()
