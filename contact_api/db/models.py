"""SQLAlchemy models for accounts, contacts, lists and their embedded records."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    JSON,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from contact_api.core.utils import new_id
from .session import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(32), unique=True, nullable=True)
    password_hash = Column(Text, nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    profession_type = Column(String(32), nullable=False)
    profession_info = Column(JSON, nullable=False, default=dict)
    profile = Column(JSON, nullable=False, default=dict)
    share_code = Column(String(5), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("share_code", name="uq_accounts_share_code"),)

    share_grants = relationship(
        "ShareGrant",
        foreign_keys="ShareGrant.owner_id",
        order_by="ShareGrant.id",
        lazy="selectin",
        cascade="all,delete-orphan",
    )
    access_records = relationship(
        "AccessRecord",
        foreign_keys="AccessRecord.account_id",
        order_by="AccessRecord.id",
        lazy="selectin",
        cascade="all,delete-orphan",
    )


class ShareGrant(Base):
    """Outbound permission: ``grantee_id`` may view/edit the owner's data."""

    __tablename__ = "share_grants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    grantee_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    access_level = Column(String(8), nullable=False, default="view")
    granted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("owner_id", "grantee_id", name="uq_share_grants_owner_grantee"),)


class AccessRecord(Base):
    """Inbound record: a share code this account redeemed and whom it resolved to."""

    __tablename__ = "access_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(5), nullable=False)
    owner_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    redeemed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("account_id", "code", name="uq_access_records_account_code"),)


class AccountSession(Base):
    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    account_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


list_members = Table(
    "list_members",
    Base.metadata,
    Column("list_id", String(32), ForeignKey("lists.id", ondelete="CASCADE"), primary_key=True),
    Column("contact_id", String(32), ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True),
)


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(32), primary_key=True, default=new_id)
    owner_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    mobile_number = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    designation = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    profile_photo = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    linked_account_id = Column(String(32), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    referred_by_id = Column(String(32), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    referral_ids = Column(JSON, nullable=False, default=list)
    default_tasks_list_id = Column(
        String(32),
        ForeignKey("lists.id", ondelete="SET NULL", use_alter=True, name="fk_contacts_default_tasks"),
        nullable=True,
    )
    default_meetings_list_id = Column(
        String(32),
        ForeignKey("lists.id", ondelete="SET NULL", use_alter=True, name="fk_contacts_default_meetings"),
        nullable=True,
    )
    default_transactions_list_id = Column(
        String(32),
        ForeignKey("lists.id", ondelete="SET NULL", use_alter=True, name="fk_contacts_default_transactions"),
        nullable=True,
    )
    priority = Column(String(8), nullable=False, default="medium")
    is_favorite = Column(Boolean, nullable=False, default=False)
    last_contacted = Column(DateTime(timezone=True), nullable=True)
    interaction_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class ItemList(Base):
    __tablename__ = "lists"

    id = Column(String(32), primary_key=True, default=new_id)
    owner_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    list_type = Column(String(16), nullable=False, default="custom")
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(16), nullable=False, default="#3B82F6")
    icon = Column(String(16), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    contact_owner_id = Column(String(32), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=True, index=True)
    is_shared = Column(Boolean, nullable=False, default=False)
    default_alarm_minutes = Column(Integer, nullable=True)
    sort_by = Column(String(16), nullable=False, default="due_date")
    sort_order = Column(String(4), nullable=False, default="asc")
    is_active = Column(Boolean, nullable=False, default=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_lists_owner_type", "owner_id", "list_type"),
        Index(
            "uq_lists_default_per_contact",
            "contact_owner_id",
            "list_type",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )

    items = relationship(
        "ListItem",
        order_by="ListItem.id",
        lazy="selectin",
        cascade="all,delete-orphan",
        back_populates="item_list",
    )
    shares = relationship("ListShare", order_by="ListShare.id", lazy="selectin", cascade="all,delete-orphan")
    members = relationship("Contact", secondary=list_members, lazy="selectin")


class ListShare(Base):
    __tablename__ = "list_shares"

    id = Column(Integer, primary_key=True, autoincrement=True)
    list_id = Column(String(32), ForeignKey("lists.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(32), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    permission = Column(String(8), nullable=False, default="view")

    __table_args__ = (UniqueConstraint("list_id", "user_id", name="uq_list_shares_list_user"),)


class ListItem(Base):
    __tablename__ = "list_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    list_id = Column(String(32), ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    priority = Column(String(8), nullable=False, default="medium")
    related_contact_id = Column(String(32), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    details = Column(JSON, nullable=False, default=dict)
    tags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    item_list = relationship("ItemList", back_populates="items")
    alarms = relationship(
        "ItemAlarm",
        order_by="ItemAlarm.id",
        lazy="selectin",
        cascade="all,delete-orphan",
    )


class ItemAlarm(Base):
    __tablename__ = "item_alarms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("list_items.id", ondelete="CASCADE"), nullable=False)
    trigger_time = Column(DateTime(timezone=True), nullable=False)
    channel = Column(String(16), nullable=False, default="notification")
    message = Column(Text, nullable=True)
    triggered = Column(Boolean, nullable=False, default=False)
    triggered_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_item_alarms_due", "triggered", "trigger_time"),)
