"""
Smoke tests for the SQLRepository against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from contact_api.core.utils import as_utc
from contact_api.db.models import ItemList
from contact_api.db.session import get_session
from contact_api.domain.default_lists import DEFAULT_LIST_CATEGORIES
from contact_api.repositories.sql_repository import SQLRepository, ShareCodeTakenError


def test_share_code_compare_and_set(make_account):
    repo = SQLRepository()
    first = make_account()
    second = make_account()

    assert repo.assign_share_code(first.id, "BAFEK") is True
    # the account already holds a code: the CAS does not overwrite it
    assert repo.assign_share_code(first.id, "TIGOL") is False
    assert repo.get_account(first.id).share_code == "BAFEK"
    with pytest.raises(ShareCodeTakenError):
        repo.assign_share_code(second.id, "BAFEK")
    assert repo.get_account(second.id).share_code is None
    assert repo.share_code_exists("BAFEK")
    assert [a.id for a in repo.list_accounts_without_share_code()] == [second.id]


def test_grants_and_access_records_are_append_once(make_account):
    repo = SQLRepository()
    owner = make_account()
    viewer = make_account()

    assert repo.add_share_grant(owner.id, viewer.id, "view") is True
    assert repo.add_share_grant(owner.id, viewer.id, "edit") is False
    assert repo.add_access_record(viewer.id, "BAFEK", owner.id) is True
    assert repo.add_access_record(viewer.id, "BAFEK", owner.id) is False
    assert repo.get_share_grant(owner.id, viewer.id).access_level == "view"


def test_one_default_list_per_type_and_contact(make_account):
    repo = SQLRepository()
    owner = make_account()
    contact = repo.create_contact(owner.id, "Ada")
    repo.provision_default_lists(contact.id, DEFAULT_LIST_CATEGORIES)

    with get_session() as session:
        session.add(
            ItemList(
                owner_id=owner.id,
                name="Duplicate",
                list_type="task",
                is_default=True,
                contact_owner_id=contact.id,
            )
        )
        with pytest.raises(IntegrityError):
            session.commit()

    # non-default lists of the same type are unrestricted
    repo.create_list(owner.id, "Side tasks", "task", member_ids=[contact.id])
    repo.create_list(owner.id, "More tasks", "task", member_ids=[contact.id])
    assert len(repo.lists_for_contact(contact.id, "task")) == 3


def test_contact_search_and_missing_default_lists(make_account):
    repo = SQLRepository()
    owner = make_account()
    ada = repo.create_contact(owner.id, "Ada Lovelace", email="ada@example.com", priority="high")
    repo.create_contact(owner.id, "Charles Babbage", mobile_number="555-0101")
    repo.provision_default_lists(ada.id, DEFAULT_LIST_CATEGORIES)

    assert [c.name for c in repo.list_contacts(owner.id, search="love")] == ["Ada Lovelace"]
    assert [c.name for c in repo.list_contacts(owner.id, search="0101")] == ["Charles Babbage"]
    assert [c.name for c in repo.list_contacts(owner.id, priority="high")] == ["Ada Lovelace"]
    assert [c.name for c in repo.list_contacts_missing_default_lists()] == ["Charles Babbage"]


def test_referrals_and_interactions(make_account):
    repo = SQLRepository()
    owner = make_account()
    ada = repo.create_contact(owner.id, "Ada")
    charles = repo.create_contact(owner.id, "Charles")

    repo.add_referral(ada.id, charles.id)
    updated = repo.add_referral(ada.id, charles.id)
    assert updated.referral_ids == [charles.id]
    assert repo.get_contact(charles.id).referred_by_id == ada.id

    when = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)
    repo.record_interaction(ada.id, when)
    touched = repo.record_interaction(ada.id, when)
    assert touched.interaction_count == 2
    assert as_utc(touched.last_contacted) == when


def test_contact_lookup_is_owner_scoped(make_account):
    repo = SQLRepository()
    owner = make_account()
    stranger = make_account()
    contact = repo.create_contact(owner.id, "Ada")

    assert repo.get_contact(contact.id, owner.id) is not None
    assert repo.get_contact(contact.id, stranger.id) is None
