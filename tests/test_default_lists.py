from __future__ import annotations

import pytest

from contact_api.domain.default_lists import CATEGORIES_BY_KEY, DEFAULT_LIST_CATEGORIES
from contact_api.repositories.sql_repository import SQLRepository
from contact_api.services.contact_service import (
    ContactNotFoundError,
    ContactService,
    DefaultListManager,
    DefaultListMissingError,
)


@pytest.fixture()
def owner(make_account):
    return make_account()


def test_new_contact_gets_three_default_lists(owner):
    repo = SQLRepository()
    contact = ContactService().create_contact(owner.id, "Ada Lovelace")

    expected = {"tasks": "task", "meetings": "meeting", "transactions": "transaction"}
    for key, list_type in expected.items():
        list_id = getattr(contact, f"default_{key}_list_id")
        assert list_id
        entity = repo.get_list(list_id)
        assert entity.contact_owner_id == contact.id
        assert entity.list_type == list_type
        assert entity.is_default
        assert entity.owner_id == owner.id
    assert repo.get_list(contact.default_tasks_list_id).name == "Ada Lovelace - Tasks"


def test_ensure_is_idempotent(owner):
    repo = SQLRepository()
    contact = ContactService().create_contact(owner.id, "Grace")
    manager = DefaultListManager()

    again = manager.ensure_default_lists(contact.id)

    assert again.default_tasks_list_id == contact.default_tasks_list_id
    assert again.default_meetings_list_id == contact.default_meetings_list_id
    assert again.default_transactions_list_id == contact.default_transactions_list_id
    assert len(repo.get_default_lists(contact.id)) == 3


def test_resumes_partial_provisioning(owner):
    repo = SQLRepository()
    contact = repo.create_contact(owner.id, "Linus")
    repo.provision_default_lists(contact.id, [CATEGORIES_BY_KEY["tasks"]])
    tasks_id = repo.get_contact(contact.id).default_tasks_list_id
    assert tasks_id

    repaired = DefaultListManager().ensure_default_lists(contact.id)

    assert repaired.default_tasks_list_id == tasks_id
    assert repaired.default_meetings_list_id
    assert repaired.default_transactions_list_id
    assert sorted(entity.list_type for entity in repo.get_default_lists(contact.id)) == [
        "meeting",
        "task",
        "transaction",
    ]


def test_relinks_default_list_without_back_reference(owner):
    repo = SQLRepository()
    contact = ContactService().create_contact(owner.id, "Barbara")
    meetings_id = contact.default_meetings_list_id
    # Interrupted run: the list exists but the contact lost its pointer.
    repo.set_default_list_reference(contact.id, "default_meetings_list_id", None)

    repo_contact, created = repo.provision_default_lists(contact.id, DEFAULT_LIST_CATEGORIES)

    assert created == []
    assert repo_contact.default_meetings_list_id == meetings_id
    assert len(repo.get_default_lists(contact.id)) == 3


def test_missing_default_list_is_reported_not_healed(owner):
    repo = SQLRepository()
    contact = repo.create_contact(owner.id, "Ken")
    manager = DefaultListManager()

    with pytest.raises(DefaultListMissingError):
        manager.add_task(contact, {"title": "Call back"})
    assert repo.get_default_lists(contact.id) == []


def test_add_task_meeting_transaction(owner):
    service = ContactService()
    contact = service.create_contact(owner.id, "Margaret")
    manager = service.default_lists

    task = manager.add_task(contact, {"title": "Send proposal", "task_info": {"estimated_time": 30}})
    meeting = manager.add_meeting(contact, {"title": "Kickoff", "meeting_info": {"location": "HQ"}})
    payment = manager.add_transaction(contact, {"title": "Invoice", "transaction_info": {"amount": 100}})

    assert task.list_id == contact.default_tasks_list_id
    assert meeting.list_id == contact.default_meetings_list_id
    assert payment.list_id == contact.default_transactions_list_id
    assert task.related_contact_id == contact.id
    assert task.details == {"estimated_time": 30}
    assert payment.details == {"amount": 100, "currency": "USD"}


def test_deleting_contact_removes_default_lists(owner):
    repo = SQLRepository()
    service = ContactService()
    contact = service.create_contact(owner.id, "Edsger")
    service.default_lists.add_task(contact, {"title": "Review"})
    list_ids = [
        contact.default_tasks_list_id,
        contact.default_meetings_list_id,
        contact.default_transactions_list_id,
    ]

    service.delete_contact(contact.id, owner.id)

    assert repo.get_contact(contact.id) is None
    assert all(repo.get_list(list_id) is None for list_id in list_ids)
    with pytest.raises(ContactNotFoundError):
        service.get_contact(contact.id, owner.id)


def test_default_list_lookup_accepts_key_or_type(owner):
    service = ContactService()
    contact = service.create_contact(owner.id, "Alan")

    assert service.default_list_for(contact.id, owner.id, "tasks").id == contact.default_tasks_list_id
    assert service.default_list_for(contact.id, owner.id, "meeting").id == contact.default_meetings_list_id
