from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from contact_api.core.utils import as_utc
from contact_api.domain.errors import InvalidArgumentError
from contact_api.services.auth_service import AccountNotFoundError
from contact_api.services.contact_service import ContactService
from contact_api.services.list_service import AlarmNotFoundError, ListNotFoundError, ListService

DUE = datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture()
def owner(make_account):
    return make_account()


@pytest.fixture()
def service():
    return ListService()


def test_due_date_derives_reminder_alarm(owner, service):
    errands = service.create_list(owner.id, "Errands", "task", default_alarm_minutes=15)

    item = service.add_item(errands, {"title": "Buy stamps", "due_date": "2030-01-01T10:00:00Z"})

    assert len(item.alarms) == 1
    alarm = item.alarms[0]
    assert as_utc(alarm.trigger_time) == DUE - timedelta(minutes=15)
    assert alarm.message == "Reminder: Buy stamps"
    assert alarm.channel == "notification"
    assert alarm.triggered is False


def test_list_lead_time_defaults_to_thirty_minutes(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    assert errands.default_alarm_minutes == 30

    item = service.add_item(errands, {"title": "Pay rent", "due_date": DUE})

    assert as_utc(item.alarms[0].trigger_time) == DUE - timedelta(minutes=30)


def test_no_alarm_without_due_date_or_lead_time(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    silent = service.create_list(owner.id, "Silent", "task", default_alarm_minutes=None)

    assert service.add_item(errands, {"title": "Someday"}).alarms == []
    assert service.add_item(silent, {"title": "Due", "due_date": DUE}).alarms == []


def test_explicit_alarms_come_before_derived_one(owner, service):
    errands = service.create_list(owner.id, "Errands", "task", default_alarm_minutes=10)
    early = DUE - timedelta(days=1)

    item = service.add_item(
        errands,
        {"title": "Launch", "due_date": DUE, "alarms": [{"trigger_time": early, "channel": "email"}]},
    )

    assert [a.channel for a in item.alarms] == ["email", "notification"]
    assert as_utc(item.alarms[0].trigger_time) == early
    assert as_utc(item.alarms[1].trigger_time) == DUE - timedelta(minutes=10)


def test_item_requires_title(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    with pytest.raises(InvalidArgumentError):
        service.add_item(errands, {"title": "  "})


def test_first_completion_timestamp_wins(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    item = service.add_item(errands, {"title": "File taxes"})
    first = datetime(2030, 2, 1, 9, 0, tzinfo=timezone.utc)
    later = datetime(2030, 3, 1, 9, 0, tzinfo=timezone.utc)

    done = service.update_item(errands, item.id, {"status": "completed"}, now=first)
    service.update_item(errands, item.id, {"status": "in-progress"}, now=later)
    again = service.update_item(errands, item.id, {"status": "completed"}, now=later)

    assert as_utc(done.completed_at) == first
    assert as_utc(again.completed_at) == first
    assert again.status == "completed"


def test_trigger_alarm_keeps_first_timestamp(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    item = service.add_item(errands, {"title": "Standup", "due_date": DUE})
    alarm_id = item.alarms[0].id
    first = datetime(2030, 1, 1, 9, 30, tzinfo=timezone.utc)

    fired = service.trigger_alarm(errands, item.id, alarm_id, now=first)
    refired = service.trigger_alarm(errands, item.id, alarm_id, now=first + timedelta(hours=1))

    assert fired.triggered and refired.triggered
    assert as_utc(refired.triggered_at) == first
    with pytest.raises(AlarmNotFoundError):
        service.trigger_alarm(errands, item.id, alarm_id + 999, now=first)


def test_due_alarms_lists_untriggered_past_alarms(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    soon = service.add_item(errands, {"title": "Soon", "due_date": DUE})
    service.add_item(errands, {"title": "Later", "due_date": DUE + timedelta(days=30)})
    moment = DUE

    pending = service.due_alarms(moment, owner_id=owner.id)
    assert [(alarm.id, item.id) for alarm, item in pending] == [(soon.alarms[0].id, soon.id)]

    service.trigger_alarm(errands, soon.id, soon.alarms[0].id, now=moment)
    assert service.due_alarms(moment, owner_id=owner.id) == []


def test_summary_counts(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    past = datetime(2020, 1, 1, tzinfo=timezone.utc)
    late = service.add_item(errands, {"title": "Late", "due_date": past})
    service.add_item(errands, {"title": "Done", "status": "completed", "due_date": past})
    service.add_item(errands, {"title": "Dropped", "status": "cancelled", "due_date": past})
    service.add_item(errands, {"title": "Working", "status": "in-progress"})

    summary = service.summary(errands.id, now=datetime(2025, 1, 1, tzinfo=timezone.utc))

    assert summary == {"completed_count": 1, "pending_count": 2, "overdue_item_ids": [late.id]}


def test_transaction_payload_defaults_currency(owner, service):
    ledger = service.create_list(owner.id, "Ledger", "transaction")
    item = service.add_item(ledger, {"title": "Deposit", "transaction_info": {"amount": 50, "transaction_type": "receipt"}})
    assert item.details == {"amount": 50, "transaction_type": "receipt", "currency": "USD"}
    with pytest.raises(InvalidArgumentError):
        service.add_item(ledger, {"title": "Bad", "transaction_info": {"transaction_type": "gift"}})


def test_share_list_with_another_account(owner, make_account, service):
    friend = make_account()
    errands = service.create_list(owner.id, "Errands", "task")

    shared = service.share_list(errands, friend.id, "edit")
    service.share_list(errands, friend.id, "view")

    assert shared.is_shared
    assert [(s.user_id, s.permission) for s in service.get_list(errands.id).shares] == [(friend.id, "edit")]
    with pytest.raises(InvalidArgumentError):
        service.share_list(errands, owner.id)
    with pytest.raises(InvalidArgumentError):
        service.share_list(errands, friend.id, "admin")


def test_lists_are_scoped_to_owner(owner, make_account, service):
    stranger = make_account()
    errands = service.create_list(owner.id, "Errands", "task")
    with pytest.raises(ListNotFoundError):
        service.get_list(errands.id, stranger.id)


def test_default_list_cannot_be_deleted_directly(owner, service):
    contact = ContactService(lists=service).create_contact(owner.id, "Niklaus")
    with pytest.raises(InvalidArgumentError):
        service.delete_list(contact.default_tasks_list_id, owner.id)


def test_custom_contact_list(owner):
    contacts = ContactService()
    contact = contacts.create_contact(owner.id, "Donald")

    custom = contacts.create_custom_list(contact.id, owner.id, "Reading list", "custom")

    assert [member.id for member in custom.members] == [contact.id]
    found = contacts.lists_for_contact(contact.id, owner.id, "custom")
    assert [entity.id for entity in found] == [custom.id]
    assert len(contacts.lists_for_contact(contact.id, owner.id)) == 4


def test_share_list_with_unknown_account(owner, service):
    errands = service.create_list(owner.id, "Errands", "task")
    with pytest.raises(AccountNotFoundError):
        service.share_list(errands, "nobody")
    assert service.get_list(errands.id).shares == []
    assert not service.get_list(errands.id).is_shared
