from __future__ import annotations

from contact_api.domain.default_lists import CATEGORIES_BY_KEY
from contact_api.domain.share_codes import is_valid_code
from contact_api.repositories.sql_repository import SQLRepository
from scripts import issue_share_codes, repair_default_lists


def test_issue_share_codes(make_account, capsys):
    accounts = [make_account() for _ in range(3)]
    repo = SQLRepository()

    assert issue_share_codes.main(["--dry-run"]) == 0
    assert all(repo.get_account(a.id).share_code is None for a in accounts)

    assert issue_share_codes.main([]) == 0
    codes = [repo.get_account(a.id).share_code for a in accounts]
    assert all(is_valid_code(code) for code in codes)
    assert len(set(codes)) == 3
    assert "OK: 3 share code(s) issued" in capsys.readouterr().out


def test_repair_default_lists(make_account):
    owner = make_account()
    repo = SQLRepository()
    broken = repo.create_contact(owner.id, "Half done")
    repo.provision_default_lists(broken.id, [CATEGORIES_BY_KEY["meetings"]])

    assert repair_default_lists.main([]) == 0

    fixed = repo.get_contact(broken.id)
    assert fixed.default_tasks_list_id and fixed.default_transactions_list_id
    assert repo.list_contacts_missing_default_lists() == []
