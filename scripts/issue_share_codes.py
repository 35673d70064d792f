#!/usr/bin/env python3
"""
Assign share codes to active accounts that do not have one yet.

Usage:
  python -m scripts.issue_share_codes [--limit 500] [--dry-run]
"""
from __future__ import annotations

import argparse
import sys

from contact_api.repositories.sql_repository import SQLRepository
from contact_api.services.share_service import CodeSpaceExhaustedError, ShareService


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Issue share codes to accounts without one")
    ap.add_argument("--limit", type=int, default=None, help="Maximum number of accounts to process")
    ap.add_argument("--dry-run", action="store_true", help="Only list the accounts that would get a code")
    args = ap.parse_args(argv)

    repo = SQLRepository()
    service = ShareService(repository=repo)
    pending = repo.list_accounts_without_share_code(limit=args.limit)
    if not pending:
        print("OK: every active account already has a share code")
        return 0

    issued = 0
    for account in pending:
        if args.dry_run:
            print(f"  would issue: {account.email}")
            continue
        try:
            code = service.ensure_share_code(account)
        except CodeSpaceExhaustedError as exc:
            sys.stderr.write(f"Error: {account.email}: {exc}\n")
            return 1
        issued += 1
        print(f"  {account.email}: {code}")
    if not args.dry_run:
        print(f"OK: {issued} share code(s) issued")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
