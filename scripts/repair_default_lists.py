#!/usr/bin/env python3
"""
Provision the missing default lists (tasks, meetings, transactions) of contacts
left half-provisioned by an interrupted creation.

Usage:
  python -m scripts.repair_default_lists [--limit 500] [--contact <id>]
"""
from __future__ import annotations

import argparse
import sys

from contact_api.repositories.sql_repository import SQLRepository
from contact_api.services.contact_service import DefaultListManager


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Repair contacts with missing default lists")
    ap.add_argument("--limit", type=int, default=None, help="Maximum number of contacts to process")
    ap.add_argument("--contact", help="Repair a single contact by id")
    args = ap.parse_args(argv)

    repo = SQLRepository()
    manager = DefaultListManager(repository=repo)
    if args.contact:
        contact = repo.get_contact(args.contact)
        if contact is None:
            raise SystemExit(f"Contact '{args.contact}' not found")
        targets = [contact]
    else:
        targets = repo.list_contacts_missing_default_lists(limit=args.limit)

    repaired = 0
    for contact in targets:
        manager.ensure_default_lists(contact)
        repaired += 1
        print(f"  {contact.id} ({contact.name})")
    print(f"OK: {repaired} contact(s) checked")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
