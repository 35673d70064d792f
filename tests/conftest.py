"""
Shared fixtures: every test that touches storage gets a throwaway SQLite file.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the contact_api package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from contact_api.core import config as core_config
from contact_api.core.rate_limiter import reset_limits
from contact_api.db import models
from contact_api.db import session as db_session


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Point DATABASE_URL at a temp SQLite file and tear it down completely afterwards."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    # clear caches so the env is re-read
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
    reset_limits()

    engine = db_session.get_engine()
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    try:
        models.Base.metadata.drop_all(bind=engine)
    except Exception:
        pass
    try:
        engine.dispose()
    except Exception:
        pass
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
    if db_file.exists():
        try:
            db_file.unlink()
        except Exception:
            pass


@pytest.fixture()
def make_account(temp_db):
    """Create accounts straight through the repository (no password hashing cost)."""
    from contact_api.repositories.sql_repository import SQLRepository

    repo = SQLRepository()
    counter = {"n": 0}

    def _make(email: str | None = None, **fields):
        counter["n"] += 1
        return repo.create_account(
            email or f"user{counter['n']}@example.com",
            "argon2$unused",
            full_name=fields.pop("full_name", f"User {counter['n']}"),
            profession_type=fields.pop("profession_type", "salaried"),
            **fields,
        )

    return _make
