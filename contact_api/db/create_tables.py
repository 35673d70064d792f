"""Create the schema for every model registered on ``Base``."""
from __future__ import annotations

from .session import Base, get_engine
from . import models  # noqa: F401  # registers the tables on Base.metadata


def create_all() -> None:
    """Create missing tables; existing ones are left untouched."""
    Base.metadata.create_all(bind=get_engine())
