"""Fixed categories provisioned for every contact."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DefaultListCategory:
    key: str  # tasks / meetings / transactions
    list_type: str
    label: str
    color: str
    icon: str

    @property
    def reference_field(self) -> str:
        """Contact column holding the back-reference to this list."""
        return f"default_{self.key}_list_id"

    def display_name(self, contact_name: str) -> str:
        return f"{contact_name} - {self.label}"

    def description(self, contact_name: str) -> str:
        return f"Default {self.label.lower()} list for {contact_name}"


DEFAULT_LIST_CATEGORIES: tuple[DefaultListCategory, ...] = (
    DefaultListCategory("tasks", "task", "Tasks", "#3B82F6", "✓"),
    DefaultListCategory("meetings", "meeting", "Meetings", "#10B981", "\U0001F4C5"),
    DefaultListCategory("transactions", "transaction", "Transactions", "#F59E0B", "\U0001F4B0"),
)

CATEGORIES_BY_KEY = {category.key: category for category in DEFAULT_LIST_CATEGORIES}
CATEGORIES_BY_TYPE = {category.list_type: category for category in DEFAULT_LIST_CATEGORIES}


def category_for(key_or_type: str | None) -> DefaultListCategory | None:
    """Accept either the plural key (``tasks``) or the list type (``task``)."""
    value = (key_or_type or "").strip().lower()
    return CATEGORIES_BY_KEY.get(value) or CATEGORIES_BY_TYPE.get(value)
