"""Category catalog.

The closed set of spending categories.  Each member's name is the canonical
key stored on a transaction and its value is the display label.  Stored
strings are resolved with :meth:`Category.parse`, which is the only place
that knows about case-insensitive matching and the ``OTHER`` fallback.
"""

from __future__ import annotations

from enum import Enum

# Chart axis labels longer than this are truncated.
CHART_LABEL_MAX = 10


class Category(Enum):
    STAFF = "Staff"
    TRAVEL = "Travel"
    FOOD = "Food"
    UTILITY = "Utility"
    HOUSING = "Housing"
    TRANSPORTATION = "Transportation"
    HEALTHCARE = "Healthcare"
    PERSONAL_CARE = "Personal Care"
    EDUCATION = "Education"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    INSURANCE = "Insurance"
    DEBT_PAYMENT = "Debt Payment"
    SAVINGS_INVESTMENTS = "Savings & Investments"
    CHILDCARE = "Childcare"
    PETS = "Pets"
    TAXES = "Taxes"
    GIFTS_DONATIONS = "Gifts & Donations"
    SUBSCRIPTIONS = "Subscriptions"
    MISCELLANEOUS = "Miscellaneous"
    OTHER = "Other"

    @property
    def key(self) -> str:
        """Canonical identifier persisted with each transaction."""
        return self.name

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def short_label(self) -> str:
        """Display name shortened for chart axes."""
        name = self.display_name
        if len(name) <= CHART_LABEL_MAX:
            return name
        return name[: CHART_LABEL_MAX - 1].rstrip() + "."

    @classmethod
    def parse(cls, raw: str | None) -> Category:
        """Resolve a stored category string to a catalog member.

        Matching is case-insensitive against the canonical keys and ignores
        surrounding whitespace.  Anything that does not match, including
        ``None`` and the empty string, resolves to :attr:`OTHER`.
        """
        if not raw:
            return cls.OTHER
        return cls.__members__.get(raw.strip().upper(), cls.OTHER)


def category_keys() -> list[str]:
    """All canonical keys in catalog order (for CLI choices and prompts)."""
    return [c.key for c in Category]
