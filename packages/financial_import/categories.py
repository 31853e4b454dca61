"""Category domain helpers: system categories, defaults and validation.

System categories
-----------------
``Uncategorized``, ``Excluded`` and ``Income`` always exist and cannot be
deleted by users. ``Uncategorized`` and ``Excluded`` never take part in
keyword matching; ``Income`` does, so salary deposits are auto-assigned.

Exports
-------
- ``matchable_categories(...)``: the subset of a snapshot used for matching.
- ``find_system_category(...)``: look up a system category by name.
- ``normalize_name(...)``/``validate_name(...)`` and ``validate_keywords(...)``:
  checks applied before a category definition is written.
- ``SYSTEM_CATEGORY_DEFS``/``DEFAULT_CATEGORY_DEFS``: seed data.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TypedDict

from .models import Category

UNCATEGORIZED = "Uncategorized"
EXCLUDED = "Excluded"
INCOME = "Income"

SYSTEM_CATEGORIES: tuple[str, ...] = (UNCATEGORIZED, EXCLUDED, INCOME)

MAX_NAME_LENGTH = 50
MAX_KEYWORD_LENGTH = 100


class CategoryDef(TypedDict):
    name: str
    keywords: list[str]
    is_system: bool


SYSTEM_CATEGORY_DEFS: tuple[CategoryDef, ...] = (
    {"name": UNCATEGORIZED, "keywords": [], "is_system": True},
    {"name": EXCLUDED, "keywords": [], "is_system": True},
    {
        "name": INCOME,
        "keywords": ["SALARY", "PAYROLL", "DEPOSIT", "DIRECT DEP", "E-TRANSFER IN"],
        "is_system": True,
    },
)

DEFAULT_CATEGORY_DEFS: tuple[CategoryDef, ...] = (
    {
        "name": "Groceries",
        "keywords": ["LOBLAWS", "METRO", "SOBEYS", "FARM BOY", "WALMART", "COSTCO"],
        "is_system": False,
    },
    {
        "name": "Dining & Restaurants",
        "keywords": ["RESTAURANT", "MCDONALD", "TIM HORTONS", "STARBUCKS", "SUBWAY", "PIZZA"],
        "is_system": False,
    },
    {
        "name": "Gas & Transportation",
        "keywords": ["SHELL", "ESSO", "PETRO", "CANADIAN TIRE GAS", "UBER", "LYFT", "PRESTO"],
        "is_system": False,
    },
    {
        "name": "Subscriptions",
        "keywords": ["NETFLIX", "SPOTIFY", "DISNEY", "AMAZON PRIME", "APPLE.COM", "GOOGLE"],
        "is_system": False,
    },
    {
        "name": "Shopping",
        "keywords": ["AMAZON", "AMZN MKTP", "BEST BUY", "HOME DEPOT", "IKEA"],
        "is_system": False,
    },
    {
        "name": "Utilities & Bills",
        "keywords": ["ROGERS", "BELL", "TELUS", "HYDRO", "ENBRIDGE", "INSURANCE"],
        "is_system": False,
    },
    {
        "name": "Healthcare",
        "keywords": ["PHARMACY", "SHOPPERS", "REXALL", "MEDICAL", "DENTAL", "CLINIC"],
        "is_system": False,
    },
)


# ---------------------------
# Snapshot helpers
# ---------------------------


def matchable_categories(categories: Iterable[Category]) -> list[Category]:
    """Return categories eligible for keyword matching, preserving order.

    Non-system categories are always eligible; among system categories only
    ``Income`` is.
    """

    return [c for c in categories if not c.is_system or c.name == INCOME]


def default_categories() -> list[Category]:
    """In-memory snapshot of the seed categories, keyed by name.

    Used when no database is configured; ids equal the category names.
    """

    return [
        Category(
            id=d["name"],
            name=d["name"],
            keywords=tuple(d["keywords"]),
            is_system=d["is_system"],
            order=i,
        )
        for i, d in enumerate((*SYSTEM_CATEGORY_DEFS, *DEFAULT_CATEGORY_DEFS))
    ]


def find_system_category(categories: Iterable[Category], name: str) -> Category | None:
    for c in categories:
        if c.is_system and c.name == name:
            return c
    return None


# ---------------------------
# Name/keyword normalization and validation
# ---------------------------


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``."""

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(
    name: str,
    *,
    existing: Iterable[str] = (),
    max_len: int = MAX_NAME_LENGTH,
) -> NameValidation:
    """Validate a category name before it is stored.

    Rules
    -----
    - Trimmed name must be non-empty and at most ``max_len`` characters.
    - Must not collide (case-insensitively) with a name in ``existing``.
    """

    n = normalize_name(name)
    if not n:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    lowered = n.lower()
    if any(normalize_name(e).lower() == lowered for e in existing):
        return NameValidation(False, f"Category '{n}' already exists")
    return NameValidation(True, None)


def validate_keywords(keywords: Sequence[str], *, max_len: int = MAX_KEYWORD_LENGTH) -> list[str]:
    """Return trimmed, non-blank keywords; raise ``ValueError`` on overlong ones."""

    cleaned: list[str] = []
    for kw in keywords:
        k = kw.strip()
        if not k:
            continue
        if len(k) > max_len:
            raise ValueError(f"Keyword must be at most {max_len} characters: {k[:20]!r}...")
        cleaned.append(k)
    return cleaned


__all__ = [
    "DEFAULT_CATEGORY_DEFS",
    "EXCLUDED",
    "INCOME",
    "MAX_KEYWORD_LENGTH",
    "MAX_NAME_LENGTH",
    "SYSTEM_CATEGORIES",
    "SYSTEM_CATEGORY_DEFS",
    "UNCATEGORIZED",
    "CategoryDef",
    "NameValidation",
    "default_categories",
    "find_system_category",
    "matchable_categories",
    "normalize_name",
    "validate_keywords",
    "validate_name",
]
