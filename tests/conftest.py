"""Pytest configuration shared by the suite.

The workspace roots (``packages/``, ``libs/db/src`` and the repo root for
``tests.helpers``) are put on the import path by the ``pythonpath`` setting in
``pyproject.toml``. This module provides the category snapshot fixture.
"""

from __future__ import annotations

import pytest

from financial_import.models import Category


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category(id="uncat", name="Uncategorized", is_system=True, order=0),
        Category(id="excl", name="Excluded", is_system=True, order=1),
        Category(
            id="income", name="Income", keywords=["PAYROLL", "SALARY"], is_system=True, order=2
        ),
        Category(id="groc", name="Groceries", keywords=["LOBLAWS", "COSTCO"], order=3),
        Category(id="dining", name="Dining", keywords=["TIM HORTONS", "STARBUCKS"], order=4),
        Category(id="shop", name="Shopping", keywords=["AMAZON"], order=5),
        Category(id="subs", name="Subscriptions", keywords=["AMAZON PRIME", "NETFLIX"], order=6),
    ]
