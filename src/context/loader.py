"""
src/context/loader.py
"""


import json
from pathlib import Path
from typing import Any, Dict

from config import DEFAULT_WORKSPACE_PATH
from context.models import Category, Expense, ExpenseStatus, User


class Workspace:
    """In-memory copy of the seed data; the demo repository mutates it for the session."""

    def __init__(self, data: Dict[str, Any]):

        self.users = [User(**u) for u in data.get("users", [])]
        self.categories = [Category(**c) for c in data.get("categories", [])]
        self.statuses = [ExpenseStatus(**s) for s in data.get("statuses", [])]
        self.expenses = [Expense(**e) for e in data.get("expenses", [])]

        self._fill_names()

    def _fill_names(self) -> None:
        """Backfill display names the seed left out, from the lookup tables."""

        users = {u.user_id: u.user_name for u in self.users}
        categories = {c.category_id: c.category_name for c in self.categories}
        statuses = {s.status_id: s.status_name for s in self.statuses}

        for e in self.expenses:
            e.user_name = e.user_name or users.get(e.user_id, "")
            e.category_name = e.category_name or categories.get(e.category_id, "")
            e.status_name = e.status_name or statuses.get(e.status_id, "")
            if e.reviewed_by is not None and not e.reviewer_name:
                e.reviewer_name = users.get(e.reviewed_by)


def load_workspace(path: Path = DEFAULT_WORKSPACE_PATH) -> Workspace:

    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Workspace file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    # Sanity checks
    required = ["users", "categories", "statuses", "expenses"]

    for key in required:
        if key not in data:
            raise ValueError(f"workspace.json missing '{key}'")

    return Workspace(data)
