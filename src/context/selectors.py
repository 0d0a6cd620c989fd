"""
src/context/selectors.py
"""


from collections import OrderedDict
from decimal import Decimal
from typing import List, Optional
from rapidfuzz import fuzz, process
from .loader import Workspace
from .models import Category, Expense, ExpenseStatus, ExpenseSummary, User


NAME_MATCH_CUTOFF = 80


def _resolve_name(query: str, names: List[str]) -> Optional[str]:
    """
    Map a loose label ("meal", "submitted ") onto one of `names`.
    Exact case-insensitive hits win; otherwise the best fuzzy match above the cutoff.
    """

    q = (query or "").strip().lower()

    if not q:
        return None
    for name in names:
        if name.lower() == q:
            return name

    match = process.extractOne(q, names, scorer=fuzz.WRatio, processor=str.lower, score_cutoff=NAME_MATCH_CUTOFF)

    if not match:
        return None

    name, _score, _idx = match

    return name

def resolve_status_name(ws: Workspace, query: str) -> Optional[str]:

    return _resolve_name(query, [s.status_name for s in ws.statuses])

def resolve_category_name(ws: Workspace, query: str) -> Optional[str]:

    return _resolve_name(query, [c.category_name for c in ws.categories])

def get_status_by_name(ws: Workspace, name: str) -> Optional[ExpenseStatus]:

    return next((s for s in ws.statuses if s.status_name == name), None)

def get_category_by_id(ws: Workspace, category_id: int) -> Optional[Category]:

    return next((c for c in ws.categories if c.category_id == category_id), None)

def get_user_by_id(ws: Workspace, user_id: int) -> Optional[User]:

    return next((u for u in ws.users if u.user_id == user_id), None)

def get_expense_by_id(ws: Workspace, expense_id: int) -> Optional[Expense]:

    return next((e for e in ws.expenses if e.expense_id == expense_id), None)

def filter_expenses(
        ws: Workspace,
        *,
        status_name: Optional[str] = None,
        category_name: Optional[str] = None,
        user_id: Optional[int] = None,
) -> List[Expense]:
    """Expenses matching all given (already resolved) filters, newest first."""

    out = [
        e for e in ws.expenses
        if (status_name is None or e.status_name == status_name)
        and (category_name is None or e.category_name == category_name)
        and (user_id is None or e.user_id == user_id)
    ]
    out.sort(key=lambda e: (e.expense_date, e.expense_id), reverse=True)

    return out

def summarise_by_status(ws: Workspace, user_id: Optional[int] = None) -> List[ExpenseSummary]:
    """Count and total per status, in status order; statuses with no expenses are omitted."""

    buckets: "OrderedDict[str, List[Expense]]" = OrderedDict(
        (s.status_name, []) for s in sorted(ws.statuses, key=lambda s: s.status_id)
    )

    for e in ws.expenses:
        if user_id is not None and e.user_id != user_id:
            continue
        buckets.setdefault(e.status_name, []).append(e)

    return [
        ExpenseSummary(
            status_name=name,
            expense_count=len(items),
            total_amount=sum((e.amount for e in items), Decimal("0")),
        )
        for name, items in buckets.items() if items
    ]
