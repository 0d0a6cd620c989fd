"""
src/tools/expenses.py — expense repository (the data operations the assistant calls)

Provides:
- ExpenseRepository: the async contract every backing store implements.
  Each operation returns a (result, error) pair; a non-None error means the
  operation did not complete as requested.
- WorkspaceExpenseRepository: in-memory implementation over a seeded Workspace.

Design notes:
* Session-only: writes go to the in-memory Workspace, not disk.
* Lifecycle: Draft -> Submitted -> Approved | Rejected. New expenses start as Draft.
* RBAC: only Manager/Admin reviewers may approve or reject (see permissions.py).
* Domain failures come back as errors, never as exceptions.
"""


from __future__ import annotations
import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from context import selectors
from context.loader import Workspace
from context.models import Category, Expense, ExpenseCreateRequest, ExpenseStatus, ExpenseSummary, User
from tools.permissions import has_permission


logger = logging.getLogger(__name__)

DRAFT = "Draft"
SUBMITTED = "Submitted"
APPROVED = "Approved"
REJECTED = "Rejected"


# --- Contract ------------------------------------------------------------------
class ExpenseRepository(Protocol):

    async def list_expenses(
            self,
            status_filter: Optional[str] = None,
            category_filter: Optional[str] = None,
            user_id: Optional[int] = None,
    ) -> Tuple[List[Expense], Optional[str]]: ...

    async def list_pending_expenses(self, category_filter: Optional[str] = None) -> Tuple[List[Expense], Optional[str]]: ...

    async def expense_summary(self, user_id: Optional[int] = None) -> Tuple[List[ExpenseSummary], Optional[str]]: ...

    async def list_categories(self) -> Tuple[List[Category], Optional[str]]: ...

    async def create_expense(self, request: ExpenseCreateRequest) -> Tuple[int, Optional[str]]: ...

    async def approve_expense(self, expense_id: int, reviewer_id: int) -> Tuple[bool, Optional[str]]: ...

    async def reject_expense(self, expense_id: int, reviewer_id: int) -> Tuple[bool, Optional[str]]: ...


def _error(operation: str, reason: str) -> str:

    return f"{operation} failed: {reason}"


# --- In-memory implementation --------------------------------------------------
class WorkspaceExpenseRepository:
    """ExpenseRepository backed by a Workspace held in memory for the session."""

    def __init__(self, ws: Workspace):

        self._ws = ws
        self._lock = asyncio.Lock()

    @property
    def workspace(self) -> Workspace:

        return self._ws

    # Reads

    async def list_expenses(
            self,
            status_filter: Optional[str] = None,
            category_filter: Optional[str] = None,
            user_id: Optional[int] = None,
    ) -> Tuple[List[Expense], Optional[str]]:
        """
        List expenses, newest first.

        Filters are loose labels ("meal", "approved"); a filter that matches no
        known status/category yields an empty list rather than an error.
        """

        status_name = category_name = None

        if status_filter:
            status_name = selectors.resolve_status_name(self._ws, status_filter)
            if status_name is None:
                return [], None
        if category_filter:
            category_name = selectors.resolve_category_name(self._ws, category_filter)
            if category_name is None:
                return [], None

        return selectors.filter_expenses(
            self._ws, status_name=status_name, category_name=category_name, user_id=user_id
        ), None

    async def list_pending_expenses(self, category_filter: Optional[str] = None) -> Tuple[List[Expense], Optional[str]]:

        return await self.list_expenses(status_filter=SUBMITTED, category_filter=category_filter)

    async def expense_summary(self, user_id: Optional[int] = None) -> Tuple[List[ExpenseSummary], Optional[str]]:

        return selectors.summarise_by_status(self._ws, user_id=user_id), None

    async def list_categories(self) -> Tuple[List[Category], Optional[str]]:

        return [c for c in self._ws.categories if c.is_active], None

    async def list_statuses(self) -> Tuple[List[ExpenseStatus], Optional[str]]:

        return sorted(self._ws.statuses, key=lambda s: s.status_id), None

    async def list_users(self) -> Tuple[List[User], Optional[str]]:

        return [u for u in self._ws.users if u.is_active], None

    async def get_user(self, user_id: int) -> Tuple[Optional[User], Optional[str]]:

        return selectors.get_user_by_id(self._ws, user_id), None

    async def get_expense(self, expense_id: int) -> Tuple[Optional[Expense], Optional[str]]:

        return selectors.get_expense_by_id(self._ws, expense_id), None

    # Writes

    async def create_expense(self, request: ExpenseCreateRequest) -> Tuple[int, Optional[str]]:
        """
        Record a new Draft expense.

        Returns:
            (new expense id, None) on success, (0, error) otherwise.
        """

        op = "create_expense"

        if request.amount <= 0:
            return 0, _error(op, "amount must be positive")

        async with self._lock:
            user = selectors.get_user_by_id(self._ws, request.user_id)
            if user is None or not user.is_active:
                return 0, _error(op, f"user {request.user_id} not found")
            if not has_permission(user.role_name, op):
                return 0, _error(op, f"user {user.user_name} may not create expenses")

            category = selectors.get_category_by_id(self._ws, request.category_id)
            if category is None or not category.is_active:
                return 0, _error(op, f"category {request.category_id} not found")

            status = self._status(DRAFT)
            expense_id = max((e.expense_id for e in self._ws.expenses), default=0) + 1
            description = request.description.strip() if request.description else None

            self._ws.expenses.append(Expense(
                expense_id=expense_id,
                user_id=user.user_id,
                user_name=user.user_name,
                category_id=category.category_id,
                category_name=category.category_name,
                status_id=status.status_id,
                status_name=status.status_name,
                amount=request.amount,
                expense_date=request.expense_date,
                description=description or None,
            ))

        logger.info("Created expense %s for user %s", expense_id, user.user_id)

        return expense_id, None

    async def submit_expense(self, expense_id: int) -> Tuple[bool, Optional[str]]:

        op = "submit_expense"

        async with self._lock:
            expense = selectors.get_expense_by_id(self._ws, expense_id)
            if expense is None:
                return False, _error(op, f"expense {expense_id} not found")
            if expense.status_name != DRAFT:
                return False, _error(op, f"expense {expense_id} is {expense.status_name}, not {DRAFT}")

            self._set_status(expense, SUBMITTED)
            expense.submitted_at = datetime.now()

        return True, None

    async def approve_expense(self, expense_id: int, reviewer_id: int) -> Tuple[bool, Optional[str]]:

        return await self._review(expense_id, reviewer_id, "approve_expense", APPROVED)

    async def reject_expense(self, expense_id: int, reviewer_id: int) -> Tuple[bool, Optional[str]]:

        return await self._review(expense_id, reviewer_id, "reject_expense", REJECTED)

    # Helpers

    async def _review(self, expense_id: int, reviewer_id: int, op: str, new_status: str) -> Tuple[bool, Optional[str]]:

        async with self._lock:
            reviewer = selectors.get_user_by_id(self._ws, reviewer_id)
            if reviewer is None or not reviewer.is_active:
                return False, _error(op, f"reviewer {reviewer_id} not found")
            if not has_permission(reviewer.role_name, op):
                return False, _error(op, f"{reviewer.user_name} ({reviewer.role_name}) may not review expenses")

            expense = selectors.get_expense_by_id(self._ws, expense_id)
            if expense is None:
                return False, _error(op, f"expense {expense_id} not found")
            if expense.status_name != SUBMITTED:
                return False, _error(op, f"expense {expense_id} is {expense.status_name}, not {SUBMITTED}")

            self._set_status(expense, new_status)
            expense.reviewed_by = reviewer.user_id
            expense.reviewer_name = reviewer.user_name
            expense.reviewed_at = datetime.now()

        logger.info("Expense %s %s by user %s", expense_id, new_status.lower(), reviewer_id)

        return True, None

    def _status(self, name: str) -> ExpenseStatus:

        status = selectors.get_status_by_name(self._ws, name)

        if status is None:
            raise RuntimeError(f"Workspace has no '{name}' status.")

        return status

    def _set_status(self, expense: Expense, name: str) -> None:

        status = self._status(name)
        expense.status_id = status.status_id
        expense.status_name = status.status_name
