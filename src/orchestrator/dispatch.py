"""
src/orchestrator/dispatch.py

Tool execution bridge: decode the model's arguments, call the expense repository,
and project the result into a small, stable JSON payload.

Nothing raised in here escapes `execute()`; every failure becomes a ToolOutcome
that is handed back to the model.
"""


import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from config import DEFAULT_REVIEWER_ID, DEFAULT_USER_ID
from context.models import Category, Expense, ExpenseCreateRequest, ExpenseSummary
from orchestrator import registry
from orchestrator.models import ToolOutcome
from tools.expenses import ExpenseRepository


logger = logging.getLogger(__name__)


# -------- Projections ----------------------------------------------------------


def _expense_view(e: Expense, *, with_status: bool = True) -> Dict[str, Any]:

    view = {
        "expenseId": e.expense_id,
        "userName": e.user_name,
        "categoryName": e.category_name,
        "amount": float(e.amount),
        "currency": e.currency,
        "expenseDate": e.expense_date.isoformat(),
        "description": e.description,
    }
    if with_status:
        view["statusName"] = e.status_name

    return view

def _summary_view(s: ExpenseSummary) -> Dict[str, Any]:

    return {"statusName": s.status_name, "expenseCount": s.expense_count, "totalAmount": float(s.total_amount)}

def _category_view(c: Category) -> Dict[str, Any]:

    return {"categoryId": c.category_id, "categoryName": c.category_name, "isActive": c.is_active}

def _format_validation_error(exc: ValidationError) -> str:

    parts = []

    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")

    return "; ".join(parts)


# -------- Dispatcher -----------------------------------------------------------


class ToolDispatcher:
    """Executes catalog tools against an ExpenseRepository."""

    def __init__(
            self,
            repository: ExpenseRepository,
            *,
            user_id: int = DEFAULT_USER_ID,
            reviewer_id: int = DEFAULT_REVIEWER_ID,
    ):

        self.repository = repository
        self.user_id = user_id
        self.reviewer_id = reviewer_id
        self._handlers: Dict[str, Callable[[Any], Awaitable[ToolOutcome]]] = {
            "get_expenses": self._get_expenses,
            "get_pending_expenses": self._get_pending_expenses,
            "get_expense_summary": self._get_expense_summary,
            "get_categories": self._get_categories,
            "create_expense": self._create_expense,
            "approve_expense": self._approve_expense,
            "reject_expense": self._reject_expense,
        }

    async def execute(self, name: str, raw_arguments: Union[str, Dict[str, Any], None]) -> ToolOutcome:
        """Run one tool call. Never raises (cancellation aside)."""

        handler = self._handlers.get(name)
        model = registry.get_argument_model(name)

        if handler is None or model is None:
            logger.warning("Model requested unknown tool %r", name)
            return ToolOutcome.failed(f"Unknown function: {name}")

        try:
            payload = self._decode(raw_arguments)
            args = model.model_validate(payload)
        except json.JSONDecodeError as e:
            return ToolOutcome.failed(f"Invalid JSON arguments for {name}: {e.msg}")
        except RecursionError:
            return ToolOutcome.failed(f"Invalid JSON arguments for {name}: nested too deeply")
        except ValidationError as e:
            return ToolOutcome.failed(f"Invalid arguments for {name}: {_format_validation_error(e)}")
        except ValueError as e:
            return ToolOutcome.failed(f"Invalid arguments for {name}: {e}")

        logger.info("Executing tool %s", name)

        try:
            outcome = await handler(args)
        except Exception as e:
            logger.exception("Error executing function %s", name)
            return ToolOutcome.failed(str(e) or e.__class__.__name__)

        if not outcome.ok:
            logger.warning("Tool %s failed: %s", name, outcome.payload)

        return outcome

    @staticmethod
    def _decode(raw_arguments: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:

        if raw_arguments is None:
            return {}
        if isinstance(raw_arguments, dict):
            return raw_arguments
        if not isinstance(raw_arguments, str):
            raise ValueError(f"expected a JSON object, got {type(raw_arguments).__name__}")

        text = raw_arguments.strip()
        data = json.loads(text) if text else {}

        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")

        return data

    # Handlers

    async def _get_expenses(self, args: registry.ExpenseFilterArguments) -> ToolOutcome:

        expenses, error = await self.repository.list_expenses(args.status_filter, args.category_filter)

        return self._listing(expenses, error, lambda e: _expense_view(e))

    async def _get_pending_expenses(self, args: registry.NoArguments) -> ToolOutcome:

        pending, error = await self.repository.list_pending_expenses()

        return self._listing(pending, error, lambda e: _expense_view(e, with_status=False))

    async def _get_expense_summary(self, args: registry.NoArguments) -> ToolOutcome:

        summary, error = await self.repository.expense_summary()

        return self._listing(summary, error, _summary_view)

    async def _get_categories(self, args: registry.NoArguments) -> ToolOutcome:

        categories, error = await self.repository.list_categories()

        return self._listing(categories, error, _category_view)

    async def _create_expense(self, args: registry.CreateExpenseArguments) -> ToolOutcome:

        request = ExpenseCreateRequest(
            user_id=self.user_id,
            category_id=args.category_id,
            amount=args.amount,
            expense_date=args.expense_date,
            description=args.description,
        )
        expense_id, error = await self.repository.create_expense(request)

        if error is not None:
            return ToolOutcome.failed(error)

        return ToolOutcome.succeeded({"success": True, "expenseId": expense_id})

    async def _approve_expense(self, args: registry.ExpenseIdArguments) -> ToolOutcome:

        ok, error = await self.repository.approve_expense(args.expense_id, self.reviewer_id)

        return self._status_change(ok, error)

    async def _reject_expense(self, args: registry.ExpenseIdArguments) -> ToolOutcome:

        ok, error = await self.repository.reject_expense(args.expense_id, self.reviewer_id)

        return self._status_change(ok, error)

    @staticmethod
    def _listing(items: Optional[List[Any]], error: Optional[str], project: Callable[[Any], Dict[str, Any]]) -> ToolOutcome:

        if error is not None:
            return ToolOutcome.failed(error)

        return ToolOutcome.succeeded([project(i) for i in items or []])

    @staticmethod
    def _status_change(ok: bool, error: Optional[str]) -> ToolOutcome:

        if error is not None or not ok:
            return ToolOutcome.failed(error or "The expense could not be updated.")

        return ToolOutcome.succeeded({"success": True, "error": None})
