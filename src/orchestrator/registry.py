"""
src/orchestrator/registry.py

Tool registry: the fixed catalog of operations the model may call, with the
JSON schemas it sees and the argument models the dispatcher decodes into.
"""


import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Type
from pydantic import BaseModel, ConfigDict, Field, field_validator

from orchestrator.models import ToolDefinition


logger = logging.getLogger(__name__)


# -------- Argument models ------------------------------------------------------


class ToolArguments(BaseModel):

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NoArguments(ToolArguments):
    pass


class ExpenseFilterArguments(ToolArguments):

    status_filter: Optional[str] = Field(default=None, alias="statusFilter")
    category_filter: Optional[str] = Field(default=None, alias="categoryFilter")

    @field_validator("status_filter", "category_filter", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:

        if isinstance(value, str) and not value.strip():
            return None

        return value


class CreateExpenseArguments(ToolArguments):

    category_id: int = Field(alias="categoryId")
    amount: Decimal
    expense_date: date = Field(alias="expenseDate")
    description: Optional[str] = None

    @field_validator("expense_date", mode="before")
    @classmethod
    def _lenient_date(cls, value: Any) -> Any:
        """Unparseable or empty dates become today instead of failing the call."""

        if isinstance(value, date):
            return value
        try:
            return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
        except (TypeError, ValueError):
            logger.warning("Unparseable expenseDate %r; defaulting to today", value)
            return date.today()


class ExpenseIdArguments(ToolArguments):

    expense_id: int = Field(alias="expenseId")


# -------- Catalog --------------------------------------------------------------


def _tool_spec(name: str, description: str, parameters: Dict[str, Any]) -> ToolDefinition:
    """Build a tool definition with an object-typed JSON schema."""

    schema: Dict[str, Any] = {
        "type": "object",
        "properties": parameters.get("properties", {}),
    }
    if parameters.get("required"):
        schema["required"] = list(parameters["required"])

    return ToolDefinition(name=name, description=description, parameters=schema)


_EXPENSE_ID = {"type": "integer", "description": "The ID of the expense"}

TOOL_CATALOG: Tuple[ToolDefinition, ...] = (
    _tool_spec(
        "get_expenses",
        "Retrieves all expenses from the database with optional filters for status and category",
        {
            "properties": {
                "statusFilter": {
                    "type": "string",
                    "description": "Filter by status: Draft, Submitted, Approved, or Rejected"
                },
                "categoryFilter": {
                    "type": "string",
                    "description": "Filter by category: Travel, Meals, Supplies, Accommodation, or Other"
                }
            }
        }
    ),
    _tool_spec(
        "get_pending_expenses",
        "Retrieves all expenses that are pending approval (status = Submitted)",
        {}
    ),
    _tool_spec(
        "get_expense_summary",
        "Gets a summary of expenses grouped by status with counts and totals",
        {}
    ),
    _tool_spec(
        "get_categories",
        "Gets the list of available expense categories",
        {}
    ),
    _tool_spec(
        "create_expense",
        "Creates a new expense record",
        {
            "properties": {
                "categoryId": {
                    "type": "integer",
                    "description": "Category ID (1=Travel, 2=Meals, 3=Supplies, 4=Accommodation, 5=Other)"
                },
                "amount": {"type": "number", "description": "Amount in GBP"},
                "expenseDate": {"type": "string", "description": "Date of expense in YYYY-MM-DD format"},
                "description": {"type": "string", "description": "Description of the expense"}
            },
            "required": ["categoryId", "amount", "expenseDate"]
        }
    ),
    _tool_spec(
        "approve_expense",
        "Approves an expense by its ID",
        {"properties": {"expenseId": dict(_EXPENSE_ID, description="The ID of the expense to approve")},
         "required": ["expenseId"]}
    ),
    _tool_spec(
        "reject_expense",
        "Rejects an expense by its ID",
        {"properties": {"expenseId": dict(_EXPENSE_ID, description="The ID of the expense to reject")},
         "required": ["expenseId"]}
    ),
)

ARGUMENT_MODELS: Dict[str, Type[ToolArguments]] = {
    "get_expenses": ExpenseFilterArguments,
    "get_pending_expenses": NoArguments,
    "get_expense_summary": NoArguments,
    "get_categories": NoArguments,
    "create_expense": CreateExpenseArguments,
    "approve_expense": ExpenseIdArguments,
    "reject_expense": ExpenseIdArguments,
}

_BY_NAME: Dict[str, ToolDefinition] = {t.name: t for t in TOOL_CATALOG}

if len(_BY_NAME) != len(TOOL_CATALOG) or set(_BY_NAME) != set(ARGUMENT_MODELS):
    raise RuntimeError("Tool catalog names must be unique and each needs an argument model.")


def get_catalog() -> List[ToolDefinition]:
    """The full, ordered catalog sent with every model call."""

    return list(TOOL_CATALOG)

def get_tool(name: str) -> Optional[ToolDefinition]:

    return _BY_NAME.get(name)

def get_argument_model(name: str) -> Optional[Type[ToolArguments]]:

    return ARGUMENT_MODELS.get(name)
