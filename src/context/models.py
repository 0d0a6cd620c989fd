"""
src/context/models.py

Pydantic models for the expense domain (what the repository stores and returns).
"""


from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class Category(BaseModel):

    category_id: int
    category_name: str
    is_active: bool = True


class ExpenseStatus(BaseModel):

    status_id: int
    status_name: str


class User(BaseModel):

    user_id: int
    user_name: str
    email: str
    role_name: str = "Employee"
    manager_id: Optional[int] = None
    is_active: bool = True


class Expense(BaseModel):

    expense_id: int
    user_id: int
    user_name: str = ""
    category_id: int
    category_name: str = ""
    status_id: int
    status_name: str = ""
    amount: Decimal
    currency: str = "GBP"
    expense_date: date
    description: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewer_name: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)


class ExpenseSummary(BaseModel):

    status_name: str
    expense_count: int
    total_amount: Decimal


class ExpenseCreateRequest(BaseModel):

    user_id: int
    category_id: int
    amount: Decimal
    expense_date: date
    description: Optional[str] = None
