"""
src/tools/permissions.py — minimal role-based access control (RBAC)

Permissions are granted to roles ("Manager"), not to people. The expense
repository checks the acting user's role before state changes that need it.

Usage:
    from tools.permissions import has_permission
    if not has_permission(reviewer.role_name, "approve_expense"):
        return False, "Reviewer is not allowed to approve expenses."
"""


from typing import Literal


Role = Literal["Employee", "Manager", "Admin"]

# Minimal default
ACTION_MATRIX = {
    "create_expense": {"Employee", "Manager", "Admin"},
    "submit_expense": {"Employee", "Manager", "Admin"},
    "approve_expense": {"Manager", "Admin"},
    "reject_expense": {"Manager", "Admin"},
}


def has_permission(user_role: Role, action: str) -> bool:
    """
    Return True if the given role is allowed to perform `action`.

    Args:
        user_role: One of "Employee" | "Manager" | "Admin".
        action: The action string to check, e.g., "approve_expense".
    """

    allowed = ACTION_MATRIX.get(action, set())

    return user_role in allowed
