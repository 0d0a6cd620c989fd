"""
src/app.py
"""


import logging
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr

from config import DEFAULT_CURRENCY, Settings, configure_logging, format_date, format_money
from context.loader import load_workspace
from context.models import Expense
from orchestrator.router import ChatOrchestrator, build_orchestrator
from tools.expenses import WorkspaceExpenseRepository


logger = logging.getLogger(__name__)

APP_TITLE = "Expense Assistant"
APP_DESC = (
    "Ask things like: "
    "'show my pending expenses', 'what did we spend on travel?' or 'approve expense 2'. "
    "The Expenses tab shows the same data the assistant works with."
)
ALL_STATUSES = "All"
ALL_EMPLOYEES = "Everyone"
ACTION_VERBS = {"submit": "submitted", "approve": "approved", "reject": "rejected"}
EXPENSE_COLUMNS = ["ID", "Date", "Employee", "Category", "Amount", "Status", "Description"]


def expense_rows(expenses: List[Expense]) -> List[List[Any]]:
    """Display rows for the expenses table."""

    return [
        [
            e.expense_id,
            format_date(e.expense_date),
            e.user_name,
            e.category_name,
            format_money(e.amount, DEFAULT_CURRENCY),
            e.status_name,
            e.description or "",
        ]
        for e in expenses
    ]

def build_chat_tab(orchestrator: ChatOrchestrator):
    """
    Chat tab:
    - chatbot (message history, resubmitted on every turn)
    - message textbox + send button
    """

    with gr.Tab("Assistant"):
        chatbot = gr.Chatbot(label="Conversation", type="messages", height=480)
        msg = gr.Textbox(label="Message", placeholder="e.g., list my pending expenses", lines=2)
        send = gr.Button("Send", variant="primary")

    async def respond(message: str, history: Optional[List[Dict[str, Any]]]) -> Tuple[str, List[Dict[str, Any]]]:

        history = list(history or [])
        result = await orchestrator.process_message(message, history)

        if result.error:
            logger.warning("Chat request failed: %s", result.error)
        if message and message.strip():
            history.append({"role": "user", "content": message.strip()})
        history.append({"role": "assistant", "content": result.text})

        return "", history

    send.click(fn=respond, inputs=[msg, chatbot], outputs=[msg, chatbot])
    msg.submit(fn=respond, inputs=[msg, chatbot], outputs=[msg, chatbot])

# ---- Expenses tab helpers ----
async def status_choices(repository: WorkspaceExpenseRepository) -> List[str]:

    statuses, error = await repository.list_statuses()
    if error:
        logger.warning("Could not list statuses: %s", error)

    return [ALL_STATUSES] + [s.status_name for s in statuses]

async def employee_choices(repository: WorkspaceExpenseRepository) -> List[Tuple[str, int]]:
    """(label, user id) pairs for the employee filter; id 0 means everyone."""

    users, error = await repository.list_users()
    if error:
        logger.warning("Could not list users: %s", error)

    return [(ALL_EMPLOYEES, 0)] + [(u.user_name, u.user_id) for u in users]

async def expense_table(repository: WorkspaceExpenseRepository, status: Optional[str], user_id: Optional[int]) -> List[List[Any]]:

    expenses, error = await repository.list_expenses(
        status_filter=None if not status or status == ALL_STATUSES else status,
        user_id=user_id or None,
    )
    if error:
        logger.warning("Could not list expenses: %s", error)

    return expense_rows(expenses)

async def apply_action(
        repository: WorkspaceExpenseRepository,
        action: str,
        raw_id: Optional[float],
        reviewer_id: int,
) -> str:
    """
    Run a lifecycle action from the Expenses tab and return the notice to show.

    action: "submit" (Draft -> Submitted), "approve" or "reject" (as the default reviewer).
    """

    if raw_id is None:
        return "Enter an expense ID first."

    expense_id = int(raw_id)
    verb = ACTION_VERBS[action]

    if action == "submit":
        ok, error = await repository.submit_expense(expense_id)
        by = ""
    else:
        review = repository.approve_expense if action == "approve" else repository.reject_expense
        ok, error = await review(expense_id, reviewer_id)
        reviewer, _ = await repository.get_user(reviewer_id)
        by = f" by {reviewer.user_name}" if reviewer else ""

    if not ok:
        return f"**Not {verb}:** {error}"

    return f"Expense {expense_id} {verb}{by}."

def build_expenses_tab(repository: WorkspaceExpenseRepository, reviewer_id: int):
    """
    Expenses tab:
    - status + employee filters, refresh
    - table of expenses
    - submit a draft, approve / reject by id (as the default reviewer)
    """

    with gr.Tab("Expenses"):
        with gr.Row():
            status_dd = gr.Dropdown(label="Status", choices=[ALL_STATUSES], value=ALL_STATUSES)
            employee_dd = gr.Dropdown(label="Employee", choices=[(ALL_EMPLOYEES, 0)], value=0)
            refresh = gr.Button("Refresh")
        table = gr.Dataframe(headers=EXPENSE_COLUMNS, interactive=False)
        with gr.Row():
            expense_id = gr.Number(label="Expense ID", precision=0)
            submit = gr.Button("Submit")
            approve = gr.Button("Approve", variant="primary")
            reject = gr.Button("Reject", variant="stop")
        notice = gr.Markdown()

    async def load(status: str, user_id: Optional[int]) -> List[List[Any]]:
        return await expense_table(repository, status, user_id)

    async def init(status: str, user_id: Optional[int]):

        statuses = await status_choices(repository)
        employees = await employee_choices(repository)

        return (
            gr.Dropdown(choices=statuses, value=status if status in statuses else ALL_STATUSES),
            gr.Dropdown(choices=employees, value=user_id or 0),
            await load(status, user_id),
        )

    def on(action: str):

        async def handler(status: str, user_id: Optional[int], raw_id: Optional[float]) -> Tuple[str, List[List[Any]]]:
            text = await apply_action(repository, action, raw_id, reviewer_id)
            return text, await load(status, user_id)

        return handler

    filters = [status_dd, employee_dd]

    refresh.click(fn=load, inputs=filters, outputs=[table])
    status_dd.change(fn=load, inputs=filters, outputs=[table])
    employee_dd.change(fn=load, inputs=filters, outputs=[table])
    for button, action in ((submit, "submit"), (approve, "approve"), (reject, "reject")):
        button.click(fn=on(action), inputs=filters + [expense_id], outputs=[notice, table])

    return filters, table, init

def app(settings: Optional[Settings] = None):

    settings = settings or Settings()
    repository = WorkspaceExpenseRepository(load_workspace(settings.workspace_path))
    orchestrator = build_orchestrator(settings, repository)

    with gr.Blocks(title=APP_TITLE) as demo:
        gr.Markdown(f"# {APP_TITLE}")
        gr.Markdown(APP_DESC)

        build_chat_tab(orchestrator)
        filters, table, init = build_expenses_tab(repository, settings.default_reviewer_id)

        demo.load(fn=init, inputs=filters, outputs=filters + [table])

    return demo


if __name__ == "__main__":

    _settings = Settings()
    configure_logging(_settings.log_level)
    app(_settings).launch()

# EOF
