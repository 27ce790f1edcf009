from showrunner.access import expense_submitter
from showrunner.errors import ValidationError
from showrunner.models import BudgetItem, Expense, StoreState
from showrunner.operations._registry import register
from showrunner.operations._state import get_tour, financials_of, patch_financials
from showrunner.utils import (
    build,
    field_names,
    find_by_id,
    new_id,
    remove_by_id,
    replace_by_id,
    shallow_merge,
    today_iso,
)


@register(access=expense_submitter, actor="submitted_by_id")
def save_expense(
    state: StoreState, tour_id: str, data: dict, submitted_by_id: str
) -> StoreState:
    """
    Files a new pending expense, or edits the expense whose id is in `data`.

    Args:
        state: Current snapshot.
        tour_id: Owning tour.
        data: Description, amount, date, category and optional receipt URL.
        submitted_by_id: The acting user; recorded on new expenses only, an
            edit keeps the original submitter.
    """
    data = field_names(Expense, data)
    amount = data.get("amount")
    if (
        not (data.get("description") or "").strip()
        or not (data.get("category") or "").strip()
        or amount in (None, "")
    ):
        raise ValidationError("Please fill out description, amount, and category.")
    try:
        data["amount"] = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number.")

    expense_id = data.get("id")
    if expense_id:
        financials = financials_of(get_tour(state, tour_id))
        if find_by_id(financials.expenses, expense_id) is None:
            return state
        data = {
            k: v for k, v in data.items() if k not in ("submitted_by_id", "status")
        }
        return patch_financials(
            state,
            tour_id,
            lambda f: {
                "expenses": replace_by_id(
                    f.expenses, expense_id, lambda e: shallow_merge(e, data)
                )
            },
        )

    expense = build(
        Expense,
        {
            "date": today_iso(),
            **data,
            "id": new_id("exp"),
            "submitted_by_id": submitted_by_id,
            "status": "pending",
        },
    )
    return patch_financials(
        state, tour_id, lambda f: {"expenses": [*f.expenses, expense]}
    )


@register(
    access=expense_submitter, confirm="Are you sure you want to delete this expense?"
)
def delete_expense(state: StoreState, tour_id: str, expense_id: str) -> StoreState:
    return patch_financials(
        state, tour_id, lambda f: {"expenses": remove_by_id(f.expenses, expense_id)}
    )


@register()
def update_expense_status(
    state: StoreState,
    tour_id: str,
    expense_id: str,
    status: str,
    rejection_reason: str | None = None,
) -> StoreState:
    """Approves or rejects an expense; the reason is kept only on rejection."""
    if status not in ("approved", "rejected"):
        raise ValidationError(f"Unknown expense status {status!r}.")
    patch = {
        "status": status,
        "rejection_reason": rejection_reason if status == "rejected" else None,
    }
    return patch_financials(
        state,
        tour_id,
        lambda f: {
            "expenses": replace_by_id(
                f.expenses, expense_id, lambda e: shallow_merge(e, patch)
            )
        },
    )


def append_budget_items(state: StoreState, tour_id: str, items) -> StoreState:
    """Appends suggested budget lines, each with a fresh id."""
    new_items = [
        BudgetItem(id=new_id("budget"), category=item.category, amount=item.amount)
        for item in items
    ]
    if not new_items:
        return state
    return patch_financials(
        state, tour_id, lambda f: {"budget": [*f.budget, *new_items]}
    )
