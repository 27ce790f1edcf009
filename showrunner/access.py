"""Access control: a global role gate plus a per-event permission list.

Every policy has the signature `policy(state, user, payload) -> bool`, where
`payload` holds the keyword arguments of the operation being checked.
"""

from showrunner.models import MANAGER_ROLE, Person, ScheduleEvent, StoreState
from showrunner.utils import find_by_id


def is_manager(user: Person | None) -> bool:
    """The single role check that unlocks every management write."""
    return user is not None and user.role == MANAGER_ROLE


def event_permission(event: ScheduleEvent, user: Person | None) -> str:
    """
    A user's permission on one event.

    Returns:
        str: "write" or "read"; users without an assignment get "read".
    """
    if user is None:
        return "read"
    for assignment in event.assigned_to:
        if assignment.person_id == user.id:
            return assignment.permission
    return "read"


def can_write_event(event: ScheduleEvent | None, user: Person | None) -> bool:
    return event is not None and event_permission(event, user) == "write"


def can_see_event(event: ScheduleEvent, user: Person | None) -> bool:
    """Managers see every event; everyone else only events they are assigned to."""
    if is_manager(user):
        return True
    return user is not None and any(a.person_id == user.id for a in event.assigned_to)


def can_edit_expense(expense, user: Person | None) -> bool:
    """Managers edit any expense; others only their own pending ones."""
    if is_manager(user):
        return True
    return (
        user is not None
        and expense.submitted_by_id == user.id
        and expense.status == "pending"
    )


def _find_event(state: StoreState, tour_id: str, event_id: str) -> ScheduleEvent | None:
    return find_by_id(state.schedule.get(tour_id, []), event_id)


def _find_expense(state: StoreState, tour_id: str, expense_id: str):
    tour = find_by_id(state.tours, tour_id)
    if tour is None or tour.financials is None:
        return None
    return find_by_id(tour.financials.expenses, expense_id)


# --- policies ----------------------------------------------------------------


def anyone(state: StoreState, user: Person | None, payload: dict) -> bool:
    return True


def signed_in(state: StoreState, user: Person | None, payload: dict) -> bool:
    return user is not None


def manager(state: StoreState, user: Person | None, payload: dict) -> bool:
    return is_manager(user)


def event_writer(state: StoreState, user: Person | None, payload: dict) -> bool:
    """Signed in, and `write` on the event named by the payload."""
    event = _find_event(state, payload.get("tour_id"), payload.get("event_id"))
    return signed_in(state, user, payload) and can_write_event(event, user)


def events_writer(state: StoreState, user: Person | None, payload: dict) -> bool:
    """Signed in, and `write` on every event referenced by a task selection."""
    if not signed_in(state, user, payload):
        return False
    tour_id = payload.get("tour_id")
    for event_id, _ in payload.get("selection", []):
        if not can_write_event(_find_event(state, tour_id, event_id), user):
            return False
    return True


def expense_submitter(state: StoreState, user: Person | None, payload: dict) -> bool:
    """
    New expenses may be filed by anyone signed in; existing ones follow
    `can_edit_expense`.
    """
    if user is None:
        return False
    expense_id = payload.get("expense_id") or (payload.get("data") or {}).get("id")
    if not expense_id:
        return True
    expense = _find_expense(state, payload.get("tour_id"), expense_id)
    if expense is None:
        return is_manager(user)
    return can_edit_expense(expense, user)
