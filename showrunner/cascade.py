"""Declarative parent/child cleanup for delete operations.

Deleting a parent runs every rule registered for its kind, in registration
order, after the parent itself has been filtered out.
"""

from collections import defaultdict

from showrunner.models import StoreState
from showrunner.utils import shallow_merge

_rules = defaultdict(list)


def cascades(parent_kind: str):
    """Register `rule(state, parent_id, **context) -> StoreState` for a parent kind."""

    def decorator(rule):
        _rules[parent_kind].append(rule)
        return rule

    return decorator


def cascade(state: StoreState, parent_kind: str, parent_id: str, **context) -> StoreState:
    """
    Applies every dependent cleanup for a deleted parent.

    Args:
        state: Snapshot in which the parent has already been removed.
        parent_kind: "tour" or "registration_form".
        parent_id: Identifier of the deleted parent.
        **context: Extra identifiers a rule may need (e.g. tour_id).

    Returns:
        StoreState: Snapshot with all dependents removed.
    """
    for rule in _rules[parent_kind]:
        state = rule(state, parent_id, **context)
    return state


@cascades("tour")
def drop_tour_schedule(state: StoreState, tour_id: str, **context) -> StoreState:
    """A tour's events go with it."""
    if tour_id not in state.schedule:
        return state
    schedule = {k: v for k, v in state.schedule.items() if k != tour_id}
    return state.model_copy(update={"schedule": schedule})


@cascades("tour")
def clear_tour_selection(state: StoreState, tour_id: str, **context) -> StoreState:
    """A selection pointing at the deleted tour resets to no selection."""
    if state.selected_tour is None or state.selected_tour.id != tour_id:
        return state
    return state.model_copy(update={"selected_tour": None})


@cascades("registration_form")
def drop_form_attendees(state: StoreState, form_id: str, tour_id: str = None, **context) -> StoreState:
    """Attendees registered through the deleted form are removed."""

    def strip(tour):
        if tour.id != tour_id or tour.registration is None:
            return tour
        attendees = [a for a in tour.registration.attendees if a.form_id != form_id]
        return shallow_merge(
            tour, {"registration": shallow_merge(tour.registration, {"attendees": attendees})}
        )

    return state.model_copy(update={"tours": [strip(t) for t in state.tours]})
