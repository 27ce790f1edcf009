from showrunner.models import (
    EventAssignment,
    RiderParseResult,
    ScheduleEvent,
    StoreState,
    Task,
)
from showrunner.operations._registry import register
from showrunner.operations._state import get_tour, map_schedule
from showrunner.operations.finances import append_budget_items
from showrunner.utils import new_id, today_iso

IMPORT_EVENT_TITLE = "Action Items from Rider Import"
IMPORT_EVENT_NOTES = (
    "These tasks and budget items were automatically generated by the AI Rider "
    "Import feature."
)


def import_event(tour, result: RiderParseResult, user_id: str) -> ScheduleEvent:
    """
    The Load-in event that carries the suggested tasks.

    Args:
        tour (Tour): Tour the rider belongs to; its start date dates the event.
        result (RiderParseResult): Parsed suggestions.
        user_id (str): Importing user, assigned to the event with write access.

    Returns:
        ScheduleEvent: New event holding one pending task per suggestion.
    """
    return ScheduleEvent(
        id=new_id("event"),
        date=tour.start_date or today_iso(),
        type="Load-in",
        title=IMPORT_EVENT_TITLE,
        start_time="09:00",
        end_time="",
        location="Various",
        notes=IMPORT_EVENT_NOTES,
        assigned_to=[EventAssignment(person_id=user_id, permission="write")],
        comments=[],
        tasks=[
            Task(
                id=new_id("task"),
                text=suggestion.text,
                completed=False,
                assigned_to=suggestion.assigned_to,
            )
            for suggestion in result.tasks
        ],
    )


@register(actor="user_id")
def apply_rider_import(
    state: StoreState, tour_id: str, result: RiderParseResult, user_id: str
) -> StoreState:
    """
    Applies parsed rider suggestions in one step: budget lines are appended to
    the tour's financials and the tasks land in a new Load-in event.

    Both changes are built on the snapshot before either is returned, so a
    failure leaves the store untouched.
    """
    tour = get_tour(state, tour_id)
    if result.is_empty:
        return state
    event = import_event(tour, result, user_id)
    state = append_budget_items(state, tour_id, result.budget_items)
    return map_schedule(state, tour_id, lambda events: [*events, event])
