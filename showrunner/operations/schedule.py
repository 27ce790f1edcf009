from showrunner.access import event_writer
from showrunner.errors import ValidationError
from showrunner.models import Comment, ScheduleEvent, StoreState
from showrunner.operations._registry import register
from showrunner.operations._state import map_event, map_schedule
from showrunner.utils import (
    build,
    field_names,
    new_id,
    remove_by_id,
    require,
    shallow_merge,
    utc_now_iso,
)


@register()
def save_event(
    state: StoreState, tour_id: str, data: dict, event_id: str | None = None
) -> StoreState:
    """
    Adds an event to a tour's schedule, or shallow-merges `data` into `event_id`.

    Title, date, start time and location are required. New events start with
    empty comment and task lists.
    """
    data = field_names(ScheduleEvent, data)
    require(
        title=data.get("title"),
        date=data.get("date"),
        start_time=data.get("start_time"),
        location=data.get("location"),
    )

    if event_id:
        return map_event(state, tour_id, event_id, lambda e: shallow_merge(e, data))

    event = build(
        ScheduleEvent,
        {**data, "id": new_id("event"), "comments": [], "tasks": []},
    )
    return map_schedule(state, tour_id, lambda events: [*events, event])


@register(confirm="Are you sure you want to delete this event?")
def delete_event(state: StoreState, tour_id: str, event_id: str) -> StoreState:
    return map_schedule(state, tour_id, lambda events: remove_by_id(events, event_id))


@register(access=event_writer, actor="author_id")
def add_comment(
    state: StoreState, tour_id: str, event_id: str, text: str, author_id: str
) -> StoreState:
    """Appends a comment; comments are never edited or deleted."""
    text = (text or "").strip()
    if not text:
        raise ValidationError("Please enter a comment.")
    comment = Comment(
        id=new_id("comment"), author_id=author_id, timestamp=utc_now_iso(), text=text
    )
    return map_event(
        state,
        tour_id,
        event_id,
        lambda e: shallow_merge(e, {"comments": [*(e.comments or []), comment]}),
    )

