"""Event tasks, edited one at a time from an event or in bulk from the tasks view.

A selection is a list of `(event_id, task_id)` pairs; only those exact pairs
are touched, so identical task ids under different events never collide.
"""

from showrunner.access import event_writer, events_writer
from showrunner.errors import ValidationError
from showrunner.models import ScheduleEvent, StoreState, Task
from showrunner.operations._registry import register
from showrunner.operations._state import find_event, map_event, map_schedule
from showrunner.utils import field_names, new_id, remove_by_id, shallow_merge


def _check_assignee(event: ScheduleEvent | None, assigned_to: str) -> None:
    if event is None:
        return
    if not any(a.person_id == assigned_to for a in event.assigned_to):
        raise ValidationError("The assignee must be assigned to this event.")


def _with_tasks(event: ScheduleEvent, tasks: list[Task]) -> ScheduleEvent:
    return shallow_merge(event, {"tasks": tasks})


@register(access=event_writer)
def add_task(
    state: StoreState, tour_id: str, event_id: str, text: str, assigned_to: str
) -> StoreState:
    if not (text or "").strip() or not assigned_to:
        raise ValidationError("Please enter task text and select an assignee.")
    _check_assignee(find_event(state, tour_id, event_id), assigned_to)

    task = Task(id=new_id("task"), text=text.strip(), completed=False, assigned_to=assigned_to)
    return map_event(
        state, tour_id, event_id, lambda e: _with_tasks(e, [*(e.tasks or []), task])
    )


@register(access=event_writer)
def update_task(
    state: StoreState, tour_id: str, event_id: str, task_id: str, data: dict
) -> StoreState:
    """
    Shallow-merges `data` into one task. The task id never changes and the
    event's other tasks are carried over as the same objects.
    """
    data = {k: v for k, v in field_names(Task, data).items() if k != "id"}
    if "text" in data and not (data["text"] or "").strip():
        raise ValidationError("Please enter task text and select an assignee.")
    if "assigned_to" in data:
        _check_assignee(find_event(state, tour_id, event_id), data["assigned_to"])

    def edit(event):
        tasks = [
            shallow_merge(t, data) if t.id == task_id else t for t in event.tasks or []
        ]
        return _with_tasks(event, tasks)

    return map_event(state, tour_id, event_id, edit)


@register(access=event_writer, confirm="Are you sure you want to delete this task?")
def delete_task(
    state: StoreState, tour_id: str, event_id: str, task_id: str
) -> StoreState:
    return map_event(
        state,
        tour_id,
        event_id,
        lambda e: _with_tasks(e, remove_by_id(e.tasks or [], task_id)),
    )


def selected_tasks(state: StoreState, tour_id: str, selection) -> list[Task]:
    """Resolves a selection to tasks; pairs that no longer exist are skipped."""
    tasks = []
    for event_id, task_id in selection:
        event = find_event(state, tour_id, event_id)
        if event is None:
            continue
        tasks.extend(t for t in event.tasks or [] if t.id == task_id)
    return tasks


def toggle_target(tasks: list[Task]) -> bool:
    """
    The completed value a bulk toggle moves every selected task to.

    A mixed selection always becomes completed; only an all-completed
    selection goes back to pending.
    """
    return not all(t.completed for t in tasks)


def _apply_to_selection(state: StoreState, tour_id: str, selection, edit) -> StoreState:
    by_event: dict[str, set[str]] = {}
    for event_id, task_id in selection:
        by_event.setdefault(event_id, set()).add(task_id)

    def update(events):
        return [
            edit(event, by_event[event.id]) if event.id in by_event else event
            for event in events
        ]

    return map_schedule(state, tour_id, update)


@register(access=events_writer)
def bulk_toggle_tasks(state: StoreState, tour_id: str, selection) -> StoreState:
    """
    Sets `completed` on every selected task to NOT(all selected are completed).

    Args:
        state: Current snapshot.
        tour_id: Tour whose schedule holds the tasks.
        selection (list[tuple[str, str]]): `(event_id, task_id)` pairs.
    """
    tasks = selected_tasks(state, tour_id, selection)
    if not tasks:
        return state
    target = toggle_target(tasks)

    def edit(event, task_ids):
        return _with_tasks(
            event,
            [
                shallow_merge(t, {"completed": target}) if t.id in task_ids else t
                for t in event.tasks or []
            ],
        )

    return _apply_to_selection(state, tour_id, selection, edit)


def _bulk_delete_prompt(state: StoreState, payload: dict) -> str:
    count = len(payload.get("selection", []))
    return f"Are you sure you want to delete {count} task(s)? This cannot be undone."


@register(access=events_writer, confirm=_bulk_delete_prompt)
def bulk_delete_tasks(state: StoreState, tour_id: str, selection) -> StoreState:
    if not selection:
        return state

    def edit(event, task_ids):
        return _with_tasks(event, [t for t in event.tasks or [] if t.id not in task_ids])

    return _apply_to_selection(state, tour_id, selection, edit)
