from showrunner.errors import ValidationError
from showrunner.models import Person, StoreState
from showrunner.operations._registry import register
from showrunner.operations._state import map_schedule
from showrunner.operations.auth import avatar_url, find_by_email
from showrunner.utils import build, field_names, new_id, replace_by_id, shallow_merge


@register()
def save_crew_member(state: StoreState, data: dict) -> StoreState:
    """
    Invites a new person, or edits an existing one when `data` carries an id.

    New people start as `pending_invitation` with no password; they become
    active by accepting the invitation (see `set_password`).
    """
    data = field_names(Person, data)
    if not (data.get("name") or "").strip() or not (data.get("email") or "").strip():
        raise ValidationError("Please enter a name and email.")

    person_id = data.get("id")
    if person_id:
        # credentials, invitation status and avatar are not crew-editable
        edits = {
            k: v for k, v in data.items() if k not in ("password", "status", "avatar_url")
        }
        return state.model_copy(
            update={
                "people": replace_by_id(
                    state.people, person_id, lambda p: shallow_merge(p, edits)
                )
            }
        )

    if find_by_email(state.people, data["email"]) is not None:
        raise ValidationError("A user with this email already exists.")

    person_id = new_id("person")
    person = build(
        Person,
        {
            **data,
            "id": person_id,
            "password": None,
            "status": "pending_invitation",
            "avatar_url": avatar_url(person_id),
        },
    )
    return state.model_copy(update={"people": [*state.people, person]})


@register(
    confirm="Are you sure you want to remove this member from the tour? "
    "They will be unassigned from all events."
)
def remove_crew_member_from_tour(
    state: StoreState, tour_id: str, person_id: str
) -> StoreState:
    """Unassigns a person from every event of one tour; the person itself stays."""

    def unassign(events):
        return [
            shallow_merge(
                event,
                {"assigned_to": [a for a in event.assigned_to if a.person_id != person_id]},
            )
            for event in events
        ]

    return map_schedule(state, tour_id, unassign)
