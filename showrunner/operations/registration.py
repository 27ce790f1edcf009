"""Registration forms, their fields, and the attendees who submit them."""

from showrunner.access import anyone
from showrunner.cascade import cascade
from showrunner.errors import ValidationError
from showrunner.models import (
    FORM_FIELD_TYPES,
    Attendee,
    FormField,
    RegistrationForm,
    RegistrationResponse,
    StoreState,
)
from showrunner.operations._registry import register
from showrunner.operations._state import get_tour, patch_registration
from showrunner.utils import (
    build,
    field_names,
    new_id,
    remove_by_id,
    replace_by_id,
    shallow_merge,
    utc_now_iso,
)

DEFAULT_FORM_NAME = "New Registration Form"
DEFAULT_OPTIONS = ["Option 1", "Option 2"]


def _map_form(state: StoreState, tour_id: str, form_id: str, update) -> StoreState:
    return patch_registration(
        state, tour_id, lambda r: {"forms": replace_by_id(r.forms, form_id, update)}
    )


# --- forms -------------------------------------------------------------------


@register()
def add_registration_form(state: StoreState, tour_id: str) -> StoreState:
    form = RegistrationForm(
        id=new_id("form"), name=DEFAULT_FORM_NAME, status="open", fields=[]
    )
    return patch_registration(state, tour_id, lambda r: {"forms": [*r.forms, form]})


@register()
def update_registration_form(
    state: StoreState, tour_id: str, form_id: str, data: dict
) -> StoreState:
    data = field_names(RegistrationForm, data)
    if "name" in data and not (data["name"] or "").strip():
        raise ValidationError("Please enter a form name.")
    return _map_form(state, tour_id, form_id, lambda f: shallow_merge(f, data))


@register()
def toggle_form_status(state: StoreState, tour_id: str, form_id: str) -> StoreState:
    return _map_form(
        state,
        tour_id,
        form_id,
        lambda f: shallow_merge(
            f, {"status": "closed" if f.status == "open" else "open"}
        ),
    )


@register(
    confirm="Are you sure you want to delete this form and all its attendee data? "
    "This cannot be undone."
)
def delete_registration_form(state: StoreState, tour_id: str, form_id: str) -> StoreState:
    state = patch_registration(
        state, tour_id, lambda r: {"forms": remove_by_id(r.forms, form_id)}
    )
    return cascade(state, "registration_form", form_id, tour_id=tour_id)


# --- fields ------------------------------------------------------------------


def default_field(type: str) -> dict:
    """The starting point for a new field of `type`: a generic label, not required."""
    field = {"type": type, "label": f"New {type.capitalize()} Field", "required": False}
    if type == "select":
        field["options"] = list(DEFAULT_OPTIONS)
    return field


@register()
def add_form_field(
    state: StoreState, tour_id: str, form_id: str, type: str, data: dict | None = None
) -> StoreState:
    if type not in FORM_FIELD_TYPES:
        raise ValidationError(f"Unknown field type {type!r}.")
    field = build(
        FormField,
        {**default_field(type), **field_names(FormField, data or {}), "id": new_id("field")},
    )
    return _map_form(
        state,
        tour_id,
        form_id,
        lambda f: shallow_merge(f, {"fields": [*f.fields, field]}),
    )


@register()
def update_form_field(
    state: StoreState, tour_id: str, form_id: str, field_id: str, data: dict
) -> StoreState:
    data = {k: v for k, v in field_names(FormField, data).items() if k != "id"}
    if "label" in data and not (data["label"] or "").strip():
        raise ValidationError("Please enter a field label.")
    return _map_form(
        state,
        tour_id,
        form_id,
        lambda f: shallow_merge(
            f,
            {"fields": replace_by_id(f.fields, field_id, lambda x: shallow_merge(x, data))},
        ),
    )


@register(confirm="Are you sure you want to delete this field?")
def delete_form_field(
    state: StoreState, tour_id: str, form_id: str, field_id: str
) -> StoreState:
    return _map_form(
        state,
        tour_id,
        form_id,
        lambda f: shallow_merge(f, {"fields": remove_by_id(f.fields, field_id)}),
    )


# --- attendees ---------------------------------------------------------------


@register(access=anyone)
def submit_registration(
    state: StoreState, tour_id: str, form_id: str, responses: list
) -> StoreState:
    """
    Records a public form submission as a new attendee.

    The form's open/closed status is not checked here; closed forms are only
    kept out of reach by public view routing.

    Args:
        state: Current snapshot.
        tour_id: Tour owning the form.
        form_id: Form being submitted.
        responses: `RegistrationResponse` objects or dicts with `fieldId`/`value`.
    """
    get_tour(state, tour_id)
    attendee = Attendee(
        id=new_id("att"),
        form_id=form_id,
        registration_date=utc_now_iso(),
        responses=[
            r if isinstance(r, RegistrationResponse) else build(RegistrationResponse, r)
            for r in responses
        ],
    )
    return patch_registration(
        state, tour_id, lambda r: {"attendees": [*r.attendees, attendee]}
    )


@register(confirm="Are you sure you want to remove this attendee?")
def delete_attendee(state: StoreState, tour_id: str, attendee_id: str) -> StoreState:
    return patch_registration(
        state, tour_id, lambda r: {"attendees": remove_by_id(r.attendees, attendee_id)}
    )
