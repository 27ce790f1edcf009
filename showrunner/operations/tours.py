from datetime import date

from showrunner.cascade import cascade
from showrunner.errors import ValidationError
from showrunner.models import StoreState, Tour
from showrunner.operations._registry import register
from showrunner.utils import (
    build,
    field_names,
    new_id,
    parse_date,
    remove_by_id,
    replace_by_id,
    shallow_merge,
)

GENERIC_TOUR_IMAGE = "https://images.unsplash.com/photo-1516450360452-9312f5e86fc7?w=600"


def validate_tour_fields(data: dict) -> None:
    for key in ("artist_name", "tour_name", "start_date", "end_date"):
        if not (data.get(key) or "").strip():
            raise ValidationError("Please fill out all fields.")
    start, end = parse_date(data["start_date"]), parse_date(data["end_date"])
    if start is None or end is None:
        raise ValidationError("Dates must be given as YYYY-MM-DD.")
    if start > end:
        raise ValidationError("End date must be after start date.")


def initial_status(start_date: str, today: date | None = None) -> str:
    """A tour starting after today is Upcoming; anything else starts Active."""
    today = today or date.today()
    return "Upcoming" if parse_date(start_date) > today else "Active"


@register()
def save_tour(state: StoreState, data: dict, tour_id: str | None = None) -> StoreState:
    """
    Creates a tour, or shallow-merges `data` into the tour with `tour_id`.

    Args:
        state: Current snapshot.
        data: Artist name, tour name, start and end dates (plus any other fields
            to overwrite when editing).
        tour_id: Tour to edit; None creates a new tour.
    """
    data = field_names(Tour, data)
    if tour_id:
        existing = next((t for t in state.tours if t.id == tour_id), None)
        if existing is None:
            return state
        validate_tour_fields({**existing.model_dump(), **data})
        return state.model_copy(
            update={
                "tours": replace_by_id(
                    state.tours, tour_id, lambda t: shallow_merge(t, data)
                )
            }
        )

    validate_tour_fields(data)
    tour = build(
        Tour,
        {
            **data,
            "id": new_id("tour"),
            "status": initial_status(data["start_date"]),
            "image_url": GENERIC_TOUR_IMAGE,
        },
    )
    return state.model_copy(update={"tours": [*state.tours, tour]})


@register(
    confirm="Are you sure you want to permanently delete this tour and all its data? "
    "This cannot be undone."
)
def delete_tour(state: StoreState, tour_id: str) -> StoreState:
    state = state.model_copy(update={"tours": remove_by_id(state.tours, tour_id)})
    return cascade(state, "tour", tour_id)
