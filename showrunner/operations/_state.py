"""Snapshot helpers shared by the operation modules.

Each helper returns a new snapshot; collections it does not touch are carried
over as the same objects so the store only rewrites what changed.
"""

from showrunner.errors import NotFound
from showrunner.models import Financials, Registration, StoreState, Tour
from showrunner.utils import find_by_id, replace_by_id, shallow_merge


def get_tour(state: StoreState, tour_id: str) -> Tour:
    tour = find_by_id(state.tours, tour_id)
    if tour is None:
        raise NotFound(f"No tour with id {tour_id!r}")
    return tour


def map_tour(state: StoreState, tour_id: str, update) -> StoreState:
    """Replaces the tour with `tour_id` by `update(tour)`; a missing tour is a no-op."""
    return state.model_copy(
        update={"tours": replace_by_id(state.tours, tour_id, update)}
    )


def patch_tour(state: StoreState, tour_id: str, build_patch) -> StoreState:
    """Shallow-merges `build_patch(tour)` into the tour with `tour_id`."""
    return map_tour(state, tour_id, lambda tour: shallow_merge(tour, build_patch(tour)))


def map_schedule(state: StoreState, tour_id: str, update) -> StoreState:
    """
    Replaces the tour's event list by `update(events)`.

    A tour without a schedule entry only gets one when the update adds events.
    """
    events = update(state.schedule.get(tour_id, []))
    if tour_id not in state.schedule and not events:
        return state
    schedule = dict(state.schedule)
    schedule[tour_id] = events
    return state.model_copy(update={"schedule": schedule})


def map_event(state: StoreState, tour_id: str, event_id: str, update) -> StoreState:
    """Replaces one event of the tour's schedule by `update(event)`."""
    return map_schedule(
        state, tour_id, lambda events: replace_by_id(events, event_id, update)
    )


def financials_of(tour: Tour) -> Financials:
    return tour.financials if tour.financials is not None else Financials()


def registration_of(tour: Tour) -> Registration:
    return tour.registration if tour.registration is not None else Registration()


def patch_financials(state: StoreState, tour_id: str, build_patch) -> StoreState:
    """Shallow-merges `build_patch(financials)` into the tour's financials."""
    return patch_tour(
        state,
        tour_id,
        lambda tour: {
            "financials": shallow_merge(
                financials_of(tour), build_patch(financials_of(tour))
            )
        },
    )


def patch_registration(state: StoreState, tour_id: str, build_patch) -> StoreState:
    """Shallow-merges `build_patch(registration)` into the tour's registration."""
    return patch_tour(
        state,
        tour_id,
        lambda tour: {
            "registration": shallow_merge(
                registration_of(tour), build_patch(registration_of(tour))
            )
        },
    )


def find_event(state: StoreState, tour_id: str, event_id: str):
    return find_by_id(state.schedule.get(tour_id, []), event_id)
