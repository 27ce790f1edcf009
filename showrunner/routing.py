"""Public, unauthenticated views reached through query parameters."""

from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict

from showrunner.models import RegistrationForm, StoreState, Tour
from showrunner.utils import find_by_id


class PublicView(BaseModel):
    """A resolved public view: a deployed website, or an open registration form."""

    model_config = ConfigDict(frozen=True)

    type: str
    tour: Tour
    form: RegistrationForm | None = None


def query_params(url_or_query: str) -> dict[str, str]:
    """Accepts a full URL, `?a=b&c=d`, or `a=b&c=d`; the first value of each key wins."""
    query = urlsplit(url_or_query).query if "://" in url_or_query else url_or_query
    parsed = parse_qs(query.lstrip("?"))
    return {key: values[0] for key, values in parsed.items()}


def share_link(base_url: str, tour_id: str, form_id: str | None = None) -> str:
    if form_id:
        return f"{base_url}?view=form&tourId={tour_id}&formId={form_id}"
    return f"{base_url}?view=website&tourId={tour_id}"


def resolve_public_view(state: StoreState, params: dict[str, str]) -> PublicView | None:
    """
    Maps query parameters to a public view.

    `view=website&tourId=X` needs tour X to have its website deployed.
    `view=form&tourId=X&formId=F` needs form F of tour X to be open. Anything
    else resolves to no public view.

    Returns:
        PublicView or None: The view to render, or None.
    """
    view, tour_id = params.get("view"), params.get("tourId")
    if not tour_id:
        return None
    tour = find_by_id(state.tours, tour_id)
    if tour is None:
        return None

    if view == "website":
        if not tour.is_website_deployed:
            return None
        return PublicView(type="website", tour=tour)

    if view == "form":
        forms = tour.registration.forms if tour.registration else []
        form = find_by_id(forms, params.get("formId"))
        if form is None or form.status != "open":
            return None
        return PublicView(type="form", tour=tour, form=form)

    return None
