import pytest
from conftest import MANAGER, login_as

from showrunner.routing import query_params, resolve_public_view, share_link


@pytest.mark.parametrize(
    "raw",
    [
        "https://tours.example.com/?view=website&tourId=tour-01",
        "?view=website&tourId=tour-01",
        "view=website&tourId=tour-01",
        "view=website&tourId=tour-01&tourId=tour-02",
    ],
)
def test_query_params(raw):
    assert query_params(raw) == {"view": "website", "tourId": "tour-01"}


def test_share_link():
    base = "https://tours.example.com/"

    assert share_link(base, "tour-01") == f"{base}?view=website&tourId=tour-01"
    assert share_link(base, "tour-01", "form-1") == (
        f"{base}?view=form&tourId=tour-01&formId=form-1"
    )


def test_deployed_website(service):
    view = service.public_view("?view=website&tourId=tour-01")

    assert view.type == "website"
    assert view.tour.id == "tour-01"
    assert view.form is None


def test_undeployed_website(service):
    assert service.public_view("?view=website&tourId=tour-02") is None

    login_as(service, MANAGER)
    service.dispatch("toggle_website_deployment", tour_id="tour-01")
    assert service.public_view("?view=website&tourId=tour-01") is None


def test_open_form(service):
    view = service.public_view(share_link("https://x.test/", "tour-01", "form-1"))

    assert view.type == "form"
    assert view.form.name == "General Admission Sign-up"


@pytest.mark.parametrize(
    "params",
    [
        {"view": "form", "tourId": "tour-01", "formId": "form-2"},
        {"view": "form", "tourId": "tour-01", "formId": "form-9"},
        {"view": "form", "tourId": "tour-02", "formId": "form-1"},
        {"view": "website", "tourId": "tour-99"},
        {"view": "gallery", "tourId": "tour-01"},
        {"view": "website"},
        {},
    ],
)
def test_no_public_view(service, params):
    assert resolve_public_view(service.state, params) is None
