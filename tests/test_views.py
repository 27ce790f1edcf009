import pytest
from conftest import CREW, MANAGER

from showrunner import views
from showrunner.models import Attendee, FormField, RegistrationForm, RegistrationResponse
from showrunner.utils import find_by_id
from showrunner.views import CategoryRollup


@pytest.fixture
def brightside(service):
    return service.tour("tour-01")


@pytest.fixture
def events(service):
    return service.events("tour-01")


@pytest.fixture
def people(service):
    return service.state.people


class TestFinance:
    """Budget totals, rollups and expense filters"""

    def test_budget_summary(self, brightside):
        """Pending expenses are reported but not subtracted"""
        summary = views.budget_summary(brightside)

        assert summary.total_budget == 75000
        assert summary.approved_spend == pytest.approx(27070.75)
        assert summary.pending_spend == pytest.approx(2150)
        assert summary.remaining == pytest.approx(47929.25)

    def test_tour_without_financials(self, service):
        summary = views.budget_summary(service.tour("tour-02"))

        assert (summary.total_budget, summary.approved_spend, summary.remaining) == (0, 0, 0)
        assert views.category_rollup(service.tour("tour-02")) == []

    def test_filter_expenses_by_date_range(self, brightside):
        expenses = brightside.financials.expenses

        in_range = views.filter_expenses(expenses, "2024-08-15", "2024-08-18")

        assert [e.id for e in in_range] == ["exp-2", "exp-3", "exp-5"]
        summary = views.budget_summary(brightside, in_range)
        assert summary.approved_spend == pytest.approx(11070.75)
        assert summary.total_budget == 75000

    def test_filter_expenses_by_category(self, brightside):
        catering = views.filter_expenses(brightside.financials.expenses, category="Catering")

        assert [e.id for e in catering] == ["exp-3", "exp-6", "exp-7"]

    def test_category_rollup(self, brightside):
        rollup = {row.category: row for row in views.category_rollup(brightside)}

        assert list(rollup) == ["Venue", "Travel & Hotels", "Production", "Catering", "Marketing"]
        assert rollup["Travel & Hotels"].spent == pytest.approx(10450.25)
        assert rollup["Catering"].spent == pytest.approx(620.5)
        assert rollup["Marketing"].spent == 0

    def test_chart_rows_split_overspend(self):
        rows = views.chart_rows(
            [
                CategoryRollup(category="Venue", budget=100, spent=40),
                CategoryRollup(category="Catering", budget=100, spent=130),
            ]
        )

        assert (rows[0].spent, rows[0].remaining, rows[0].overbudget) == (40, 60, 0)
        assert (rows[1].spent, rows[1].remaining, rows[1].overbudget) == (100, 0, 30)

    def test_budget_categories(self, brightside):
        assert views.budget_categories(brightside)[0] == "Venue"
        assert len(views.budget_categories(brightside)) == 5


class TestSchedule:
    """Schedule grouping, visibility and task lists"""

    def test_crew_sees_only_assigned_events(self, service, events):
        casey = service.person(CREW)

        visible = views.visible_events(events, casey)

        assert [e.id for e in visible] == ["event-2", "event-3", "event-4"]
        assert len(views.visible_events(events, service.person(MANAGER))) == 6
        assert views.visible_events(events, None) == []

    def test_group_by_date(self, events):
        grouped = views.group_by_date(list(reversed(events)))

        assert list(grouped) == ["2024-08-15", "2024-08-16", "2024-08-17", "2024-08-18"]
        assert [e.id for e in grouped["2024-08-16"]] == ["event-4", "event-3"]

    def test_visible_schedule_for_current_user(self, service):
        service.login(CREW, "password123")

        grouped = service.visible_schedule("tour-01")

        assert list(grouped) == ["2024-08-15", "2024-08-16"]

    def test_day_sheet_orders_by_start_time(self, service, events):
        casey = service.person(CREW)

        sheet = views.day_sheet(list(reversed(events)), casey, "2024-08-16")

        assert [e.id for e in sheet] == ["event-3", "event-4"]

    def test_tasks_and_permissions(self, service, events):
        casey = service.person(CREW)
        load_in = find_by_id(events, "event-2")

        assert [t.id for t in views.tasks_for_user(load_in, casey)] == ["t-1", "t-2"]
        assert views.permission_for(load_in, casey) == "read"
        assert views.permission_for(load_in, service.person("jordan@showrunner.app")) == "write"
        assert views.permission_for(find_by_id(events, "event-1"), casey) == "read"

    def test_filter_tasks(self, events):
        tasks = views.all_tasks(events)

        assert [t.id for t in views.filter_tasks(tasks, assignee="person-5")] == ["t-1", "t-2"]
        assert [t.id for t in views.filter_tasks(tasks, status="pending")] == ["t-2", "t-3"]
        assert [t.id for t in views.filter_tasks(tasks, status="completed")] == ["t-1"]
        assert tasks[0].selection == ("event-2", "t-1")
        assert tasks[0].event_title == "Gear Load-in at Red Rocks"

    def test_crew_roster(self, service):
        by_name = service.crew("tour-01")
        by_role = service.crew("tour-01", sort_by="role")

        assert [p.name for p in by_name] == [
            "Alex Johnson",
            "Casey Lee",
            "Jordan Davis",
            "Maria Garcia",
            "Sam Chen",
            "Taylor Green",
        ]
        assert [p.role for p in by_role][:2] == ["Artist", "Artist"]
        assert by_role[-1].role == "Tour Manager"
        assert service.crew("tour-02") == []


class TestMarketing:
    """Audience segmentation and placeholder previews"""

    def test_segmented_audience(self, brightside, events, people):
        denver = find_by_id(brightside.campaigns, "camp-3")

        audience = views.campaign_audience(denver, events, people)

        assert [p.id for p in audience] == [
            "person-1",
            "person-2",
            "person-3",
            "person-4",
            "person-5",
        ]

    def test_unsegmented_audience_is_everyone(self, brightside, events, people):
        announcement = find_by_id(brightside.campaigns, "camp-1")

        assert views.campaign_audience(announcement, events, people) == people

    def test_render_placeholders(self, brightside, events, people):
        """The sample recipient is the first audience member, placed at their first event"""
        denver = find_by_id(brightside.campaigns, "camp-3")

        subject = views.render_placeholders(denver.subject, denver, events, people)
        body = views.render_placeholders(denver.content.body, denver, events, people)

        assert subject == "See you in Denver, Alex Johnson!"
        assert "show in DEN Airport." in body
        assert views.render_placeholders(None, denver, events, people) == ""

    def test_recipient_without_events(self, people):
        assert views.recipient_city(people[0], []) == "the event"

    def test_campaigns_by_date(self, brightside):
        grouped = views.campaigns_by_date(brightside.campaigns)

        assert sorted(grouped) == ["2024-07-15", "2024-07-22", "2024-08-10"]
        assert all(c.id != "camp-4" for day in grouped.values() for c in day)

    def test_unique_locations(self, events):
        assert views.unique_locations(events) == [
            "DEN Airport",
            "Red Rocks Amphitheatre",
            "Denver, CO",
            "On the road",
        ]


class TestRegistration:
    """Attendee filters"""

    @pytest.fixture
    def form(self, brightside):
        return find_by_id(brightside.registration.forms, "form-1")

    @pytest.fixture
    def attendees(self, brightside):
        return views.form_attendees(brightside, "form-1")

    def test_text_filter_is_case_insensitive_substring(self, form, attendees):
        matched = views.filter_attendees(attendees, form, {"field-1": "ALICE"})

        assert [a.id for a in matched] == ["att-1"]

    def test_missing_response_does_not_match(self, form, attendees):
        matched = views.filter_attendees(attendees, form, {"field-3": "Medium"})

        assert [a.id for a in matched] == ["att-1"]

    def test_inactive_filters_are_ignored(self, form, attendees):
        matched = views.filter_attendees(attendees, form, {"field-3": "all", "field-1": ""})

        assert [a.id for a in matched] == ["att-1", "att-2"]

    def test_select_filter_is_exact(self, form, attendees):
        assert views.filter_attendees(attendees, form, {"field-3": "Med"}) == []

    def test_all_active_filters_must_match(self, form, attendees):
        assert [a.id for a in views.filter_attendees(attendees, form, {"field-1": "o"})] == [
            "att-1",
            "att-2",
        ]

        both = views.filter_attendees(attendees, form, {"field-1": "o", "field-3": "Medium"})
        one_misses = views.filter_attendees(attendees, form, {"field-1": "o", "field-3": "Large"})

        assert [a.id for a in both] == ["att-1"]
        assert one_misses == []

    def test_checkbox_filter_is_membership(self):
        form = RegistrationForm(
            id="f",
            name="Catering",
            fields=[FormField(id="diet", type="checkbox", label="Dietary needs")],
        )
        vegan = Attendee(
            id="a",
            form_id="f",
            registration_date="2024-07-01T00:00:00Z",
            responses=[RegistrationResponse(field_id="diet", value=["Vegan", "Nut-free"])],
        )

        assert views.filter_attendees([vegan], form, {"diet": "Vegan"}) == [vegan]
        assert views.filter_attendees([vegan], form, {"diet": "Nut-free"}) == [vegan]
        assert views.filter_attendees([vegan], form, {"diet": "Vegan Nut"}) == []
        assert views.filter_attendees([vegan], form, {"diet": "Nut"}) == []

    def test_filterable_fields(self, form):
        assert [f.id for f in views.filterable_fields(form)] == ["field-1", "field-2", "field-3"]

    def test_form_without_attendees(self, brightside):
        assert views.form_attendees(brightside, "form-2") == []


class TestSourcing:
    """Supplier directory and proposals"""

    def test_filter_by_category(self, service):
        hotels = views.filter_suppliers(service.state.suppliers, category="Hotel")

        assert [s.id for s in hotels] == ["sup-4", "sup-8"]

    def test_search_matches_name_or_location(self, service):
        suppliers = service.state.suppliers

        assert [s.id for s in views.filter_suppliers(suppliers, search="denver")] == [
            "sup-1",
            "sup-2",
            "sup-3",
            "sup-4",
            "sup-9",
        ]
        assert [
            s.id for s in views.filter_suppliers(suppliers, category="Lighting", search="DENVER")
        ] == ["sup-3", "sup-9"]
        assert [s.id for s in views.filter_suppliers(suppliers, search="hyatt")] == ["sup-8"]

    def test_proposals_and_names(self, service, brightside):
        proposals = views.proposals_for(brightside, "rfp-4")

        assert [p.id for p in proposals] == ["prop-3", "prop-4"]
        assert views.name_of(service.state.suppliers, proposals[1].supplier_id) == (
            "StageGlow Productions"
        )
        assert views.name_of(service.state.suppliers, "sup-404") == "Unknown"
