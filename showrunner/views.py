"""
Derived views over a store snapshot.

Nothing here is cached or stored: every view is recomputed from the snapshot it
is given. Dangling references never raise; they are skipped or rendered as a
placeholder.
"""

from collections import defaultdict

from pydantic import BaseModel, ConfigDict

from showrunner.access import can_see_event, event_permission
from showrunner.models import (
    Attendee,
    EmailCampaign,
    Expense,
    Person,
    Proposal,
    RegistrationForm,
    ScheduleEvent,
    Supplier,
    Task,
    Tour,
)
from showrunner.utils import find_by_id, parse_date, sort_by_keys

UNKNOWN = "Unknown"
NO_LOCATION = "the event"
FILTERABLE_FIELD_TYPES = ("text", "email", "tel", "number", "select", "radio")
TEXT_FILTER_TYPES = ("text", "email", "tel", "number", "textarea")
EXACT_FILTER_TYPES = ("select", "radio")


class View(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- finances ----------------------------------------------------------------


class BudgetSummary(View):
    total_budget: float
    approved_spend: float
    pending_spend: float

    @property
    def remaining(self) -> float:
        return self.total_budget - self.approved_spend


class CategoryRollup(View):
    category: str
    budget: float = 0
    spent: float = 0


class ChartRow(View):
    name: str
    spent: float
    remaining: float
    overbudget: float


def _budget(tour: Tour) -> list:
    return tour.financials.budget if tour.financials else []


def _expenses(tour: Tour) -> list[Expense]:
    return tour.financials.expenses if tour.financials else []


def filter_expenses(
    expenses: list[Expense],
    start_date: str | None = None,
    end_date: str | None = None,
    category: str = "all",
) -> list[Expense]:
    """
    Filters expenses by an inclusive date range and a category.

    Args:
        expenses: Expenses to filter.
        start_date: Earliest date (YYYY-MM-DD), or None for no lower bound.
        end_date: Latest date (YYYY-MM-DD), or None for no upper bound.
        category: Exact category, or "all".

    Returns:
        list[Expense]: Matching expenses in their original order.
    """
    start, end = parse_date(start_date), parse_date(end_date)
    result = []
    for expense in expenses:
        day = parse_date(expense.date)
        if start and day and day < start:
            continue
        if end and day and day > end:
            continue
        if category != "all" and expense.category != category:
            continue
        result.append(expense)
    return result


def budget_summary(tour: Tour, expenses: list[Expense] | None = None) -> BudgetSummary:
    """
    Budget totals for a tour.

    Only approved expenses count against the budget; pending ones are reported
    separately and rejected ones are ignored.

    Args:
        tour: The tour.
        expenses: Expenses to total, e.g. a filtered subset; defaults to all of them.
    """
    expenses = _expenses(tour) if expenses is None else expenses
    return BudgetSummary(
        total_budget=sum(item.amount for item in _budget(tour)),
        approved_spend=sum(e.amount for e in expenses if e.status == "approved"),
        pending_spend=sum(e.amount for e in expenses if e.status == "pending"),
    )


def remaining_budget(tour: Tour) -> float:
    return budget_summary(tour).remaining


def budget_categories(tour: Tour) -> list[str]:
    """Distinct budget categories, in first-seen order."""
    return list(dict.fromkeys(item.category for item in _budget(tour)))


def category_rollup(
    tour: Tour, expenses: list[Expense] | None = None
) -> list[CategoryRollup]:
    """Budget and approved spend per category, covering categories from both sides."""
    expenses = _expenses(tour) if expenses is None else expenses
    totals: dict[str, list[float]] = {}
    for item in _budget(tour):
        totals.setdefault(item.category, [0, 0])[0] += item.amount
    for expense in expenses:
        if expense.status == "approved":
            totals.setdefault(expense.category, [0, 0])[1] += expense.amount
    return [
        CategoryRollup(category=category, budget=budget, spent=spent)
        for category, (budget, spent) in totals.items()
    ]


def chart_rows(rollup: list[CategoryRollup]) -> list[ChartRow]:
    """Per-category bars; spend beyond the budget is split out as overbudget."""
    rows = []
    for row in rollup:
        over = row.spent > row.budget
        rows.append(
            ChartRow(
                name=row.category,
                spent=row.budget if over else row.spent,
                remaining=0 if over else row.budget - row.spent,
                overbudget=row.spent - row.budget if over else 0,
            )
        )
    return rows


# --- schedule ----------------------------------------------------------------


class TourTask(View):
    """A task flattened out of its event, for the tour-wide task list."""

    id: str
    text: str
    completed: bool
    assigned_to: str
    event_id: str
    event_title: str
    event_date: str

    @property
    def selection(self) -> tuple[str, str]:
        return (self.event_id, self.id)


def visible_events(events: list[ScheduleEvent], user: Person | None) -> list[ScheduleEvent]:
    """Managers see every event; everyone else only the events they are assigned to."""
    return [event for event in events if can_see_event(event, user)]


def _date_key(value: str):
    day = parse_date(value)
    return (day is None, day or value)


def group_by_date(events: list[ScheduleEvent]) -> dict[str, list[ScheduleEvent]]:
    """
    Groups events by their exact date string, ordered by parsed date.

    Returns:
        dict[str, list[ScheduleEvent]]: Date string to events, in insertion order
            within a date.
    """
    groups: dict[str, list[ScheduleEvent]] = defaultdict(list)
    for event in events:
        groups[event.date].append(event)
    return {date: groups[date] for date in sorted(groups, key=_date_key)}


def tour_crew(events: list[ScheduleEvent], people: list[Person]) -> list[Person]:
    """People assigned to at least one of the tour's events, in roster order."""
    ids = {a.person_id for event in events for a in event.assigned_to}
    return [person for person in people if person.id in ids]


def all_tasks(events: list[ScheduleEvent]) -> list[TourTask]:
    return [
        TourTask(
            id=task.id,
            text=task.text,
            completed=task.completed,
            assigned_to=task.assigned_to,
            event_id=event.id,
            event_title=event.title,
            event_date=event.date,
        )
        for event in events
        for task in event.tasks or []
    ]


def filter_tasks(
    tasks: list[TourTask], assignee: str = "all", status: str = "all"
) -> list[TourTask]:
    """
    Filters the flattened task list and sorts it by event date.

    Args:
        tasks: Flattened tasks (see `all_tasks`).
        assignee: Person id, or "all".
        status: "all", "pending" or "completed".

    Returns:
        list[TourTask]: Matching tasks, earliest event first.
    """
    result = [
        t
        for t in tasks
        if (assignee == "all" or t.assigned_to == assignee)
        and (
            status == "all"
            or (status == "completed" and t.completed)
            or (status == "pending" and not t.completed)
        )
    ]
    return sorted(result, key=lambda t: _date_key(t.event_date))


def day_sheet(events: list[ScheduleEvent], user: Person | None, date: str) -> list[ScheduleEvent]:
    """One day's events visible to `user`, ordered by start time."""
    day = [e for e in visible_events(events, user) if e.date == date]
    return sorted(day, key=lambda e: e.start_time)


def tasks_for_user(event: ScheduleEvent, user: Person | None) -> list[Task]:
    if user is None:
        return []
    return [t for t in event.tasks or [] if t.assigned_to == user.id]


def permission_for(event: ScheduleEvent, user: Person | None) -> str:
    return event_permission(event, user)


def sort_crew(people: list[Person], by: str = "name") -> list[Person]:
    """Crew roster sorted by name, or by role then name."""
    if by == "role":
        return sort_by_keys(people, [("role", True), ("name", True)])
    return sort_by_keys(people, [("name", True)])


# --- marketing ---------------------------------------------------------------


def unique_locations(events: list[ScheduleEvent]) -> list[str]:
    return list(dict.fromkeys(event.location for event in events))


def campaign_audience(
    campaign: EmailCampaign, events: list[ScheduleEvent], people: list[Person]
) -> list[Person]:
    """
    People a campaign is sent to.

    With location segmentation, the audience is everyone assigned to an event
    whose location exactly matches a selected location. Without it, everyone.
    """
    locations = campaign.segmentation.location_ids if campaign.segmentation else None
    if not locations:
        return list(people)
    ids = {
        a.person_id
        for event in events
        if event.location in locations
        for a in event.assigned_to
    }
    return [person for person in people if person.id in ids]


def campaigns_by_date(campaigns: list[EmailCampaign]) -> dict[str, list[EmailCampaign]]:
    """Scheduled campaigns keyed by date; undated campaigns are left out."""
    groups: dict[str, list[EmailCampaign]] = defaultdict(list)
    for campaign in campaigns:
        if campaign.scheduled_date:
            groups[campaign.scheduled_date].append(campaign)
    return dict(groups)


def sample_recipient(
    campaign: EmailCampaign, events: list[ScheduleEvent], people: list[Person]
) -> Person | None:
    audience = campaign_audience(campaign, events, people)
    if audience:
        return audience[0]
    return people[0] if people else None


def recipient_city(person: Person | None, events: list[ScheduleEvent]) -> str:
    if person is None:
        return NO_LOCATION
    for event in events:
        if any(a.person_id == person.id for a in event.assigned_to):
            return event.location or NO_LOCATION
    return NO_LOCATION


def render_placeholders(
    text: str | None,
    campaign: EmailCampaign,
    events: list[ScheduleEvent],
    people: list[Person],
) -> str:
    """
    Fills `{{user_name}}` and `{{event_city}}` for a preview, using the first
    audience member (or the first person at all) as the sample recipient.
    """
    if not text:
        return ""
    recipient = sample_recipient(campaign, events, people)
    if recipient is None:
        return text
    return text.replace("{{user_name}}", recipient.name).replace(
        "{{event_city}}", recipient_city(recipient, events)
    )


# --- registration ------------------------------------------------------------


def form_attendees(tour: Tour, form_id: str) -> list[Attendee]:
    if tour.registration is None:
        return []
    return [a for a in tour.registration.attendees if a.form_id == form_id]


def filterable_fields(form: RegistrationForm) -> list:
    return [f for f in form.fields if f.type in FILTERABLE_FIELD_TYPES]


def _matches(field, response, wanted: str) -> bool:
    value = response.value
    flat = " ".join(value) if isinstance(value, list) else str(value)
    if field.type in TEXT_FILTER_TYPES:
        return wanted.lower() in flat.lower()
    if field.type in EXACT_FILTER_TYPES:
        return flat == wanted
    if field.type == "checkbox":
        return wanted in value if isinstance(value, list) else flat == wanted
    return False


def filter_attendees(
    attendees: list[Attendee], form: RegistrationForm, filters: dict[str, str]
) -> list[Attendee]:
    """
    Applies per-field filters to a form's attendees; all filters must match.

    Args:
        attendees: Attendees of `form`.
        form: The form whose fields the filters refer to.
        filters: Field id to filter value. Empty values and "all" are ignored.

    Returns:
        list[Attendee]: Attendees matching every active filter. An attendee
            without a response to a filtered field does not match.
    """
    active = {k: v for k, v in filters.items() if v and v != "all"}
    if not active:
        return list(attendees)
    fields = {f.id: f for f in form.fields}

    def keep(attendee):
        responses = {r.field_id: r for r in attendee.responses}
        for field_id, wanted in active.items():
            field, response = fields.get(field_id), responses.get(field_id)
            if field is None or response is None or not _matches(field, response, wanted):
                return False
        return True

    return [a for a in attendees if keep(a)]


# --- sourcing ----------------------------------------------------------------


def filter_suppliers(
    suppliers: list[Supplier], category: str = "All", search: str = ""
) -> list[Supplier]:
    """Suppliers in `category` ("All" for any) whose name or location contains `search`."""
    needle = (search or "").lower()
    return [
        s
        for s in suppliers
        if (category == "All" or s.category == category)
        and (needle in s.name.lower() or needle in s.location.lower())
    ]


def proposals_for(tour: Tour, rfp_id: str) -> list[Proposal]:
    return [p for p in tour.proposals or [] if p.rfp_id == rfp_id]


def name_of(items: list, item_id: str | None) -> str:
    """Display name of a person or supplier, or "Unknown" for a dangling id."""
    item = find_by_id(items, item_id)
    return item.name if item is not None else UNKNOWN
