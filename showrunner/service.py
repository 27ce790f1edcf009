import logging

from showrunner import views
from showrunner.access import is_manager
from showrunner.errors import NotFound, PermissionDenied, ValidationError
from showrunner.models import Person, RiderParseResult, ScheduleEvent, StoreState, Tour
from showrunner.operations import get_operation
from showrunner.rider import RiderParser, parse_rider
from showrunner.routing import PublicView, query_params, resolve_public_view
from showrunner.store import EntityStore
from showrunner.utils import find_by_id

logger = logging.getLogger(__name__)


def print_notice(message: str) -> None:
    print(f"\n  {message}")


def always_confirm(message: str) -> bool:
    return True


class ShowRunner:
    """
    Command/query front door to the tour data.

    Commands go through `dispatch`, which checks access, asks for confirmation
    when the operation is destructive, runs the reducer, and commits the new
    snapshot. Queries read the current snapshot through `views`.

    Attributes:
        store (EntityStore): Snapshot holder and persistence.
        notify (callable): `notify(message)`, shows a user-facing notice.
        confirm (callable): `confirm(message) -> bool`, the "are you sure" gate.
        rider_parser (RiderParser): Client for the rider parsing service.
    """

    def __init__(
        self,
        store: EntityStore,
        notify=print_notice,
        confirm=always_confirm,
        rider_parser: RiderParser | None = None,
    ):
        self.store = store
        self.notify = notify
        self.confirm = confirm
        self.rider_parser = rider_parser or RiderParser()

    def __repr__(self):
        return f"ShowRunner({self.store!r})"

    @property
    def state(self) -> StoreState:
        return self.store.state

    @property
    def current_user(self) -> Person | None:
        return self.state.current_user

    # --- commands ------------------------------------------------------------

    def dispatch(self, name: str, /, **payload) -> bool:
        """
        Applies a named operation on behalf of the current user.

        Args:
            name (str): Registered operation name.
            **payload: The operation's keyword arguments.

        Returns:
            bool: True if a new snapshot was committed; False if the user
                declined the confirmation or the input was rejected (in which
                case `notify` has been called with the reason).

        Raises:
            PermissionDenied: If the current user may not run the operation.
            NotFound: If the operation's target tour does not exist.
        """
        operation = get_operation(name)
        user = self.current_user
        state = self.state

        if operation.actor is not None and user is not None:
            payload[operation.actor] = user.id

        if not operation.allowed(state, user, payload):
            who = user.name if user else "Anonymous user"
            raise PermissionDenied(f"{who} may not {name.replace('_', ' ')}.")

        prompt = operation.confirmation(state, payload)
        if prompt and not self.confirm(prompt):
            return False

        try:
            new_state = operation(state, **payload)
        except ValidationError as e:
            self.notify(str(e))
            return False

        written = self.store.commit(new_state)
        logger.debug("%s wrote %s", name, ", ".join(written) or "nothing")
        return True

    def login(self, email: str, password: str) -> bool:
        return self.dispatch("login", email=email, password=password)

    def logout(self) -> bool:
        return self.dispatch("logout")

    def process_rider(self, rider_text: str) -> RiderParseResult:
        """
        Sends a rider to the parsing service. Failures are reported through
        `notify` and give an empty result.
        """
        if not is_manager(self.current_user):
            raise PermissionDenied("Only a Tour Manager may import riders.")
        if not (rider_text or "").strip():
            self.notify("Please paste the rider text to analyze.")
            return RiderParseResult()
        return parse_rider(self.rider_parser, rider_text, self.state.people, self.notify)

    def import_rider(self, tour_id: str, rider_text: str) -> bool:
        """Parses a rider and applies the suggestions to the tour in one commit."""
        result = self.process_rider(rider_text)
        if result.is_empty:
            return False
        return self.dispatch("apply_rider_import", tour_id=tour_id, result=result)

    # --- queries -------------------------------------------------------------

    def tour(self, tour_id: str) -> Tour:
        tour = find_by_id(self.state.tours, tour_id)
        if tour is None:
            raise NotFound(f"No tour with id {tour_id!r}")
        return tour

    def selected_tour(self) -> Tour | None:
        """The selected tour as currently stored, not the snapshot taken at selection."""
        selected = self.state.selected_tour
        return find_by_id(self.state.tours, selected.id) if selected else None

    def events(self, tour_id: str) -> list[ScheduleEvent]:
        return self.state.schedule.get(tour_id, [])

    def visible_schedule(
        self, tour_id: str, user: Person | None = None
    ) -> dict[str, list[ScheduleEvent]]:
        """The tour's events visible to `user` (default: current user), grouped by date."""
        user = user or self.current_user
        return views.group_by_date(views.visible_events(self.events(tour_id), user))

    def crew(self, tour_id: str, sort_by: str = "name") -> list[Person]:
        return views.sort_crew(
            views.tour_crew(self.events(tour_id), self.state.people), by=sort_by
        )

    def tasks(self, tour_id: str, assignee: str = "all", status: str = "all") -> list:
        return views.filter_tasks(
            views.all_tasks(self.events(tour_id)), assignee=assignee, status=status
        )

    def budget(self, tour_id: str) -> views.BudgetSummary:
        return views.budget_summary(self.tour(tour_id))

    def person(self, email: str) -> Person | None:
        email = (email or "").lower()
        return next((p for p in self.state.people if p.email.lower() == email), None)

    def public_view(self, url_or_query: str) -> PublicView | None:
        return resolve_public_view(self.state, query_params(url_or_query))
