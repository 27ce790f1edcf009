from pathlib import Path

import click
import pydantic
import questionary
import yaml

from showrunner import views
from showrunner.access import is_manager
from showrunner.app import load_service
from showrunner.config import Config, read_config
from showrunner.errors import NotFound, PermissionDenied, ValidationError
from showrunner.export import export_attendees
from showrunner.service import ShowRunner
from showrunner.utils import find_by_id


def load_config(ctx, param, value: Path) -> Config:
    try:
        return read_config(value)
    except (pydantic.ValidationError, yaml.YAMLError, ValueError) as e:
        raise click.BadParameter(f"Invalid config: {e}")
    except OSError as e:
        raise click.BadParameter(f"Failed to load config: {e}")


def ask_confirm(message: str) -> bool:
    return bool(questionary.confirm(message, default=False, qmark="").ask())


def service_from(ctx) -> ShowRunner:
    return load_service(ctx.obj["config"], confirm=ask_confirm)


def sign_in(service: ShowRunner, email: str, password: str | None) -> None:
    """Logs in, prompting for the password if not given; aborts on failure."""
    if password is None:
        password = questionary.password(f"\nPassword for {email}:", qmark="").ask()
    if not service.login(email, password or ""):
        raise click.ClickException(f"Could not sign in as {email}.")


def parse_filters(ctx, param, values) -> dict[str, str]:
    filters = {}
    for value in values:
        field_id, sep, wanted = value.partition("=")
        if not sep or not field_id:
            raise click.BadParameter(f"Expected FIELD_ID=VALUE, got {value!r}.")
        filters[field_id] = wanted
    return filters


def money(amount: float) -> str:
    return f"${amount:,.2f}"


def tour_or_fail(service: ShowRunner, tour_id: str):
    try:
        return service.tour(tour_id)
    except NotFound as e:
        raise click.ClickException(str(e))


@click.group(context_settings={"max_content_width": 120})
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path),
    callback=load_config,
    help="Path to workspace configuration file.",
)
@click.pass_context
def cli(ctx, config: Config):
    """Tour management from the command line."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.pass_context
def tours(ctx):
    """List tours with their status and remaining budget."""
    service = service_from(ctx)
    print()
    for tour in service.state.tours:
        remaining = views.remaining_budget(tour)
        print(
            f"  {tour.id} | {tour.artist_name} - {tour.tour_name} | {tour.status} | "
            f"{tour.start_date} to {tour.end_date} | {money(remaining)} remaining"
        )
    print()


@cli.command()
@click.argument("tour_id")
@click.option("--as", "email", default=None, help="Show the schedule as this person sees it.")
@click.pass_context
def schedule(ctx, tour_id: str, email: str | None):
    """Print a tour's schedule grouped by date."""
    service = service_from(ctx)
    tour_or_fail(service, tour_id)
    events = service.events(tour_id)
    if email:
        user = service.person(email)
        if user is None:
            raise click.ClickException(f"No person with email {email}.")
        events = views.visible_events(events, user)

    for date, day in views.group_by_date(events).items():
        print(f"\n  {date}")
        for event in day:
            times = "-".join(t for t in (event.start_time, event.end_time) if t)
            print(f"    {times or 'all day':<12} {event.type:<12} {event.title} @ {event.location}")
    print()


@cli.command()
@click.argument("tour_id")
@click.pass_context
def budget(ctx, tour_id: str):
    """Print budget totals and the per-category rollup."""
    service = service_from(ctx)
    tour = tour_or_fail(service, tour_id)
    summary = views.budget_summary(tour)
    print(f"\n  Total budget:    {money(summary.total_budget)}")
    print(f"  Approved spend:  {money(summary.approved_spend)}")
    print(f"  Remaining:       {money(summary.remaining)}")
    print(f"  Pending:         {money(summary.pending_spend)}\n")
    for row in views.category_rollup(tour):
        flag = "  OVER" if row.spent > row.budget else ""
        print(f"  {row.category:<20} {money(row.spent):>14} of {money(row.budget):>14}{flag}")
    print()


@cli.command("export-attendees")
@click.argument("tour_id")
@click.argument("form_id")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory to write the CSV report into.",
)
@click.option(
    "--filter",
    "filters",
    multiple=True,
    metavar="FIELD_ID=VALUE",
    callback=parse_filters,
    help="Only report attendees whose answer matches. Repeatable.",
)
@click.pass_context
def export_attendees_command(ctx, tour_id: str, form_id: str, output: Path, filters: dict):
    """Write a registration form's attendee report as CSV."""
    service = service_from(ctx)
    tour = tour_or_fail(service, tour_id)
    forms = tour.registration.forms if tour.registration else []
    form = find_by_id(forms, form_id)
    if form is None:
        raise click.ClickException(f"No form with id {form_id!r} on tour {tour_id}.")
    try:
        export_attendees(tour, form, output, filters)
    except ValidationError as e:
        raise click.ClickException(str(e))
    print()


@cli.command("import-rider")
@click.argument("tour_id")
@click.argument(
    "rider_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option("--as", "email", required=True, help="Tour Manager importing the rider.")
@click.option("--password", default=None, help="Password; prompted for when omitted.")
@click.pass_context
def import_rider(ctx, tour_id: str, rider_file: Path, email: str, password: str | None):
    """Parse a rider file and add its tasks and budget items to a tour."""
    service = service_from(ctx)
    tour_or_fail(service, tour_id)
    sign_in(service, email, password)

    try:
        result = service.process_rider(rider_file.read_text(encoding="utf-8"))
    except PermissionDenied as e:
        raise click.ClickException(str(e))
    if result.is_empty:
        print("\n  No tasks or budget items were found.\n")
        return

    print(f"\n  Suggested tasks ({len(result.tasks)}):")
    for task in result.tasks:
        print(f"    - {task.text} [{views.name_of(service.state.people, task.assigned_to)}]")
    print(f"\n  Suggested budget items ({len(result.budget_items)}):")
    for item in result.budget_items:
        print(f"    - {item.category}: {money(item.amount)}")

    if service.dispatch("apply_rider_import", tour_id=tour_id, result=result):
        print("\n  Rider import applied.\n")


@cli.command("open")
@click.argument("url_or_query")
@click.pass_context
def open_view(ctx, url_or_query: str):
    """Resolve a public website or registration form link."""
    service = service_from(ctx)
    view = service.public_view(url_or_query)
    if view is None:
        raise click.ClickException("Nothing public at that link.")
    if view.type == "website":
        print(f"\n  {view.tour.artist_name} - {view.tour.tour_name}")
        for section in view.tour.website or []:
            title = section.content.headline or section.content.title or ""
            print(f"    [{section.type}] {title}".rstrip())
    else:
        print(f"\n  {view.form.name} ({view.tour.tour_name})")
        for field in view.form.fields:
            required = " *" if field.required else ""
            print(f"    {field.label}{required} ({field.type})")
    print()


@cli.command()
@click.argument("tour_id")
@click.argument("rfp_id")
@click.option("--as", "email", required=True, help="Tour Manager awarding the RFP.")
@click.option("--password", default=None, help="Password; prompted for when omitted.")
@click.pass_context
def award(ctx, tour_id: str, rfp_id: str, email: str, password: str | None):
    """Mark an RFP as awarded."""
    service = service_from(ctx)
    tour = tour_or_fail(service, tour_id)
    rfp = find_by_id(tour.rfps or [], rfp_id)
    if rfp is None:
        raise click.ClickException(f"No RFP with id {rfp_id!r} on tour {tour_id}.")
    sign_in(service, email, password)
    try:
        service.dispatch("award_proposal", tour_id=tour_id, rfp_id=rfp_id)
    except PermissionDenied as e:
        raise click.ClickException(str(e))
    print(f"\n  {rfp.title} awarded.\n")


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def reset(ctx, yes: bool):
    """Delete all persisted data; the next run starts from the default dataset."""
    config = ctx.obj["config"]
    if not yes and not ask_confirm(f"Delete all data in {config.state_dir}?"):
        return
    service = load_service(config)
    service.store.storage.clear()
    print(f"\n  Cleared {config.state_dir}\n")


def choose_tour(service: ShowRunner) -> str | None:
    labels = {f"{t.artist_name} - {t.tour_name}": t.id for t in service.state.tours}
    if not labels:
        print("\n  No tours yet.")
        return None
    choice = questionary.select(
        "\nTour:", choices=list(labels), qmark="", instruction=" "
    ).ask()
    if choice is None:
        return None
    service.dispatch("select_tour", tour_id=labels[choice])
    return labels[choice]


def choose_tasks(service: ShowRunner, tour_id: str) -> list[tuple[str, str]]:
    user = service.current_user
    assignee = "all" if is_manager(user) else user.id
    tasks = service.tasks(tour_id, assignee=assignee)
    if not tasks:
        print("\n  No tasks.")
        return []
    choices = [
        questionary.Choice(
            f"[{'x' if t.completed else ' '}] {t.event_date} {t.text} ({t.event_title})",
            value=t.selection,
        )
        for t in tasks
    ]
    return questionary.checkbox("\nTasks:", choices=choices, qmark="").ask() or []


@cli.command()
@click.pass_context
def interactive(ctx):
    """Sign in and work through a menu of common actions."""
    service = service_from(ctx)

    email = questionary.text("\nEmail:", qmark="").ask()
    sign_in(service, email or "", None)
    user = service.current_user
    print(f"\n  Signed in as {user.name} ({user.role})")

    tour_id = choose_tour(service)
    if tour_id is None:
        return

    choices = [
        "Show schedule",
        "Show my tasks",
        "Toggle tasks",
        "Delete tasks",
        "Add a comment to an event",
        "Submit an expense",
        "Show budget",
        "Select another tour",
        "Quit",
    ]

    while True:

        print(f"\n---")

        choice = questionary.select(
            "\nAction:",
            choices=choices,
            qmark="",
            instruction=" ",
        ).ask()

        try:
            if choice == "Show schedule":
                for date, day in service.visible_schedule(tour_id).items():
                    print(f"\n  {date}")
                    for event in day:
                        permission = views.permission_for(event, service.current_user)
                        print(f"    {event.start_time or '--:--'} {event.title} ({permission})")

            if choice == "Show my tasks":
                for task in service.tasks(tour_id, assignee=service.current_user.id):
                    mark = "x" if task.completed else " "
                    print(f"  [{mark}] {task.event_date} {task.text} ({task.event_title})")

            if choice == "Toggle tasks":
                selection = choose_tasks(service, tour_id)
                if selection:
                    service.dispatch("bulk_toggle_tasks", tour_id=tour_id, selection=selection)

            if choice == "Delete tasks":
                selection = choose_tasks(service, tour_id)
                if selection:
                    service.dispatch("bulk_delete_tasks", tour_id=tour_id, selection=selection)

            if choice == "Add a comment to an event":
                events = {
                    f"{e.date} {e.title}": e.id
                    for e in views.visible_events(service.events(tour_id), service.current_user)
                }
                label = questionary.select(
                    "\nEvent:", choices=list(events), qmark="", instruction=" "
                ).ask()
                if label is None:
                    continue
                text = questionary.text("\nComment:", qmark="").ask()
                service.dispatch(
                    "add_comment", tour_id=tour_id, event_id=events[label], text=text
                )

            if choice == "Submit an expense":
                tour = service.tour(tour_id)
                data = {
                    "description": questionary.text("\nDescription:", qmark="").ask(),
                    "amount": questionary.text(
                        "\nAmount:", qmark="", validate=lambda v: v.replace(".", "", 1).isdigit()
                    ).ask(),
                    "category": questionary.autocomplete(
                        "\nCategory:", choices=views.budget_categories(tour), qmark=""
                    ).ask(),
                }
                if service.dispatch("save_expense", tour_id=tour_id, data=data):
                    print("\n  Expense submitted for approval.")

            if choice == "Show budget":
                summary = service.budget(tour_id)
                print(f"\n  {money(summary.remaining)} of {money(summary.total_budget)} remaining")
                print(f"  {money(summary.pending_spend)} pending approval")

            if choice == "Select another tour":
                tour_id = choose_tour(service) or tour_id

            if choice == "Quit" or choice is None:
                service.logout()
                print(f"\nSigned out.\n")
                return

        except PermissionDenied as e:
            print(f"\n  {e}")


if __name__ == "__main__":
    cli()
