import csv
import io
import re
from pathlib import Path

from showrunner.errors import ValidationError
from showrunner.models import Attendee, RegistrationForm, Tour
from showrunner.views import filter_attendees, form_attendees

MULTI_VALUE_SEPARATOR = "; "
WHITESPACE = re.compile(r"\s")


def report_filename(tour: Tour, form: RegistrationForm) -> str:
    """`{tour name}_{form name}_attendees.csv`, with whitespace replaced by underscores."""
    tour_part = WHITESPACE.sub("_", tour.tour_name)
    form_part = WHITESPACE.sub("_", form.name)
    return f"{tour_part}_{form_part}_attendees.csv"


def response_text(attendee: Attendee, field_id: str) -> str:
    for response in attendee.responses:
        if response.field_id == field_id:
            if isinstance(response.value, list):
                return MULTI_VALUE_SEPARATOR.join(response.value)
            return str(response.value)
    return ""


def attendee_rows(form: RegistrationForm, attendees: list[Attendee]) -> list[list[str]]:
    """Header row, then one row per attendee: registration date and each field's answer."""
    rows = [["Registration Date", *(field.label for field in form.fields)]]
    for attendee in attendees:
        rows.append(
            [attendee.registration_date]
            + [response_text(attendee, field.id) for field in form.fields]
        )
    return rows


def attendees_csv(form: RegistrationForm, attendees: list[Attendee]) -> str:
    """
    Renders the attendee report as CSV text.

    Answers are always quoted with embedded double quotes doubled; the header
    is quoted only where needed.
    """
    header, *rows = attendee_rows(form, attendees)
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(header)
    csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n").writerows(rows)
    return buffer.getvalue()


def export_attendees(
    tour: Tour,
    form: RegistrationForm,
    output_dir: Path,
    filters: dict[str, str] | None = None,
) -> Path:
    """
    Writes a form's attendee report to `output_dir`.

    Args:
        tour: Tour owning the form.
        form: Form to report on.
        output_dir: Directory to write into; created if missing.
        filters: Optional field id to value filters; only matching attendees
            are reported.

    Returns:
        Path: The written file.

    Raises:
        ValidationError: If no attendee is left to report.
    """
    attendees = filter_attendees(form_attendees(tour, form.id), form, filters or {})
    if not attendees:
        raise ValidationError("No attendee data to download for this form.")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / report_filename(tour, form)
    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(attendees_csv(form, attendees))
    print(f"\n  Attendee report saved to {path}")
    return path
