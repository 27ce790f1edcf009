"""Client-side credential checks and session selection."""

from showrunner.access import anyone, signed_in
from showrunner.errors import ValidationError
from showrunner.models import Person, StoreState
from showrunner.operations._registry import register
from showrunner.operations._state import get_tour
from showrunner.utils import build, new_id, replace_by_id, shallow_merge

MIN_PASSWORD_LENGTH = 6


def avatar_url(person_id: str) -> str:
    return f"https://i.pravatar.cc/150?u={person_id}"


def find_by_email(people: list[Person], email: str) -> Person | None:
    """Email lookups are case-insensitive."""
    email = (email or "").strip().lower()
    for person in people:
        if person.email.lower() == email:
            return person
    return None


def check_new_password(password: str, confirm_password: str) -> None:
    if password != confirm_password:
        raise ValidationError("Passwords do not match.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )


@register(access=anyone)
def login(state: StoreState, email: str, password: str) -> StoreState:
    if not email or not password:
        raise ValidationError("Please enter both email and password.")
    user = find_by_email(state.people, email)
    if user is None or user.password != password:
        raise ValidationError("Invalid email or password.")
    return state.model_copy(update={"current_user": user})


@register(access=anyone)
def logout(state: StoreState) -> StoreState:
    return state.model_copy(update={"current_user": None})


@register(access=anyone)
def register_account(
    state: StoreState, name: str, email: str, password: str, confirm_password: str
) -> StoreState:
    """Self sign-up. The new account is an active Tour Manager and is logged in."""
    if not name or not email or not password:
        raise ValidationError("Please fill out all fields.")
    check_new_password(password, confirm_password)
    if find_by_email(state.people, email) is not None:
        raise ValidationError("An account with this email already exists.")

    person_id = new_id("person")
    user = build(
        Person,
        {
            "id": person_id,
            "name": name,
            "email": email,
            "password": password,
            "role": "Tour Manager",
            "status": "active",
            "avatar_url": avatar_url(person_id),
        },
    )
    return state.model_copy(
        update={"people": [*state.people, user], "current_user": user}
    )


@register(access=anyone)
def set_password(
    state: StoreState, email: str, password: str, confirm_password: str
) -> StoreState:
    """
    Accepts an invitation: a pending person gets a password and becomes active,
    then is logged in with it.
    """
    check_new_password(password, confirm_password)
    invited = find_by_email(state.people, email)
    if invited is None or invited.status != "pending_invitation":
        raise ValidationError("No pending invitation found for this email.")

    activated = shallow_merge(invited, {"password": password, "status": "active"})
    state = state.model_copy(
        update={
            "people": replace_by_id(state.people, invited.id, lambda p: activated)
        }
    )
    return login(state, email=email, password=password)


@register(access=signed_in)
def select_tour(state: StoreState, tour_id: str) -> StoreState:
    return state.model_copy(update={"selected_tour": get_tour(state, tour_id)})


@register(access=anyone)
def deselect_tour(state: StoreState) -> StoreState:
    return state.model_copy(update={"selected_tour": None})
