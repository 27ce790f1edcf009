import time
import uuid
from datetime import date, datetime, timezone

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from showrunner.errors import ValidationError


def new_id(prefix: str) -> str:
    """
    Synthesizes a collection-unique identifier.

    Identifiers are the creation time in milliseconds plus a short random
    suffix, so two entities created within the same millisecond still differ.

    Args:
        prefix (str): Entity prefix, e.g. "event" or "task".

    Returns:
        str: Identifier such as "event-1723900000000-3fa9c2".
    """
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return date.today().isoformat()


def parse_date(value: str) -> date | None:
    """
    Parses the date portion of an ISO date or timestamp string.

    Returns:
        date or None: None when the value cannot be parsed.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def field_names(model_cls: type[BaseModel], patch: dict) -> dict:
    """
    Maps a patch keyed by field names or camelCase aliases onto field names.

    Args:
        model_cls: Target pydantic model class.
        patch (dict): Partial field values.

    Returns:
        dict: The same values keyed by python field name.
    """
    aliases = {
        info.alias: name
        for name, info in model_cls.model_fields.items()
        if info.alias is not None
    }
    return {aliases.get(key, key): value for key, value in patch.items()}


def shallow_merge(model: BaseModel, patch: dict) -> BaseModel:
    """
    Replaces `model` with a copy whose top-level fields are overridden by `patch`.

    Nested values are taken as given: untouched fields keep the very same
    objects, and a patched nested object replaces the old one wholesale.

    Raises:
        ValidationError: If the merged object is not a valid instance.
    """
    model_cls = type(model)
    patch = field_names(model_cls, patch)
    current = {name: getattr(model, name) for name in model_cls.model_fields}
    merged = build(model_cls, {**current, **patch})
    # validation copies containers, so put the untouched originals back
    untouched = {name: value for name, value in current.items() if name not in patch}
    return merged.model_copy(update=untouched)


def build(model_cls: type[BaseModel], data: dict) -> BaseModel:
    """
    Validates `data` into `model_cls`, reporting failures as user-facing errors.

    Raises:
        ValidationError: If `data` does not describe a valid instance.
    """
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc']) or 'value'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid {model_cls.__name__}: {problems}") from e


def require(**values) -> None:
    """
    Presence check for free-text inputs.

    Raises:
        ValidationError: If any value is None or blank.
    """
    for value in values.values():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError("Please fill out all required fields.")


def replace_by_id(items: list, item_id: str, replace) -> list:
    """
    Returns a new list where the item with `item_id` is replaced by `replace(item)`.

    All other items are carried over as the same objects.
    """
    return [replace(item) if item.id == item_id else item for item in items]


def remove_by_id(items: list, item_id: str) -> list:
    """Returns a new list without the item whose id is `item_id`."""
    return [item for item in items if item.id != item_id]


def find_by_id(items: list, item_id: str | None):
    """Returns the item whose id is `item_id`, or None."""
    for item in items or []:
        if item.id == item_id:
            return item
    return None


def sort_by_keys(items: list, keys_with_order: list[tuple[str, bool]]) -> list:
    """
    Performs a multi-key sort on a list of objects.

    Args:
        items (list): Objects to sort.
        keys_with_order (list[tuple[str, bool]]): List of (attribute, ascending) tuples.

    Returns:
        list: New list sorted by the given attributes.
    """
    items = list(items)

    for key, ascending in reversed(keys_with_order):
        items.sort(key=lambda item: getattr(item, key), reverse=not ascending)

    return items
