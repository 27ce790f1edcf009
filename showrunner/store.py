"""Entity store and key/blob persistence.

Each collection is serialized on its own under a fixed key. There is no
transaction across keys: a failure between two writes leaves the blobs as
they are, and the next load reads each key independently.
"""

import json
import logging
from importlib import resources
from pathlib import Path

import yaml
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from showrunner import data
from showrunner.models import StoreState

logger = logging.getLogger(__name__)

DEFAULT_DATASET = "default_dataset.yaml"

# persisted key -> StoreState field name
STORE_KEYS = {
    "tours": "tours",
    "people": "people",
    "schedule": "schedule",
    "suppliers": "suppliers",
    "currentUser": "current_user",
    "selectedTour": "selected_tour",
}

_adapters = {
    key: TypeAdapter(StoreState.model_fields[name].annotation)
    for key, name in STORE_KEYS.items()
}


class JsonBlobStorage:
    """
    A directory of JSON documents, one file per key.

    Attributes:
        state_dir (Path): Directory holding `<key>.json` files.
    """

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)

    def __repr__(self):
        return f"JsonBlobStorage({self.state_dir})"

    def path(self, key: str) -> Path:
        return self.state_dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        """Returns the stored blob for `key`, or None when nothing is stored."""
        path = self.path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, blob: str) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.path(key).write_text(blob, encoding="utf-8")

    def remove(self, key: str) -> None:
        self.path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        for key in STORE_KEYS:
            self.remove(key)


def load_default_dataset() -> dict:
    """
    Reads the bundled default dataset.

    Returns:
        dict: Raw collections keyed by persisted key (camelCase records).
    """
    with resources.files(data).joinpath(DEFAULT_DATASET).open(
        "r", encoding="utf-8"
    ) as f:
        return yaml.safe_load(f) or {}


def serialize(key: str, value) -> str:
    """Encodes one collection the way it is persisted under `key`."""
    return _adapters[key].dump_json(value, by_alias=True, exclude_none=True).decode(
        "utf-8"
    )


def deserialize(key: str, blob: str):
    """
    Decodes one persisted collection.

    Raises:
        ValueError: If the blob is not valid JSON or does not match the collection type.
    """
    return _adapters[key].validate_python(json.loads(blob))


class EntityStore:
    """
    In-memory source of truth for tours, people, schedules and suppliers.

    The current snapshot is `state`; `commit` swaps in a new snapshot and
    writes only the keys whose collection object changed.

    Attributes:
        storage (JsonBlobStorage): Blob persistence backend.
        defaults (dict): Raw fallback collections keyed by persisted key.
        state (StoreState): Current snapshot.
    """

    def __init__(self, storage: JsonBlobStorage, defaults: dict | None = None):
        self.storage = storage
        self.defaults = defaults or {}
        self.state = self.load()

    def __repr__(self):
        return f"EntityStore({self.storage!r})"

    def default_for(self, key: str):
        return _adapters[key].validate_python(
            self.defaults.get(key, StoreState.model_fields[STORE_KEYS[key]].get_default(
                call_default_factory=True
            ))
        )

    def load_key(self, key: str):
        """
        Reads one key, falling back to its default when absent or unreadable.

        A parse failure is logged and otherwise swallowed.
        """
        try:
            blob = self.storage.get(key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %r, using default: %s", key, e)
            blob = None

        if blob is None:
            return self.default_for(key)

        try:
            return deserialize(key, blob)
        except (ValueError, PydanticValidationError) as e:
            logger.warning("Discarding unreadable %r blob, using default: %s", key, e)
            return self.default_for(key)

    def load(self) -> StoreState:
        """Reads every key independently and assembles a snapshot."""
        values = {name: self.load_key(key) for key, name in STORE_KEYS.items()}

        # a selection that points at a tour which no longer exists is dropped
        selected = values["selected_tour"]
        if selected is not None and not any(t.id == selected.id for t in values["tours"]):
            values["selected_tour"] = None

        return StoreState(**values)

    def commit(self, new_state: StoreState) -> list[str]:
        """
        Replaces the current snapshot and persists the changed keys.

        Write failures are logged; the in-memory snapshot is kept either way.

        Returns:
            list[str]: Persisted keys that were written.
        """
        changed = [
            key
            for key, name in STORE_KEYS.items()
            if getattr(new_state, name) is not getattr(self.state, name)
        ]
        self.state = new_state
        for key in changed:
            self.write(key)
        return changed

    def write(self, key: str) -> None:
        value = getattr(self.state, STORE_KEYS[key])
        try:
            self.storage.set(key, serialize(key, value))
        except OSError as e:
            logger.error("Could not persist %r: %s", key, e)

    def save_all(self) -> None:
        """Writes every key, e.g. to materialize the defaults on disk."""
        for key in STORE_KEYS:
            self.write(key)
