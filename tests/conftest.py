import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from showrunner.rider import RiderParser
from showrunner.service import ShowRunner
from showrunner.store import EntityStore, JsonBlobStorage, load_default_dataset

MANAGER = "alex@showrunner.app"
PRODUCTION = "jordan@showrunner.app"
CREW = "casey@showrunner.app"
PASSWORD = "password123"


class NoticeRecorder:
    """Record notify calls for assertions."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


class ConfirmRecorder:
    """Record confirm prompts and return the configured response."""

    def __init__(self) -> None:
        self.prompts: list[str] = []
        self.response = True

    def __call__(self, message: str) -> bool:
        self.prompts.append(message)
        return self.response


class RecordingStorage(JsonBlobStorage):
    """Blob storage that remembers which keys were written."""

    def __init__(self, state_dir: Path) -> None:
        super().__init__(state_dir)
        self.written: list[str] = []

    def set(self, key: str, blob: str) -> None:
        self.written.append(key)
        super().set(key, blob)


class FakeCompletions:
    """Stands in for `client.chat.completions`, answering with queued content."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.content: str | None = None
        self.error: Exception | None = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAIClient:
    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    def answer(self, payload: dict) -> None:
        self.completions.content = json.dumps(payload)


@pytest.fixture
def notices() -> NoticeRecorder:
    return NoticeRecorder()


@pytest.fixture
def confirms() -> ConfirmRecorder:
    return ConfirmRecorder()


@pytest.fixture
def ai_client() -> FakeOpenAIClient:
    return FakeOpenAIClient()


@pytest.fixture
def storage(tmp_path: Path) -> RecordingStorage:
    return RecordingStorage(tmp_path / "state")


@pytest.fixture
def service(storage, notices, confirms, ai_client) -> ShowRunner:
    store = EntityStore(storage, defaults=load_default_dataset())
    return ShowRunner(
        store,
        notify=notices,
        confirm=confirms,
        rider_parser=RiderParser(client=ai_client),
    )


def login_as(service: ShowRunner, email: str, password: str = PASSWORD) -> None:
    assert service.login(email, password), f"could not log in as {email}"


def event(service: ShowRunner, event_id: str, tour_id: str = "tour-01"):
    return next(e for e in service.events(tour_id) if e.id == event_id)
