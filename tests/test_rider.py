import json
import logging

import openai
import pytest
from conftest import CREW, MANAGER, NoticeRecorder, login_as

from showrunner.errors import PermissionDenied, RiderImportError
from showrunner.operations.rider import IMPORT_EVENT_TITLE
from showrunner.rider import RiderParser, assignee_roster, parse_response, parse_rider

RIDER = """
Stage left monitor world needs 2 extra wedges.
Hospitality: fresh fruit and 24 bottles of still water in the green room.
"""

ANSWER = {
    "tasks": [
        {"text": "Source 2 extra monitor wedges", "assignedTo": "person-4"},
        {"text": "Stock green room with fruit and water", "assignedTo": "person-1"},
    ],
    "budgetItems": [
        {"category": "Equipment Rental", "amount": 400},
        {"category": "Hospitality", "amount": 150.5},
    ],
}


class TestParseResponse:
    """Validation of the model answer"""

    @pytest.fixture
    def roster(self, service):
        return assignee_roster(service.state.people)

    def test_roster_is_production_staff(self, roster):
        assert [p.id for p in roster] == ["person-1", "person-4"]

    def test_valid_answer(self, roster):
        result = parse_response(json.dumps(ANSWER), roster)

        assert [t.assigned_to for t in result.tasks] == ["person-4", "person-1"]
        assert result.budget_items[1].amount == 150.5

    @pytest.mark.parametrize(
        "text, message",
        [
            ("Sure! Here are your tasks.", "Invalid JSON format"),
            ("{not json}", "Invalid JSON format"),
            (None, "Invalid JSON format"),
            ('{"tasks": []}', "missing tasks or budget items"),
            ('{"tasks": [{"text": "x"}], "budgetItems": []}', "does not match"),
            ('{"tasks": [{"text": "x", "assignedTo": "person-5"}], "budgetItems": []}', "unknown person"),
        ],
    )
    def test_rejections(self, roster, text, message):
        with pytest.raises(RiderImportError, match=message):
            parse_response(text, roster)


class TestRiderParser:
    """Requests to the chat completion API"""

    def test_request_shape(self, service, ai_client):
        ai_client.answer(ANSWER)
        parser = RiderParser(model="gpt-test", client=ai_client)

        parser.parse(RIDER, service.state.people)

        (call,) = ai_client.completions.calls
        assert call["model"] == "gpt-test"
        assert call["response_format"] == {"type": "json_object"}
        system, user = call["messages"]
        assert system["role"] == "system"
        assert '"person-4" (Jordan Davis)' in user["content"]
        assert "person-5" not in user["content"]
        assert "2 extra wedges" in user["content"]

    def test_service_error_becomes_import_error(self, service, ai_client):
        ai_client.completions.error = openai.OpenAIError("boom")
        parser = RiderParser(client=ai_client)

        with pytest.raises(RiderImportError, match="boom"):
            parser.parse(RIDER, service.state.people)

    def test_missing_api_key(self, service, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        notices = NoticeRecorder()

        result = parse_rider(RiderParser(), RIDER, service.state.people, notices)

        assert result.is_empty
        assert notices.messages == [
            "Failed to process rider: AI service is not configured. Please set "
            "OPENAI_API_KEY in your environment or .env file."
        ]

    def test_failure_is_logged(self, service, ai_client, caplog):
        ai_client.completions.content = "nope"

        with caplog.at_level(logging.ERROR, logger="showrunner.rider"):
            parse_rider(RiderParser(client=ai_client), RIDER, service.state.people, NoticeRecorder())

        assert any("Rider import failed" in r.getMessage() for r in caplog.records)


class TestImportRider:
    """Parsing and applying a rider through the service"""

    def test_manager_imports_rider(self, service, ai_client):
        login_as(service, MANAGER)
        ai_client.answer(ANSWER)
        budget_before = service.tour("tour-01").financials.budget

        assert service.import_rider("tour-01", RIDER)

        created = service.events("tour-01")[-1]
        assert created.title == IMPORT_EVENT_TITLE
        assert created.type == "Load-in"
        assert created.date == "2024-08-01"
        assert created.start_time == "09:00"
        assert [(a.person_id, a.permission) for a in created.assigned_to] == [
            ("person-1", "write")
        ]
        assert [t.text for t in created.tasks] == [
            "Source 2 extra monitor wedges",
            "Stock green room with fruit and water",
        ]
        assert not any(t.completed for t in created.tasks)

        budget = service.tour("tour-01").financials.budget
        assert budget[: len(budget_before)] == budget_before
        assert [(b.category, b.amount) for b in budget[len(budget_before):]] == [
            ("Equipment Rental", 400),
            ("Hospitality", 150.5),
        ]
        assert service.budget("tour-01").total_budget == 75550.5

    def test_budget_only_answer_still_creates_event(self, service, ai_client):
        login_as(service, MANAGER)
        ai_client.answer({"tasks": [], "budgetItems": [{"category": "Catering", "amount": 80}]})

        assert service.import_rider("tour-02", RIDER)

        (created,) = service.events("tour-02")
        assert created.tasks == []
        assert created.date == "2024-11-01"

    def test_empty_answer_changes_nothing(self, service, ai_client, storage):
        login_as(service, MANAGER)
        ai_client.answer({"tasks": [], "budgetItems": []})
        storage.written.clear()

        assert not service.import_rider("tour-01", RIDER)
        assert storage.written == []

    def test_malformed_answer_is_reported(self, service, ai_client, notices):
        login_as(service, MANAGER)
        ai_client.completions.content = "I could not read that rider."
        events_before = service.events("tour-01")

        assert not service.import_rider("tour-01", RIDER)

        assert notices.messages == [
            "Failed to process rider: Invalid JSON format from AI response."
        ]
        assert service.events("tour-01") is events_before

    def test_blank_rider_is_not_sent(self, service, ai_client, notices):
        login_as(service, MANAGER)

        result = service.process_rider("   ")

        assert result.is_empty
        assert ai_client.completions.calls == []
        assert notices.messages == ["Please paste the rider text to analyze."]

    def test_crew_may_not_import(self, service, ai_client):
        login_as(service, CREW)
        ai_client.answer(ANSWER)

        with pytest.raises(PermissionDenied):
            service.import_rider("tour-01", RIDER)
        assert ai_client.completions.calls == []
