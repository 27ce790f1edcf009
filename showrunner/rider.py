"""
Rider import: turns a free-text artist rider into suggested tasks and budget lines.

The language model is called once per rider through the OpenAI chat API and is
asked for JSON only. Anything other than a well-formed answer is an import
failure that the caller sees as a single message and an empty result.
"""

import json
import logging
import os

import openai
from pydantic import ValidationError as PydanticValidationError

from showrunner.errors import RiderImportError
from showrunner.models import Person, RiderParseResult

logger = logging.getLogger(__name__)

ASSIGNEE_ROLES = ("Production", "Tour Manager")
DEFAULT_MODEL = "gpt-4o-mini"

SYSTEM_PROMPT = (
    "You are an expert tour manager's assistant. Always respond with valid JSON."
)

PROMPT_TEMPLATE = """Analyze an artist's technical rider and extract actionable tasks and budget items.

Instructions:
1. Read the provided rider text carefully.
2. Identify specific, actionable tasks related to production, gear, hospitality, or logistics.
   For each task, write a concise description and assign it to the most relevant person
   from the list of production staff below, using their ID.
3. Identify specific items that will incur a cost. For each, choose a logical category
   (e.g. 'Production', 'Hospitality', 'Equipment Rental') and estimate the cost if possible,
   otherwise use 0.

Available production staff for task assignment:
{assignees}

Respond with JSON only, in exactly this shape:
{{
    "tasks": [{{"text": "task description", "assignedTo": "person id"}}],
    "budgetItems": [{{"category": "category name", "amount": 0}}]
}}

Rider text to analyze:
---
{rider_text}
---"""


def assignee_roster(people: list[Person]) -> list[Person]:
    """People a rider task may be assigned to."""
    return [p for p in people if p.role in ASSIGNEE_ROLES]


def build_prompt(rider_text: str, roster: list[Person]) -> str:
    assignees = ", ".join(f'"{p.id}" ({p.name})' for p in roster)
    return PROMPT_TEMPLATE.format(assignees=assignees, rider_text=rider_text)


def parse_response(text: str | None, roster: list[Person]) -> RiderParseResult:
    """
    Validates the raw model answer against the rider result schema.

    Args:
        text: Message content returned by the model.
        roster: People the tasks may be assigned to.

    Returns:
        RiderParseResult: The parsed suggestions.

    Raises:
        RiderImportError: If the answer is not a JSON object with `tasks` and
            `budgetItems`, or a task is assigned outside the roster.
    """
    text = (text or "").strip()
    if not (text.startswith("{") and text.endswith("}")):
        raise RiderImportError("Invalid JSON format from AI response.")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RiderImportError("Invalid JSON format from AI response.") from e
    if "tasks" not in data or "budgetItems" not in data:
        raise RiderImportError("AI response is missing tasks or budget items.")
    try:
        result = RiderParseResult.model_validate(data)
    except PydanticValidationError as e:
        raise RiderImportError("AI response does not match the expected format.") from e

    known = {p.id for p in roster}
    for task in result.tasks:
        if task.assigned_to not in known:
            raise RiderImportError(
                f"AI response assigned a task to unknown person {task.assigned_to!r}."
            )
    return result


class RiderParser:
    """
    Client for the rider parsing service.

    Args:
        api_key (str or None): OpenAI API key; falls back to `OPENAI_API_KEY`.
        model (str): Chat model name.
        client: Preconfigured OpenAI client, mainly for tests.
    """

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_MODEL, client=None):
        self.api_key = api_key
        self.model = model
        self._client = client

    def client(self):
        """The OpenAI client, created on first use."""
        if self._client is not None:
            return self._client
        api_key = self.api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise RiderImportError(
                "AI service is not configured. Please set OPENAI_API_KEY in your "
                "environment or .env file."
            )
        self._client = openai.OpenAI(api_key=api_key)
        return self._client

    def parse(self, rider_text: str, people: list[Person]) -> RiderParseResult:
        """
        Sends one rider to the model and validates the answer.

        Raises:
            RiderImportError: On missing credentials, transport errors, or a
                malformed answer.
        """
        roster = assignee_roster(people)
        client = self.client()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(rider_text, roster)},
                ],
                response_format={"type": "json_object"},
                temperature=0.2,
            )
        except openai.OpenAIError as e:
            raise RiderImportError(f"AI service request failed: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise RiderImportError("AI service returned an empty response.") from e
        return parse_response(content, roster)


def parse_rider(parser: RiderParser, rider_text: str, people: list[Person], notify) -> RiderParseResult:
    """
    Parses a rider, reporting any failure through `notify`.

    Args:
        parser (RiderParser): Service client.
        rider_text (str): Free-text rider.
        people (list[Person]): Everyone; the assignee roster is drawn from it.
        notify (callable): User-facing message hook.

    Returns:
        RiderParseResult: Parsed suggestions, or an empty result after a failure.
    """
    try:
        return parser.parse(rider_text, people)
    except RiderImportError as e:
        logger.error("Rider import failed: %s", e.__cause__ or e)
        notify(f"Failed to process rider: {e}")
        return RiderParseResult()
