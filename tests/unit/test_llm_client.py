"""Tests for the JSON LLM clients.

All tests are deterministic and do not make real network calls.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import SecretStr

from backend.app.budget.normalizer import normalize_day_plan
from backend.app.config import Settings
from backend.app.llm.client import (
    DAY_BUDGET_AGENT,
    DAY_PLANNER_AGENT,
    TRIP_BUDGET_AGENT,
    DeterministicStubClient,
    LLMCallError,
    OpenAIJsonClient,
    extract_json,
    get_llm_client,
    make_reviser,
)


def _completion(content: str | None) -> MagicMock:
    """Shape of a chat completion response carrying content."""
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.mark.asyncio
async def test_stub_drafts_deterministic_day() -> None:
    """Test that DeterministicStubClient produces the same draft every time."""
    client = DeterministicStubClient()
    payload = {"day": 2, "date": "2025-04-02", "area": "Gion", "theme": "night"}

    first = await client.complete_json(agent=DAY_PLANNER_AGENT, system_prompt="", payload=payload)
    second = await client.complete_json(agent=DAY_PLANNER_AGENT, system_prompt="", payload=payload)

    assert first == second
    assert first["day"] == 2
    assert first["area"] == "Gion"
    assert len(first["schedule"]) == 3
    assert normalize_day_plan(first).total_cost == 4500


@pytest.mark.asyncio
async def test_stub_falls_back_to_destination_for_area() -> None:
    client = DeterministicStubClient()

    draft = await client.complete_json(
        agent=DAY_PLANNER_AGENT, system_prompt="", payload={"destination": "Nara"}
    )

    assert draft["area"] == "Nara"
    assert draft["schedule"][0]["activity_name"].startswith("Nara")


@pytest.mark.asyncio
@pytest.mark.parametrize("agent", [TRIP_BUDGET_AGENT, DAY_BUDGET_AGENT])
async def test_stub_never_revises(agent: str) -> None:
    client = DeterministicStubClient()

    assert await client.complete_json(agent=agent, system_prompt="", payload={}) == {}


def test_extract_json_from_surrounding_text() -> None:
    assert extract_json('Here you go:\n```json\n{"a": {"b": 1}}\n```') == {"a": {"b": 1}}


@pytest.mark.parametrize("text", ["", "no braces", "{not json}", "} backwards {", "[1, 2]"])
def test_extract_json_returns_none(text: str) -> None:
    assert extract_json(text) is None


def test_factory_returns_stub_without_key() -> None:
    client = get_llm_client(Settings(openai_api_key=None))
    assert isinstance(client, DeterministicStubClient)


def test_factory_returns_stub_for_empty_key() -> None:
    client = get_llm_client(Settings(openai_api_key=SecretStr("")))
    assert isinstance(client, DeterministicStubClient)


@patch("backend.app.llm.client.AsyncOpenAI")
def test_factory_returns_openai_with_key(mock_openai: MagicMock) -> None:
    settings = Settings(openai_api_key=SecretStr("sk-test"), openai_model="gpt-4o-mini")

    client = get_llm_client(settings)

    assert isinstance(client, OpenAIJsonClient)
    assert client.model == "gpt-4o-mini"
    mock_openai.assert_called_once_with(api_key="sk-test", timeout=settings.llm_timeout_seconds)


@pytest.mark.asyncio
@patch("backend.app.llm.client.AsyncOpenAI")
async def test_openai_client_parses_json(mock_openai: MagicMock) -> None:
    create = AsyncMock(return_value=_completion('{"itinerary": []}'))
    mock_openai.return_value.chat.completions.create = create
    client = OpenAIJsonClient(api_key="test_key")

    result = await client.complete_json(
        agent=TRIP_BUDGET_AGENT, system_prompt="sys", payload={"x": "円"}, model="gpt-4o-mini"
    )

    assert result == {"itinerary": []}
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
    assert "円" in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
@patch("backend.app.llm.client.AsyncOpenAI")
async def test_openai_client_extracts_embedded_json(mock_openai: MagicMock) -> None:
    mock_openai.return_value.chat.completions.create = AsyncMock(
        return_value=_completion('Sure! {"schedule": []} Hope that helps.')
    )
    client = OpenAIJsonClient(api_key="test_key")

    result = await client.complete_json(agent=DAY_BUDGET_AGENT, system_prompt="", payload={})

    assert result == {"schedule": []}


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "not json at all", "[1, 2, 3]"])
@patch("backend.app.llm.client.AsyncOpenAI")
async def test_openai_client_unusable_content_returns_empty(
    mock_openai: MagicMock, content: str | None
) -> None:
    mock_openai.return_value.chat.completions.create = AsyncMock(
        return_value=_completion(content)
    )
    client = OpenAIJsonClient(api_key="test_key")

    assert await client.complete_json(agent=DAY_BUDGET_AGENT, system_prompt="", payload={}) == {}


@pytest.mark.asyncio
@patch("backend.app.llm.client.AsyncOpenAI")
async def test_openai_client_wraps_transport_errors(mock_openai: MagicMock) -> None:
    mock_openai.return_value.chat.completions.create = AsyncMock(
        side_effect=ConnectionError("reset")
    )
    client = OpenAIJsonClient(api_key="test_key")

    with pytest.raises(LLMCallError, match="day-planner request failed"):
        await client.complete_json(agent=DAY_PLANNER_AGENT, system_prompt="", payload={})


@pytest.mark.asyncio
async def test_make_reviser_forwards_to_client() -> None:
    client = MagicMock()
    client.complete_json = AsyncMock(return_value={"schedule": []})
    reviser = make_reviser(client, DAY_BUDGET_AGENT, model="gpt-4o-mini")

    result = await reviser("system text", {"budget_per_day": 3000})

    assert result == {"schedule": []}
    client.complete_json.assert_awaited_once_with(
        agent=DAY_BUDGET_AGENT,
        system_prompt="system text",
        payload={"budget_per_day": 3000},
        model="gpt-4o-mini",
    )
