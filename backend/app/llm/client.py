"""LLM client for day-plan drafting and budget revision with OpenAI integration.

Security: Reads API key from settings/environment only, never hardcoded.
Provides a deterministic fallback when no key is present for testing.
"""

import json
import logging
from typing import Any, Protocol

from openai import AsyncOpenAI

from backend.app.budget.reconciler import ReviseFn
from backend.app.config import Settings, get_settings

logger = logging.getLogger(__name__)

DAY_PLANNER_AGENT = "day-planner"
TRIP_BUDGET_AGENT = "trip-budget"
DAY_BUDGET_AGENT = "day-budget"


class LLMCallError(Exception):
    """LLM request failed or returned an unusable body."""

    pass


def extract_json(text: str) -> dict[str, Any] | None:
    """Parse the outermost {...} object embedded in text, if any."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class JsonLLMClient(Protocol):
    """Protocol for JSON-in/JSON-out LLM client implementations."""

    async def complete_json(
        self,
        *,
        agent: str,
        system_prompt: str,
        payload: dict[str, Any],
        model: str | None = None,
    ) -> dict[str, Any]:
        """Send payload under system_prompt and return the parsed JSON object.

        Args:
            agent: Caller label (day-planner, trip-budget, day-budget)
            system_prompt: System instruction
            payload: JSON-serializable input shown to the model
            model: Optional model override

        Returns:
            Parsed JSON object ({} when the model returned nothing usable)
        """
        ...


class DeterministicStubClient:
    """Deterministic stub client for testing (no API key required).

    Drafts a fixed three-item day for the day planner and never proposes a
    revision (returns {}), so reconciliation stops after one attempt.
    """

    async def complete_json(
        self,
        *,
        agent: str,
        system_prompt: str,
        payload: dict[str, Any],
        model: str | None = None,
    ) -> dict[str, Any]:
        """Generate deterministic stub output."""
        if agent != DAY_PLANNER_AGENT:
            return {}

        area = str(payload.get("area") or payload.get("destination") or "")
        return {
            "day": payload.get("day"),
            "date": payload.get("date") or "",
            "area": area,
            "theme": payload.get("theme") or "",
            "schedule": [
                {
                    "time": "10:00",
                    "activity_name": f"{area} walking tour (stub)".strip(),
                    "type": "activity",
                    "description": "Stub activity generated without LLM",
                    "price": "無料",
                    "url": "",
                },
                {
                    "time": "12:30",
                    "activity_name": "Local lunch (stub)",
                    "type": "meal",
                    "description": "Stub meal generated without LLM",
                    "price": "1,000円〜2,000円",
                    "url": "",
                },
                {
                    "time": "18:30",
                    "activity_name": "Dinner (stub)",
                    "type": "meal",
                    "description": "Stub meal generated without LLM",
                    "price": "3,000円",
                    "url": "",
                },
            ],
        }


class OpenAIJsonClient:
    """OpenAI-backed JSON client."""

    def __init__(self, api_key: str, model: str = "gpt-4o", timeout: float = 60.0):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (read from environment)
            model: Default model name
            timeout: Request timeout in seconds
        """
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.model = model

    async def complete_json(
        self,
        *,
        agent: str,
        system_prompt: str,
        payload: dict[str, Any],
        model: str | None = None,
    ) -> dict[str, Any]:
        """Call the chat completions API in JSON mode."""
        user_prompt = f"Input: {json.dumps(payload, ensure_ascii=False, default=str)}"

        try:
            response = await self.client.chat.completions.create(
                model=model or self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except Exception as e:
            logger.error(f"OpenAI API call failed ({agent}): {e}")
            raise LLMCallError(f"{agent} request failed: {e}") from e

        raw = response.choices[0].message.content or ""
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = extract_json(raw)

        if not isinstance(parsed, dict):
            logger.warning(f"OpenAI returned non-JSON content for {agent} ({len(raw)} chars)")
            return {}
        return parsed


def get_llm_client(settings: Settings | None = None) -> JsonLLMClient:
    """Factory function to get appropriate LLM client based on config.

    Returns:
        OpenAIJsonClient if API key is configured, DeterministicStubClient otherwise
    """
    settings = settings or get_settings()
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        logger.info("Using OpenAI client for planning")
        return OpenAIJsonClient(
            api_key=api_key.get_secret_value(),
            model=settings.openai_model,
            timeout=settings.llm_timeout_seconds,
        )
    else:
        logger.warning("No OpenAI API key configured, using deterministic stub client")
        return DeterministicStubClient()


def make_reviser(client: JsonLLMClient, agent: str, model: str | None = None) -> ReviseFn:
    """Adapt a JSON client to the reviser signature used by the reconciler."""

    async def revise(system_instruction: str, payload: dict[str, Any]) -> Any:
        return await client.complete_json(
            agent=agent, system_prompt=system_instruction, payload=payload, model=model
        )

    return revise
