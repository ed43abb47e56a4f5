"""
LangChain Plan Generator

Formats the browser-planning prompt, invokes the chat model and parses
the reply into a TaskPlan.

Models frequently wrap JSON in Markdown fences or add a sentence before
it, so the reply is reduced to its outermost JSON object before
validation.
"""

import asyncio
import logging
import re

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import PromptTemplate
from pydantic import ValidationError

from plan_relay.errors import GenerationError
from plan_relay.planning.models import TaskPlan
from plan_relay.planning.ports import PlanGenerator

logger = logging.getLogger(__name__)

PLAN_PROMPT = """Create a step-by-step plan to accomplish the following task in a web browser:
{command}

Respond with a JSON object containing an array of steps. Each step should have:
- action: The browser action to perform (e.g., "navigate", "click", "type")
- params: Parameters needed for the action (e.g., url, selector, text)

Example response:
{{
  "steps": [
    {{"action": "navigate", "params": {{"url": "https://example.com"}}}},
    {{"action": "click", "params": {{"selector": "#submit-button"}}}}
  ]
}}

Respond with the JSON object only."""

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

INVALID_FORMAT = "Failed to create task plan: Invalid response format"


def extract_json_object(text: str) -> str:
    """
    Reduce a model reply to the JSON object it contains.

    Prefers the first fenced code block; otherwise takes the span from the
    first '{' to the last '}'. Returns the stripped input when neither is found.
    """
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text.strip()


def _message_text(response: object) -> str:
    """Get the text out of a chat model response."""
    content = getattr(response, "content", response)
    if isinstance(content, list):
        # Anthropic-style content blocks
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return str(content)


class LLMPlanGenerator(PlanGenerator):
    """
    PlanGenerator backed by a LangChain chat model.

    The model call runs in a worker thread so the event loop stays free
    to serve other connections while the provider responds.
    """

    def __init__(self, llm: BaseChatModel, timeout_seconds: float | None = None):
        """
        Initialize the generator.

        Args:
            llm: Chat model to invoke
            timeout_seconds: Optional upper bound on a single plan request
        """
        self._llm = llm
        self._timeout = timeout_seconds
        self._prompt = PromptTemplate.from_template(PLAN_PROMPT)

    async def generate(self, command: str) -> TaskPlan:
        prompt = self._prompt.format(command=command)

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(self._llm.invoke, prompt),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Plan generation timed out after {self._timeout}s")
            raise GenerationError("Failed to create task plan: timed out") from e
        except Exception as e:
            logger.error(f"LLM invocation failed: {e}")
            raise GenerationError() from e

        raw = _message_text(response)

        try:
            plan = TaskPlan.model_validate_json(extract_json_object(raw))
        except ValidationError as e:
            logger.error(f"Failed to parse LLM response: {raw[:500]!r} ({e.error_count()} errors)")
            raise GenerationError(INVALID_FORMAT, raw_output=raw) from e

        logger.debug(f"Generated plan with {len(plan.steps)} steps for: {command[:80]}")
        return plan
