"""Tests for the LangChain-backed plan generator and its factory."""

import time
from unittest.mock import MagicMock

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from plan_relay.config import RelaySettings
from plan_relay.errors import GenerationError
from plan_relay.planning import LLMPlanGenerator, create_plan_generator
from plan_relay.planning.llm_generator import INVALID_FORMAT, extract_json_object


PLAN_JSON = '{"steps": [{"action": "navigate", "params": {"url": "https://example.com"}}]}'


def generator_replying(*responses: str, **kwargs) -> LLMPlanGenerator:
    return LLMPlanGenerator(FakeListChatModel(responses=list(responses)), **kwargs)


class TestExtractJsonObject:
    """Tests for extract_json_object()."""

    def test_plain_json(self):
        assert extract_json_object(PLAN_JSON) == PLAN_JSON

    def test_fenced_json(self):
        assert extract_json_object(f"```json\n{PLAN_JSON}\n```") == PLAN_JSON

    def test_surrounding_prose(self):
        text = f"Sure! Here is the plan:\n{PLAN_JSON}\nLet me know if you need more."
        assert extract_json_object(text) == PLAN_JSON

    def test_no_object(self):
        assert extract_json_object("  no plan here  ") == "no plan here"


class TestLLMPlanGenerator:
    """Tests for LLMPlanGenerator.generate()."""

    @pytest.mark.asyncio
    async def test_parses_plan(self):
        plan = await generator_replying(PLAN_JSON).generate("open example.com")

        assert len(plan.steps) == 1
        assert plan.steps[0].action == "navigate"
        assert plan.steps[0].params == {"url": "https://example.com"}

    @pytest.mark.asyncio
    async def test_parses_fenced_plan(self):
        plan = await generator_replying(f"```json\n{PLAN_JSON}\n```").generate("open example.com")
        assert plan.steps[0].action == "navigate"

    @pytest.mark.asyncio
    async def test_empty_steps_allowed(self):
        plan = await generator_replying('{"steps": []}').generate("do nothing")
        assert plan.steps == []

    @pytest.mark.asyncio
    async def test_missing_params_default_to_empty(self):
        plan = await generator_replying('{"steps": [{"action": "scroll"}]}').generate("scroll")
        assert plan.steps[0].params == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [
        "I cannot help with that.",
        '{"plan": []}',
        '{"steps": [{"action": "", "params": {}}]}',
        '{"steps": [{"params": {"url": "https://example.com"}}]}',
        '{"steps": "navigate"}',
    ])
    async def test_invalid_output(self, reply):
        with pytest.raises(GenerationError) as exc_info:
            await generator_replying(reply).generate("open example.com")

        assert exc_info.value.client_message == INVALID_FORMAT
        assert exc_info.value.raw_output == reply

    @pytest.mark.asyncio
    async def test_model_failure(self):
        llm = MagicMock()
        llm.invoke.side_effect = ConnectionError("connection refused")

        with pytest.raises(GenerationError) as exc_info:
            await LLMPlanGenerator(llm).generate("open example.com")

        assert exc_info.value.client_message == "Failed to create task plan"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_timeout(self):
        llm = MagicMock()
        llm.invoke.side_effect = lambda prompt: time.sleep(0.5)

        with pytest.raises(GenerationError) as exc_info:
            await LLMPlanGenerator(llm, timeout_seconds=0.05).generate("open example.com")

        assert "timed out" in exc_info.value.client_message

    @pytest.mark.asyncio
    async def test_prompt_contains_command(self):
        llm = MagicMock()
        llm.invoke.return_value = MagicMock(content=PLAN_JSON)

        await LLMPlanGenerator(llm).generate("book a table for two")

        prompt = llm.invoke.call_args.args[0]
        assert "book a table for two" in prompt
        assert '"steps"' in prompt

    @pytest.mark.asyncio
    async def test_content_blocks(self):
        llm = MagicMock()
        llm.invoke.return_value = MagicMock(content=[{"type": "text", "text": PLAN_JSON}])

        plan = await LLMPlanGenerator(llm).generate("open example.com")
        assert plan.steps[0].action == "navigate"


class TestCreatePlanGenerator:
    """Tests for the startup factory (degraded mode)."""

    def test_missing_credential_returns_none(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        assert create_plan_generator(RelaySettings(llm_model="gpt-4o-mini")) is None

    def test_builds_generator_with_credential(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        generator = create_plan_generator(RelaySettings(llm_model="gpt-4o-mini", plan_timeout=12.0))

        assert isinstance(generator, LLMPlanGenerator)
        assert generator._timeout == 12.0
