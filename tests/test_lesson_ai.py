import asyncio
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from lessonforge.exceptions import ModelServiceError
from lessonforge.services.lesson_ai import CodeFixer, CodeGenerator, PromptAnalyzer
from lessonforge.utils.azure_openai import AzureOpenAIClient, parse_json_reply

from conftest import HOVER_LESSON, VALID_LESSON, FakeModelClient, analysis_reply, fenced


def test_parse_json_reply():
    assert parse_json_reply('{"a": 1}') == {"a": 1}
    assert parse_json_reply('Sure: {"a": 2} done') == {"a": 2}
    assert parse_json_reply("[1, 2]") is None
    assert parse_json_reply("{broken") is None
    assert parse_json_reply("") is None


def test_analyzer_uses_zero_temperature_and_title():
    client = FakeModelClient([analysis_reply(title="  Volcanoes  ")])
    result = asyncio.run(PromptAnalyzer(client).analyze("How do volcanoes erupt?"))
    assert result.accepted
    assert result.title == "Volcanoes"
    assert client.calls[0]["temperature"] == 0.0
    assert client.calls[0]["user_content"] == "How do volcanoes erupt?"


def test_analyzer_blank_title_falls_back_to_truncated_prompt():
    client = FakeModelClient([analysis_reply(title="   ")])
    result = asyncio.run(PromptAnalyzer(client, title_fallback_length=10).analyze("  Photosynthesis in plants"))
    assert result.title == "Photosynthesis"[:10]


def test_analyzer_rejection_reason_defaults():
    client = FakeModelClient(['{"is_educational": "false"}'])
    result = asyncio.run(PromptAnalyzer(client).analyze("Sell my car"))
    assert not result.accepted
    assert result.reason == "Not an educational topic"


def test_generator_sends_title_and_hints_and_extracts_code():
    client = FakeModelClient([fenced(VALID_LESSON)])
    source = asyncio.run(CodeGenerator(client).generate("fractions", "Fractions", audience="grade 4", tone="playful"))
    assert source == VALID_LESSON.strip()
    user_content = client.calls[0]["user_content"]
    assert "LESSON TOPIC: Fractions" in user_content
    assert "AUDIENCE: grade 4" in user_content
    assert "TONE: playful" in user_content
    assert "@export_default" in client.calls[0]["system_prompt"]


def test_fixer_sends_only_listed_violations_and_current_code():
    client = FakeModelClient([fenced(VALID_LESSON)])
    violations = ["Hover styling is not allowed: hover:bg-blue-300"]
    source = asyncio.run(CodeFixer(client).fix(HOVER_LESSON, violations))
    assert source == VALID_LESSON.strip()
    assert "- Hover styling is not allowed: hover:bg-blue-300" in client.calls[0]["user_content"]
    assert HOVER_LESSON in client.calls[0]["user_content"]
    assert client.calls[0]["temperature"] == 0.2


def _client_with(create):
    client = AzureOpenAIClient(endpoint="https://example.openai.azure.com", api_key="key",
                               api_version="2024-02-01", deployment_name="gpt-test", timeout=5)
    client.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client


def test_model_client_returns_reply_text():
    async def create(**kwargs):
        assert kwargs["model"] == "gpt-test"
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="hello"))])

    assert asyncio.run(_client_with(create).complete("sys", "user", temperature=0.1)) == "hello"


def test_model_client_wraps_upstream_errors():
    async def create(**kwargs):
        raise OpenAIError("connection reset")

    with pytest.raises(ModelServiceError, match="connection reset"):
        asyncio.run(_client_with(create).complete("sys", "user"))
