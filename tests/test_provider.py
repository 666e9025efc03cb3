"""
Test OpenRouter Provider and Async Primitives
=============================================

The provider is exercised against httpx.MockTransport; no network.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import json

import httpx
import pytest

from core.config import EngineConfig
from core.executor_async import AsyncTaskExecutor
from core.timeout_decorator import CallTimeoutError, with_timeout
from providers.openrouter_async import AsyncOpenRouterProvider, extract_json_object
from sectionEngine.exceptions import MalformedOutputError


def make_provider(handler):
    return AsyncOpenRouterProvider(
        model="openai/gpt-5.2",
        api_key="test-key",
        transport=httpx.MockTransport(handler)
    )


def test_generate_sends_schema_and_parses_output():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "model": "openai/gpt-5.2",
            "choices": [{"message": {"content": '```json\n{"suggestions": ["a", "b"]}\n```'}}],
            "usage": {"prompt_tokens": 11, "completion_tokens": 7, "total_tokens": 18}
        })

    provider = make_provider(handler)
    schema = {"title": "SuggestionList", "type": "object"}
    result = asyncio.run(provider.generate("List things", schema))

    assert result.output == {"suggestions": ["a", "b"]}
    assert result.usage.total_tokens == 18
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["messages"] == [{"role": "user", "content": "List things"}]
    assert seen["body"]["response_format"]["json_schema"]["schema"] == schema


def test_http_errors_propagate():
    provider = make_provider(lambda request: httpx.Response(503, text="overloaded"))
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(provider.generate("x"))


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    with pytest.raises(ValueError):
        AsyncOpenRouterProvider(api_key=None)


def test_extract_json_object():
    assert extract_json_object('{"a": 1}') == {"a": 1}
    assert extract_json_object('Here you go: {"a": 2} thanks') == {"a": 2}
    with pytest.raises(MalformedOutputError):
        extract_json_object("no json here")
    with pytest.raises(MalformedOutputError):
        extract_json_object("[1, 2]")


def test_gather_by_position_settles_every_task():
    async def ok(value, delay):
        await asyncio.sleep(delay)
        return value

    async def boom():
        raise KeyError("missing")

    executor = AsyncTaskExecutor(timeout=1.0)
    outcomes = asyncio.run(executor.gather_by_position(
        [lambda: ok("a", 0.02), boom, lambda: ok("c", 0)],
        names=["a", "b", "c"]
    ))

    assert [o.position for o in outcomes] == [0, 1, 2]
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[0].value == "a"
    assert isinstance(outcomes[1].error, KeyError)


def test_with_timeout_decorator():
    @with_timeout(0.01)
    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(CallTimeoutError):
        asyncio.run(slow())


def test_engine_config_from_env(monkeypatch):
    monkeypatch.setenv("SECTION_ENGINE_TIMEOUT", "45")
    monkeypatch.setenv("SECTION_ENGINE_MAX_CONCURRENCY", "4")
    config = EngineConfig.from_env(model="openai/gpt-5.2-mini")

    assert config.timeout == 45.0
    assert config.max_concurrency == 4
    assert config.model == "openai/gpt-5.2-mini"
    assert config.pricing_model == "gpt-5.2"
