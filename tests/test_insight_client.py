"""Tests for the narrative insight client against a mocked HTTP transport."""
import json

import httpx

from core.retry import RetryPolicy
from services.insight_client import InsightClient, build_prompt, is_retryable


def _client(handler, no_sleep, api_key="test-key", attempts=2):
    _, sleep = no_sleep
    return InsightClient(
        api_key=api_key,
        base_url="https://llm.test/v1",
        model="test-model",
        retry_policy=RetryPolicy(max_attempts=attempts, base_delay=0, sleep=sleep, retry_on=is_retryable),
        transport=httpx.MockTransport(handler),
    )


def test_generate_returns_message_content(no_sleep):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Boa alimentação.  "}}]})

    result = _client(handler, no_sleep).generate("prompt")

    assert result == "Boa alimentação."
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["messages"][1] == {"role": "user", "content": "prompt"}


def test_server_errors_are_retried_then_give_none(no_sleep):
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(503, json={"error": "overloaded"})

    assert _client(handler, no_sleep, attempts=3).generate("prompt") is None
    assert len(calls) == 3


def test_transient_failure_recovers(no_sleep):
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) == 1:
            return httpx.Response(500)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    assert _client(handler, no_sleep).generate("prompt") == "ok"


def test_client_errors_are_not_retried(no_sleep):
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(401, json={"error": "invalid key"})

    assert _client(handler, no_sleep, attempts=3).generate("prompt") is None
    assert len(calls) == 1


def test_rate_limit_is_retried(no_sleep):
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) == 1:
            return httpx.Response(429)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    assert _client(handler, no_sleep).generate("prompt") == "ok"
    assert len(calls) == 2


def test_unexpected_body_shapes_give_none(no_sleep):
    bodies = [
        ["unexpected"],
        {"choices": "nope"},
        {"choices": ["text"]},
        {"choices": [{"message": "text"}]},
        {"choices": [{"message": {"content": 42}}]},
    ]
    for body in bodies:
        def handler(request, body=body):
            return httpx.Response(200, json=body)

        assert _client(handler, no_sleep).generate("prompt") is None


def test_disabled_without_api_key(no_sleep):
    def handler(request):
        raise AssertionError("no request expected")

    client = _client(handler, no_sleep, api_key=None)
    assert not client.enabled
    assert client.generate("prompt") is None


def test_prompt_mentions_averages_and_counts():
    prompt = build_prompt("2024-01-01", "2024-01-07", {"calorias": 1850.4, "proteinas": 92.25}, 3, 12)
    assert "2024-01-01 a 2024-01-07" in prompt
    assert "Calorias: 1850" in prompt
    assert "Proteínas: 92.2g" in prompt or "Proteínas: 92.3g" in prompt
    assert "3 medições" in prompt
    assert "12 registros" in prompt


def test_prompt_leaves_out_sections_that_were_not_collected():
    prompt = build_prompt("2024-01-01", "2024-01-07", None, 4, None)
    assert "Calorias" not in prompt
    assert "4 medições" in prompt
    assert "hidratação:" not in prompt
