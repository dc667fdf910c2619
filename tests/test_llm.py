"""Tests for the LiteLLM client."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from taskbreakdown.breakdown import BreakdownGenerator
from taskbreakdown.errors import ProviderFailureCause, ProviderUnavailable
from taskbreakdown.llm import SCENARIO_DEFAULTS, LiteLLMClient, LLMError, resolve_scenario

_FAKE_REQUEST = httpx.Request("POST", "http://test:4000/v1/chat/completions")


def _ok(content: object = "Hello", headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [{"message": {"content": content}}],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5},
        },
        headers=headers,
        request=_FAKE_REQUEST,
    )


@pytest.fixture
def client() -> LiteLLMClient:
    return LiteLLMClient(base_url="http://test:4000/", api_key="test-key")


async def test_completion_parses_response(client: LiteLLMClient) -> None:
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=_ok("[]")) as mock_post:
        result = await client.completion(prompt="Break this down", model="test-model", temperature=0.3)

    assert result.content == "[]"
    assert result.tokens_in == 10
    assert result.tokens_out == 5
    assert result.model == "test-model"
    assert result.cost_usd == 0.0
    assert mock_post.call_args.args[0] == "/v1/chat/completions"
    payload = mock_post.call_args.kwargs["json"]
    assert payload["messages"] == [{"role": "user", "content": "Break this down"}]
    assert payload["temperature"] == 0.3


async def test_completion_includes_system_message(client: LiteLLMClient) -> None:
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=_ok()) as mock_post:
        await client.completion(prompt="p", system="be terse")

    messages = mock_post.call_args.kwargs["json"]["messages"]
    assert messages[0] == {"role": "system", "content": "be terse"}


async def test_completion_null_content_becomes_empty(client: LiteLLMClient) -> None:
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=_ok(None)):
        result = await client.completion(prompt="p")
    assert result.content == ""


async def test_completion_extracts_cost_from_header(client: LiteLLMClient) -> None:
    response = _ok(headers={"x-litellm-response-cost": "0.00325"})
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=response):
        result = await client.completion(prompt="p")
    assert result.cost_usd == pytest.approx(0.00325)


async def test_completion_handles_invalid_cost_header(client: LiteLLMClient) -> None:
    response = _ok(headers={"x-litellm-response-cost": "not-a-number"})
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=response):
        result = await client.completion(prompt="p")
    assert result.cost_usd == 0.0


async def test_completion_empty_choices(client: LiteLLMClient) -> None:
    response = httpx.Response(200, json={"choices": [], "usage": {}}, request=_FAKE_REQUEST)
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=response):
        result = await client.completion(prompt="p")

    assert result.content == ""
    assert result.tokens_in == 0
    assert result.tokens_out == 0


async def test_completion_error_status_raises(client: LiteLLMClient) -> None:
    response = httpx.Response(401, text="AuthenticationError: invalid api key", request=_FAKE_REQUEST)
    with (
        patch.object(client._client, "post", new_callable=AsyncMock, return_value=response),
        pytest.raises(LLMError) as exc_info,
    ):
        await client.completion(prompt="p", model="test-model")

    assert exc_info.value.status_code == 401
    assert exc_info.value.model == "test-model"
    assert "invalid api key" in str(exc_info.value)


def test_llm_error_truncates_message_but_keeps_body() -> None:
    err = LLMError(500, "m", "x" * 800)
    assert len(err.body) == 800
    assert str(err).endswith("x" * 500)
    assert "x" * 501 not in str(err)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>bad gateway</html>", request=_FAKE_REQUEST),
        httpx.Response(200, json=["not", "an", "object"], request=_FAKE_REQUEST),
        httpx.Response(200, json={"choices": "oops"}, request=_FAKE_REQUEST),
        httpx.Response(200, json={"choices": ["oops"]}, request=_FAKE_REQUEST),
        httpx.Response(200, json={"choices": [{"message": "oops"}]}, request=_FAKE_REQUEST),
    ],
)
async def test_completion_malformed_body_raises_llm_error(client: LiteLLMClient, response: httpx.Response) -> None:
    with (
        patch.object(client._client, "post", new_callable=AsyncMock, return_value=response),
        pytest.raises(LLMError) as exc_info,
    ):
        await client.completion(prompt="p", model="test-model")

    assert exc_info.value.status_code == 200
    assert exc_info.value.body == response.text


async def test_completion_ignores_non_numeric_usage(client: LiteLLMClient) -> None:
    response = httpx.Response(
        200,
        json={"choices": [{"message": {"content": "hi"}}], "usage": {"prompt_tokens": "many"}},
        request=_FAKE_REQUEST,
    )
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=response):
        result = await client.completion(prompt="p")
    assert result.content == "hi"
    assert result.tokens_in == 0


@pytest.mark.parametrize("body", [b"<html>bad gateway</html>", b'{"choices": ["oops"]}'])
async def test_generator_maps_malformed_body_to_provider_unavailable(body: bytes) -> None:
    client = LiteLLMClient(base_url="http://test:4000")
    await client.close()
    client._client = httpx.AsyncClient(
        base_url="http://test:4000",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=body)),
    )
    try:
        with pytest.raises(ProviderUnavailable) as exc_info:
            await BreakdownGenerator(client, model="test-model").generate("Plan a trip")
    finally:
        await client.close()

    assert exc_info.value.cause == ProviderFailureCause.UNKNOWN
    assert isinstance(exc_info.value.__cause__, LLMError)


async def test_completion_passes_tags(client: LiteLLMClient) -> None:
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=_ok()) as mock_post:
        await client.completion(prompt="p", tags=["plan"])
    assert mock_post.call_args.kwargs["json"]["tags"] == ["plan"]


async def test_completion_without_tags(client: LiteLLMClient) -> None:
    with patch.object(client._client, "post", new_callable=AsyncMock, return_value=_ok()) as mock_post:
        await client.completion(prompt="p")
    assert "tags" not in mock_post.call_args.kwargs["json"]


async def test_health_probes_liveliness(client: LiteLLMClient) -> None:
    response = httpx.Response(200, request=httpx.Request("GET", "http://test:4000/health/liveliness"))
    with patch.object(client._client, "get", new_callable=AsyncMock, return_value=response) as mock_get:
        assert await client.health() is True
    mock_get.assert_called_once_with("/health/liveliness")


async def test_health_false_on_error_status(client: LiteLLMClient) -> None:
    response = httpx.Response(503, request=httpx.Request("GET", "http://test:4000/health/liveliness"))
    with patch.object(client._client, "get", new_callable=AsyncMock, return_value=response):
        assert await client.health() is False


async def test_health_false_on_connection_error(client: LiteLLMClient) -> None:
    with patch.object(client._client, "get", new_callable=AsyncMock, side_effect=httpx.ConnectError("refused")):
        assert await client.health() is False


async def test_close_calls_aclose(client: LiteLLMClient) -> None:
    with patch.object(client._client, "aclose", new_callable=AsyncMock) as mock_close:
        await client.close()
        mock_close.assert_called_once()


def test_resolve_scenario_known() -> None:
    for name, expected in SCENARIO_DEFAULTS.items():
        assert resolve_scenario(name) == expected
    assert resolve_scenario("plan").tag == "plan"
    assert resolve_scenario("plan").temperature == pytest.approx(0.3)


def test_resolve_scenario_unknown_falls_back_to_untagged() -> None:
    cfg = resolve_scenario("nonexistent")
    assert cfg.tag == ""
    assert cfg.temperature == pytest.approx(0.2)
