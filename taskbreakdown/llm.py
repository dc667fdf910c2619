"""LiteLLM Proxy client used as the text-generation provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

# Callers pass AppSettings.model; this only covers direct construction.
DEFAULT_MODEL = "gemini/gemini-2.0-flash"


class LLMError(Exception):
    """The proxy answered with an error status or a body that is not a chat completion."""

    def __init__(self, status_code: int, model: str, body: str) -> None:
        self.status_code = status_code
        self.model = model
        self.body = body
        short = body[:500] if len(body) > 500 else body
        super().__init__(f"LiteLLM {status_code} for model={model}: {short}")


@dataclass(frozen=True)
class CompletionResponse:
    """Text and usage figures from one completion call."""

    content: str
    tokens_in: int
    tokens_out: int
    model: str
    cost_usd: float = 0.0


@dataclass(frozen=True)
class ScenarioConfig:
    """Routing tag and sampling temperature for one kind of call."""

    tag: str
    temperature: float


# Tags match litellm_params.tags in the proxy config.
SCENARIO_DEFAULTS: dict[str, ScenarioConfig] = {
    "plan": ScenarioConfig(tag="plan", temperature=0.3),
}

_FALLBACK = ScenarioConfig(tag="", temperature=0.2)


def resolve_scenario(scenario: str) -> ScenarioConfig:
    """Look up scenario config; unknown names get untagged routing."""
    return SCENARIO_DEFAULTS.get(scenario, _FALLBACK)


def _response_cost(resp: httpx.Response) -> float:
    try:
        return float(resp.headers.get("x-litellm-response-cost", "0"))
    except (ValueError, TypeError):
        return 0.0


def _as_int(value: object) -> int:
    return value if isinstance(value, int) else 0


class LiteLLMClient:
    """HTTP client for the LiteLLM Proxy (OpenAI-compatible API)."""

    def __init__(self, base_url: str = "http://localhost:4000", api_key: str = "", timeout: float = 60.0) -> None:
        self._base_url = base_url.rstrip("/")
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(base_url=self._base_url, headers=headers, timeout=timeout)

    async def completion(
        self,
        prompt: str,
        model: str = DEFAULT_MODEL,
        system: str = "",
        temperature: float = 0.2,
        tags: list[str] | None = None,
    ) -> CompletionResponse:
        """Send one chat completion request and return the first choice.

        With *tags*, LiteLLM routes to a deployment whose
        ``litellm_params.tags`` include a matching tag. Raises
        :class:`LLMError` on 4xx/5xx and on 200 bodies that are not a chat
        completion; ``httpx.HTTPError`` propagates on transport failures.
        An answer without choices yields empty content.
        """
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, object] = {"model": model, "messages": messages, "temperature": temperature}
        if tags:
            payload["tags"] = tags

        logger.debug(
            "llm_completion_request model=%s temperature=%.2f tags=%s prompt_len=%d",
            model,
            temperature,
            tags,
            len(prompt),
        )

        resp = await self._client.post("/v1/chat/completions", json=payload)
        if resp.status_code >= 400:
            logger.error("LiteLLM error status=%d model=%s body=%s", resp.status_code, model, resp.text[:1000])
            raise LLMError(resp.status_code, model, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("LiteLLM returned non-JSON body model=%s body=%s", model, resp.text[:1000])
            raise LLMError(resp.status_code, model, resp.text) from exc
        if not isinstance(data, dict):
            raise LLMError(resp.status_code, model, resp.text)

        cost = _response_cost(resp)
        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise LLMError(resp.status_code, model, resp.text)
        if not choices:
            return CompletionResponse(content="", tokens_in=0, tokens_out=0, model=model, cost_usd=cost)

        choice = choices[0]
        message = choice.get("message") if isinstance(choice, dict) else None
        if not isinstance(message, dict):
            logger.error("LiteLLM returned malformed choice model=%s body=%s", model, resp.text[:1000])
            raise LLMError(resp.status_code, model, resp.text)
        content = message.get("content")

        usage = data.get("usage")
        usage = usage if isinstance(usage, dict) else {}

        return CompletionResponse(
            content=content if isinstance(content, str) else "",
            tokens_in=_as_int(usage.get("prompt_tokens")),
            tokens_out=_as_int(usage.get("completion_tokens")),
            model=model,
            cost_usd=cost,
        )

    async def health(self) -> bool:
        """Probe the proxy's liveliness endpoint; any failure counts as unhealthy."""
        try:
            resp = await self._client.get("/health/liveliness")
        except httpx.HTTPError:
            return False
        return resp.status_code == 200

    async def close(self) -> None:
        await self._client.aclose()
