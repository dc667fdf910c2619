"""BreakdownGenerator: ask the provider for subtasks and validate the answer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from taskbreakdown.breakdown.parsing import parse_candidates
from taskbreakdown.breakdown.prompts import build_breakdown_prompt
from taskbreakdown.constants import MAX_LOGGED_RESPONSE_CHARS
from taskbreakdown.errors import GenerationError, ProviderUnavailable, ValidationError
from taskbreakdown.llm import DEFAULT_MODEL, LLMError, resolve_scenario

if TYPE_CHECKING:
    from taskbreakdown.breakdown.schemas import SubtaskCandidate
    from taskbreakdown.llm import CompletionResponse

logger = structlog.get_logger()


class TextProvider(Protocol):
    """The slice of the LLM client the generator depends on."""

    async def completion(
        self,
        prompt: str,
        model: str = ...,
        system: str = ...,
        temperature: float = ...,
        tags: list[str] | None = ...,
    ) -> CompletionResponse: ...


class BreakdownGenerator:
    """Turns a task title and description into ordered subtask candidates.

    The provider is passed in already constructed; the generator never
    retries and never persists anything.
    """

    def __init__(self, llm: TextProvider, model: str = DEFAULT_MODEL, scenario: str = "plan") -> None:
        self._llm = llm
        self._model = model
        self._scenario = resolve_scenario(scenario)

    async def generate(self, title: str, description: str = "") -> list[SubtaskCandidate]:
        """Return validated candidates for the task, in execution order.

        Raises ValidationError for a blank title, ProviderUnavailable when the
        provider call fails and a GenerationError subclass when the response
        cannot be turned into candidates.
        """
        title = title.strip()
        if not title:
            msg = "Title is required and must be a non-empty string"
            raise ValidationError(msg)
        description = (description or "").strip()

        log = logger.bind(task_title=title[:100], model=self._model)
        prompt = build_breakdown_prompt(title, description)
        tags = [self._scenario.tag] if self._scenario.tag else None

        try:
            response = await self._llm.completion(
                prompt,
                model=self._model,
                temperature=self._scenario.temperature,
                tags=tags,
            )
        except LLMError as exc:
            err = ProviderUnavailable.from_message(str(exc))
            log.warning("provider call failed", cause=str(err.cause), status_code=exc.status_code)
            raise err from exc
        except httpx.HTTPError as exc:
            err = ProviderUnavailable.from_message(str(exc) or type(exc).__name__)
            log.warning("provider unreachable", cause=str(err.cause), error_type=type(exc).__name__)
            raise err from exc

        try:
            candidates = parse_candidates(response.content)
        except GenerationError as exc:
            log.warning(
                "breakdown response rejected",
                error_type=type(exc).__name__,
                error=exc.message,
                response=response.content[:MAX_LOGGED_RESPONSE_CHARS],
            )
            raise

        log.info(
            "breakdown generated",
            count=len(candidates),
            tokens_in=response.tokens_in,
            tokens_out=response.tokens_out,
            cost_usd=response.cost_usd,
        )
        return candidates
