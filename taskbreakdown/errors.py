"""Error taxonomy for the task breakdown service.

Every error carries the HTTP status it maps to, so the API layer can
translate without a lookup table:

- ``ValidationError``: caller input is malformed (400).
- ``NotFoundError``: a task or subtask id does not exist (404).
- ``GenerationError`` subclasses: provider output could not be turned into
  usable subtasks (503, the fault lies with the external dependency).
- ``ProviderUnavailable``: the provider rejected or failed the call (503).
"""

from __future__ import annotations

from enum import StrEnum


class TaskBreakdownError(Exception):
    """Base class for errors raised by the service."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Return the JSON body sent to API callers."""
        return {"error": self.message}


class ValidationError(TaskBreakdownError):
    """Caller input is malformed (empty title, unknown status, empty update)."""

    status_code = 400


class NotFoundError(TaskBreakdownError):
    """A task or subtask identifier does not exist."""

    status_code = 404

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} not found")


class GenerationError(TaskBreakdownError):
    """Provider output could not be turned into subtask candidates."""

    status_code = 503


class GenerationParseError(GenerationError):
    """No parse strategy extracted structured data from the response."""

    def __init__(self, message: str = "could not extract a structured subtask list from the provider response") -> None:
        super().__init__(message)


class GenerationShapeError(GenerationError):
    """The parsed value is not a list."""

    def __init__(self, found: str) -> None:
        self.found = found
        super().__init__(f"provider response is not an array (got {found})")


class GenerationFieldError(GenerationError):
    """An element lacks a non-empty string title or description."""

    def __init__(self, index: int, field: str) -> None:
        self.index = index
        self.field = field
        super().__init__(f"element {index} missing valid {field}")

    def to_dict(self) -> dict[str, object]:
        return {"error": self.message, "index": self.index, "field": self.field}


class GenerationEmptyError(GenerationError):
    """The provider returned an empty list."""

    def __init__(self) -> None:
        super().__init__("provider returned no subtasks")


class ProviderFailureCause(StrEnum):
    """Best-effort classification of a provider failure."""

    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNKNOWN = "unknown"


# Checked in order; the first cause with a matching marker wins.
# Markers are compared against the lower-cased provider message.
_CAUSE_MARKERS: tuple[tuple[ProviderFailureCause, tuple[str, ...]], ...] = (
    (
        ProviderFailureCause.INVALID_CREDENTIAL,
        ("api_key_invalid", "invalid api key", "invalid_api_key", "authenticationerror"),
    ),
    (ProviderFailureCause.RATE_LIMITED, ("rate_limit", "rate limit", "ratelimiterror")),
    (ProviderFailureCause.QUOTA_EXCEEDED, ("quota",)),
)

_CAUSE_MESSAGES: dict[ProviderFailureCause, str] = {
    ProviderFailureCause.INVALID_CREDENTIAL: "Invalid provider API key. Check the configured credentials.",
    ProviderFailureCause.RATE_LIMITED: "Provider rate limit exceeded. Try again shortly.",
    ProviderFailureCause.QUOTA_EXCEEDED: "Provider quota exceeded.",
}


def classify_provider_error(message: str) -> ProviderFailureCause:
    """Map raw provider error text to a failure cause by substring inspection."""
    lowered = message.lower()
    for cause, markers in _CAUSE_MARKERS:
        if any(marker in lowered for marker in markers):
            return cause
    return ProviderFailureCause.UNKNOWN


class ProviderUnavailable(TaskBreakdownError):
    """The text-generation provider could not serve the request."""

    status_code = 503

    def __init__(self, cause: ProviderFailureCause, detail: str) -> None:
        self.cause = cause
        self.detail = detail
        super().__init__(_CAUSE_MESSAGES.get(cause, f"Provider request failed: {detail}"))

    @classmethod
    def from_message(cls, detail: str) -> ProviderUnavailable:
        """Build the error from raw provider text, classifying its cause."""
        return cls(classify_provider_error(detail), detail)

    def to_dict(self) -> dict[str, object]:
        return {"error": self.message, "cause": str(self.cause)}
