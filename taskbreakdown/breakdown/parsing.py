"""Turn free-form provider text into validated subtask candidates.

Models are asked for a bare JSON array but often wrap it in a markdown fence
or surround it with prose. Extraction therefore runs an ordered list of
strategies; each returns the parsed value or ``None`` and the first hit wins.
Validation then runs on whatever the winning strategy produced, so a failed
extraction (``GenerationParseError``) stays distinct from a bad payload
(shape, field and empty errors).
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable

import structlog

from taskbreakdown.breakdown.schemas import SubtaskCandidate
from taskbreakdown.constants import MAX_TITLE_CHARS
from taskbreakdown.errors import (
    GenerationEmptyError,
    GenerationFieldError,
    GenerationParseError,
    GenerationShapeError,
)

logger = structlog.get_logger()

ParseStrategy = Callable[[str], object | None]

_FENCED_ARRAY = re.compile(r"```(?:json)?\s*(\[.*?\])\s*```", re.DOTALL)
_BRACKETED_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


def _loads_or_none(raw: str) -> object | None:
    """Parse JSON, returning None on any decode error."""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None


def parse_direct(text: str) -> object | None:
    """The whole response is JSON."""
    return _loads_or_none(text)


def parse_fenced_block(text: str) -> object | None:
    """The array sits inside a triple-backtick block, optionally tagged ``json``."""
    match = _FENCED_ARRAY.search(text)
    if match is None:
        return None
    return _loads_or_none(match.group(1))


def parse_bracketed_array(text: str) -> object | None:
    """The array is embedded in prose: take the first ``[`` through the last ``]``."""
    match = _BRACKETED_ARRAY.search(text)
    if match is None:
        return None
    return _loads_or_none(match.group(0))


PARSE_STRATEGIES: tuple[tuple[str, ParseStrategy], ...] = (
    ("direct", parse_direct),
    ("fenced_block", parse_fenced_block),
    ("bracketed_array", parse_bracketed_array),
)


def extract_structured(text: str, strategies: tuple[tuple[str, ParseStrategy], ...] = PARSE_STRATEGIES) -> object:
    """Run *strategies* in order and return the first parsed value.

    A literal JSON ``null`` counts as no result.
    """
    for name, strategy in strategies:
        parsed = strategy(text)
        if parsed is not None:
            logger.debug("provider response parsed", strategy=name)
            return parsed
    raise GenerationParseError


def _clean_text(item: object, key: str) -> str | None:
    value = item.get(key) if isinstance(item, dict) else None
    if not isinstance(value, str):
        return None
    return value.strip() or None


def validate_candidates(parsed: object) -> list[SubtaskCandidate]:
    """Check the parsed value element by element and normalize it.

    Titles and descriptions are trimmed; titles longer than
    ``MAX_TITLE_CHARS`` are truncated rather than rejected.
    """
    if not isinstance(parsed, list):
        raise GenerationShapeError(type(parsed).__name__)

    candidates: list[SubtaskCandidate] = []
    for index, item in enumerate(parsed):
        title = _clean_text(item, "title")
        if title is None:
            raise GenerationFieldError(index, "title")
        description = _clean_text(item, "description")
        if description is None:
            raise GenerationFieldError(index, "description")
        candidates.append(SubtaskCandidate(title=title[:MAX_TITLE_CHARS], description=description))

    if not candidates:
        raise GenerationEmptyError
    return candidates


def parse_candidates(text: str) -> list[SubtaskCandidate]:
    """Extract and validate candidates from raw provider text."""
    return validate_candidates(extract_structured(text))
