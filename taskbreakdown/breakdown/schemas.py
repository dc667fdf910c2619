"""Schemas for the breakdown step."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from taskbreakdown.models import normalize_title


class SubtaskCandidate(BaseModel):
    """A proposed subtask that has not been persisted yet."""

    title: str
    description: str = ""


class BreakdownRequest(BaseModel):
    """Body of ``POST /api/ai/breakdown``."""

    title: str
    description: str | None = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str) -> str:
        return normalize_title(v)

    @field_validator("description")
    @classmethod
    def _strip_description(cls, v: str | None) -> str:
        return (v or "").strip()
