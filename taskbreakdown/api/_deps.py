"""Service container shared by the route modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request

if TYPE_CHECKING:
    from taskbreakdown.breakdown import BreakdownGenerator
    from taskbreakdown.config import AppSettings
    from taskbreakdown.llm import LiteLLMClient
    from taskbreakdown.sequencer import SubtaskSequencer
    from taskbreakdown.store import Store


@dataclass
class Services:
    """Collaborators built once by ``create_app`` and stored on ``app.state``."""

    settings: AppSettings
    llm: LiteLLMClient
    store: Store
    generator: BreakdownGenerator
    sequencer: SubtaskSequencer


def get_services(request: Request) -> Services:
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]
