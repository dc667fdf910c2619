"""AI breakdown pipeline: prompt, parse, validate."""

from taskbreakdown.breakdown.generator import BreakdownGenerator, TextProvider
from taskbreakdown.breakdown.parsing import PARSE_STRATEGIES, extract_structured, parse_candidates, validate_candidates
from taskbreakdown.breakdown.prompts import build_breakdown_prompt
from taskbreakdown.breakdown.schemas import BreakdownRequest, SubtaskCandidate

__all__ = [
    "PARSE_STRATEGIES",
    "BreakdownGenerator",
    "BreakdownRequest",
    "SubtaskCandidate",
    "TextProvider",
    "build_breakdown_prompt",
    "extract_structured",
    "parse_candidates",
    "validate_candidates",
]
