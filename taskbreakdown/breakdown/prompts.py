"""Prompt template for subtask breakdown."""

from __future__ import annotations

from taskbreakdown.constants import ADVISORY_TITLE_CHARS, MAX_SUGGESTED_SUBTASKS, MIN_SUGGESTED_SUBTASKS

BREAKDOWN_TEMPLATE = """\
You are a task breakdown expert. Break down the following task into \
{min_count}-{max_count} clear, actionable subtasks.

Main Task: {title}
{context_line}
Requirements:
- Each subtask should be specific and actionable
- Order them logically (what should be done first, second, etc.)
- Keep subtasks focused and not too broad
- Include a brief description for each subtask explaining why it's important

Respond with ONLY a JSON array of objects with this structure (no markdown, no other text):
[
  {{
    "title": "Subtask title (max {title_chars} characters)",
    "description": "Why this subtask is important and what it accomplishes"
  }}
]"""


def build_breakdown_prompt(title: str, description: str = "") -> str:
    """Interpolate a task into the breakdown template."""
    context_line = f"Additional Context: {description}\n" if description else ""
    return BREAKDOWN_TEMPLATE.format(
        min_count=MIN_SUGGESTED_SUBTASKS,
        max_count=MAX_SUGGESTED_SUBTASKS,
        title=title,
        context_line=context_line,
        title_chars=ADVISORY_TITLE_CHARS,
    )
