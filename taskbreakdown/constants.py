"""Centralized limits for the task breakdown service."""

from __future__ import annotations

# -- Titles ------------------------------------------------------------------
MAX_TITLE_CHARS = 500  # Storage limit; generated titles are truncated to this.
ADVISORY_TITLE_CHARS = 100  # Guidance given to the model in the prompt.

# -- Breakdown prompt --------------------------------------------------------
MIN_SUGGESTED_SUBTASKS = 4
MAX_SUGGESTED_SUBTASKS = 8

# -- Logging -----------------------------------------------------------------
MAX_LOGGED_RESPONSE_CHARS = 500  # Provider text included in parse-failure logs.

# -- HTTP --------------------------------------------------------------------
API_PREFIX = "/api"
SERVICE_VERSION = "1.0.0"
