"""Shared fixtures for the test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from taskbreakdown.api import create_app
from taskbreakdown.config import AppSettings
from tests.fake_llm import FakeLLM
from tests.fake_store import FakeStore


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> AppSettings:
    """Settings built from a clean environment."""
    for name in ("DATABASE_URL", "LITELLM_URL", "LITELLM_MASTER_KEY", "TASKBREAKDOWN_MODEL", "PORT", "CORS_ORIGIN"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TASKBREAKDOWN_MODEL", "test-model")
    return AppSettings()


@pytest.fixture
def client(settings: AppSettings, fake_llm: FakeLLM, store: FakeStore) -> Iterator[TestClient]:
    """TestClient over an app wired to the fakes; runs the lifespan."""
    app = create_app(settings, llm=fake_llm, store=store)  # type: ignore[arg-type]
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

