"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and shared test
doubles. Fixtures marked autouse apply to every test.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from pathflow.config import config_scope
from pathflow.telemetry import MemoryReporter

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeRepository:
    """In-memory repository capturing fetch and build calls."""

    records: dict[Any, Any] = field(default_factory=dict)
    fetched: list[Any] = field(default_factory=list)
    built: list[dict[str, Any]] = field(default_factory=list)

    def fetch(self, key: Any) -> Any | None:
        self.fetched.append(key)
        return self.records.get(key)

    def fetch_by(self, column: str, value: Any) -> Any | None:
        self.fetched.append((column, value))
        return next(
            (
                record
                for record in self.records.values()
                if isinstance(record, dict) and record.get(column) == value
            ),
            None,
        )

    def build(self, params: dict[str, Any]) -> dict[str, Any]:
        self.built.append(dict(params))
        return {"id": len(self.built), **params}


@dataclass
class FakeMailer:
    """Notifier double recording deliveries."""

    sent: list[Any] = field(default_factory=list)

    def deliver(self, payload: Any) -> None:
        self.sent.append(payload)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def telemetry() -> Any:
    """Enable telemetry for the test and yield the capturing reporter."""
    reporter = MemoryReporter()
    with config_scope(telemetry_enabled=True, telemetry_reporters=(reporter,)):
        yield reporter


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_pathflow_env(request, monkeypatch):
    """Clear PATHFLOW_* variables so settings resolve to their defaults.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("PATHFLOW_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("hypothesis").setLevel(logging.WARNING)
