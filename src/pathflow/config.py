"""Configuration: resolve once, freeze, then flow.

Settings are validated through a Pydantic schema and frozen into a
``Config`` payload. Precedence is defaults < environment (``PATHFLOW_*``,
with a ``.env`` file loaded once through python-dotenv) < overrides.

Operations read the ambient configuration with ``current_config()``; use
``config_scope`` to pin one for a block of code. The ambient slot lives in a
``ContextVar`` so scopes stay local to a thread or task.
"""

from __future__ import annotations

from contextlib import contextmanager
import contextvars
from dataclasses import dataclass
import logging
import os
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError

from pathflow.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

    from pathflow.telemetry import TelemetryReporter

log = logging.getLogger(__name__)

ENV_PREFIX = "PATHFLOW_"

# --- Schema (Pydantic wall) ---


class Settings(BaseModel):
    """Schema for configuration fields, their defaults and validation."""

    #: Reject scope values an operation did not declare.
    strict_scope: bool = Field(default=False)
    #: Log every directive execution at DEBUG level.
    trace: bool = Field(default=False)
    #: Record directive timings through telemetry reporters.
    telemetry_enabled: bool = Field(default=False)

    model_config = {"extra": "forbid"}


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class Config:
    """Immutable configuration consumed by operations and the DSL engine."""

    strict_scope: bool = False
    trace: bool = False
    telemetry_enabled: bool = False
    #: Not resolvable from the environment; pass through overrides.
    telemetry_reporters: tuple[TelemetryReporter, ...] = ()


# --- Loading ---

_DOTENV_LOADED: bool = False


def _load_dotenv_once() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


def load_env() -> dict[str, Any]:
    """Read ``PATHFLOW_*`` variables naming known settings fields.

    Values stay strings; Pydantic coerces them (``"1"``, ``"true"``, ``"on"``).
    """
    config: dict[str, Any] = {}
    for name in Settings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            config[name] = value.strip()
    return config


# --- Public resolution API ---


def resolve_config(overrides: Mapping[str, Any] | None = None) -> Config:
    """Resolve configuration from defaults, environment and overrides.

    Raises:
        ConfigurationError: If a value fails validation or a key is unknown.
    """
    _load_dotenv_once()

    merged: dict[str, Any] = {**load_env(), **(overrides or {})}
    reporters = tuple(merged.pop("telemetry_reporters", None) or ())

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        field_name = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        msg = err.get("msg", "invalid value")
        hint = None
        if err.get("type") == "extra_forbidden":
            hint = f"Known settings: {', '.join(sorted(Settings.model_fields))}"
        raise ConfigurationError(
            f"Configuration validation failed for '{field_name}': {msg}", hint=hint
        ) from e

    for reporter in reporters:
        if not (
            callable(getattr(reporter, "record_timing", None))
            and callable(getattr(reporter, "record_metric", None))
        ):
            raise ConfigurationError(
                f"Invalid telemetry reporter: {reporter!r}",
                hint="Reporters implement record_timing() and record_metric().",
            )

    cfg = Config(**settings.model_dump(), telemetry_reporters=reporters)
    log.debug("Resolved configuration: %s", cfg)
    return cfg


# --- Ambient scope ---

_AMBIENT: contextvars.ContextVar[Config | None] = contextvars.ContextVar(
    "pathflow_ambient_config", default=None
)


@contextmanager
def config_scope(
    cfg_or_overrides: Mapping[str, Any] | Config | None = None,
    **overrides: Any,
) -> Generator[Config]:
    """Pin a configuration for the duration of a ``with`` block.

    Example:
        with config_scope(trace=True):
            CreateUser(repository=repo).call(params)
    """
    if isinstance(cfg_or_overrides, Config):
        if overrides:
            raise ConfigurationError(
                "Cannot combine a Config instance with keyword overrides",
                hint="Pass either a Config or override keywords.",
            )
        cfg = cfg_or_overrides
    else:
        cfg = resolve_config({**(cfg_or_overrides or {}), **overrides})

    token = _AMBIENT.set(cfg)
    try:
        yield cfg
    finally:
        _AMBIENT.reset(token)


def current_config() -> Config:
    """Return the ambient configuration, resolving a fresh one if unset."""
    cfg = _AMBIENT.get()
    return cfg if cfg is not None else resolve_config()


__all__ = [
    "ENV_PREFIX",
    "Config",
    "Settings",
    "config_scope",
    "current_config",
    "load_env",
    "resolve_config",
]
