"""Process-wide configuration held in a ContextVar.

Each thread starts from the configuration loaded at import; asyncio tasks
inherit the context of the code that created them, so `with_context`
overrides never leak between concurrent requests or tests.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel

from bookshelf.runtime.config.config_data import ConfigData
from bookshelf.runtime.config.config_template import load_templated_yaml
from bookshelf.runtime.config.settings import EnvironmentVariables


@dataclass
class AppContext:
    """State shared by the whole service; currently only its configuration."""

    config: ConfigData


def load_default_config() -> ConfigData:
    """Load configuration from the file named by BOOKSHELF_CONFIG_FILE.

    Falls back to built-in defaults when the file does not exist.
    """
    env = EnvironmentVariables()
    path = Path(env.config_file)
    if not path.exists():
        logger.warning("Configuration file {} not found; using defaults", path)
        config = ConfigData()
        config.app.environment = env.environment
        return config
    return load_templated_yaml(path, env.environment)


_app_context: ContextVar[AppContext] = ContextVar(
    "bookshelf_context", default=AppContext(config=load_default_config())
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Install `context` for the current thread or task; returns the reset token."""
    return _app_context.set(context)


def _explicit_values(model: BaseModel) -> dict[str, Any]:
    """Values the caller actually set on `model`, recursing into sections.

    A section assigned as a whole counts in full. A section that was only
    mutated in place contributes just the attributes assigned on it.
    """
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if not isinstance(value, BaseModel):
            if name in model.model_fields_set:
                values[name] = value
            continue
        if name in model.model_fields_set:
            values[name] = value.model_dump()
            continue
        nested = _explicit_values(value)
        if nested:
            values[name] = nested
    return values


def _deep_merge(base: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in changes.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _overlay(base: ConfigData, override: ConfigData) -> ConfigData:
    """`base` with every value explicitly set on `override` applied on top."""
    merged = _deep_merge(base.model_dump(), _explicit_values(override))
    return ConfigData.model_validate(merged)


@contextmanager
def with_context(config_override: ConfigData | None = None) -> Iterator[None]:
    """Run a block with part of the configuration replaced.

    Only values explicitly set on `config_override` change; the rest is
    inherited from the current configuration. The previous configuration
    is restored on exit, exceptions included.

    Example:
        override = ConfigData()
        override.database.connection_string = "sqlite://"
        with with_context(override):
            assert get_config().database.connection_string == "sqlite://"
    """
    if config_override is None:
        yield
        return
    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    current = get_context()
    token = set_context(replace(current, config=_overlay(current.config, config_override)))
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the whole configuration for the current thread or task."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    return get_context().config
