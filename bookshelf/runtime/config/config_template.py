"""config.yaml loading with `${...}` environment placeholders."""

import os
import re
from collections.abc import Mapping
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from bookshelf.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def environment_overrides(env_mode: str, environ: Mapping[str, str]) -> dict[str, str]:
    """Return `environ` with `<ENV>_`-prefixed variables promoted over plain ones.

    With APP_ENVIRONMENT=production, PRODUCTION_DATABASE_CONNECTION wins over
    DATABASE_CONNECTION.
    """
    prefix = f"{env_mode.upper()}_"
    resolved = dict(environ)
    promoted = []
    for var_name, var_value in environ.items():
        if var_name.startswith(prefix) and len(var_name) > len(prefix):
            resolved[var_name[len(prefix):]] = var_value
            promoted.append(var_name)
    if promoted:
        # names only, values may be secrets
        logger.info("Applying environment-specific overrides: {}", sorted(promoted))
    return resolved


def _resolve(expression: str, env: Mapping[str, str]) -> str:
    name, sep, rest = expression.partition(":-")
    if sep:
        return env.get(name, rest)

    name, sep, message = expression.partition(":?")
    value = env.get(name)
    if value is not None:
        return value
    if sep:
        raise ValueError(f"Required environment variable {name}: {message}")
    raise ValueError(f"Required environment variable {name} not set")


def substitute_env_vars(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace every `${...}` placeholder in `text`.

    `${NAME}` must be set, `${NAME:-fallback}` falls back when unset and
    `${NAME:?message}` fails with `message` when unset. Lookups go to
    `environ`, or the process environment when it is None.
    """
    env = os.environ if environ is None else environ
    return _PLACEHOLDER.sub(lambda match: _resolve(match.group(1), env), text)


def load_templated_yaml(file_path: Path, env_mode: str | None = None) -> ConfigData:
    """Read `file_path`, substitute placeholders and validate its `config:` section.

    `env_mode` selects the `<ENV>_` prefix for overrides and defaults to
    APP_ENVIRONMENT, then "development".

    Raises:
        FileNotFoundError: If `file_path` does not exist.
        ValueError: If a required variable is unset, the YAML is empty or
            malformed, or the values do not validate.
    """
    text = Path(file_path).read_text()

    env_mode = env_mode or os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration for environment: {}", env_mode)
    text = substitute_env_vars(text, environment_overrides(env_mode, os.environ))

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not document:
        raise ValueError("Failed to parse YAML")

    try:
        return ConfigData.model_validate(document.get("config") or {})
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
