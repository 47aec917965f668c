"""Runtime environment detection.

Reads the signals the submission workflow reacts to (CI detection, fork owner
override and tool attribution) from environment variables, optionally after
loading a ``.env`` file. The result is an immutable value that is passed into
components explicitly, so nothing downstream reads ``os.environ`` itself.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

CI_ENV = "CI"
FORK_OWNER_ENV = "MANIFESTSUBMIT_FORK_OWNER"
CREATED_WITH_ENV = "MANIFESTSUBMIT_CREATED_WITH"
CREATED_WITH_URL_ENV = "MANIFESTSUBMIT_CREATED_WITH_URL"

_DOTENV_FALLBACKS = (".env", ".env.local")


@dataclass
class EnvironmentConfig:
    """Configuration for environment loading."""

    load_dotenv: bool = True
    dotenv_path: str | None = None


@dataclass(frozen=True)
class RuntimeEnvironment:
    is_ci: bool = False
    fork_owner: str | None = None
    created_with: str | None = None
    created_with_url: str | None = None

    @property
    def non_interactive(self) -> bool:
        return self.is_ci


def parse_bool_literal(value: str | None) -> bool | None:
    """Parse ``"true"``/``"false"`` exactly; anything else is ``None``."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _non_empty(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name)
    return value or None


def detect_environment(environ: Mapping[str, str] | None = None) -> RuntimeEnvironment:
    env = os.environ if environ is None else environ
    return RuntimeEnvironment(
        is_ci=parse_bool_literal(env.get(CI_ENV)) is True,
        fork_owner=_non_empty(env, FORK_OWNER_ENV),
        created_with=_non_empty(env, CREATED_WITH_ENV),
        created_with_url=_non_empty(env, CREATED_WITH_URL_ENV),
    )


def _load_dotenv(config: EnvironmentConfig) -> Path | None:
    logger = get_logger()
    candidates = [config.dotenv_path] if config.dotenv_path else list(_DOTENV_FALLBACKS)
    for candidate in candidates:
        env_file = Path(candidate)
        if env_file.is_file():
            load_dotenv(env_file, override=False)
            logger.debug(f"Loaded environment variables from {env_file}")
            return env_file
    if config.dotenv_path:
        logger.warning("dotenv file not found", dotenv_path=config.dotenv_path)
    return None


def load_environment(config: EnvironmentConfig | None = None) -> RuntimeEnvironment:
    """Load ``.env`` (when enabled) and detect the runtime environment."""
    config = config or EnvironmentConfig()
    if config.load_dotenv:
        _load_dotenv(config)
    detected = detect_environment()
    get_logger().debug(
        "runtime environment detected",
        is_ci=detected.is_ci,
        fork_owner=detected.fork_owner,
    )
    return detected


__all__ = [
    "CI_ENV",
    "CREATED_WITH_ENV",
    "CREATED_WITH_URL_ENV",
    "FORK_OWNER_ENV",
    "EnvironmentConfig",
    "RuntimeEnvironment",
    "detect_environment",
    "load_environment",
    "parse_bool_literal",
]
