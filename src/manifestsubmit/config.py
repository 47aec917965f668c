from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml

from .environment import EnvironmentConfig
from .errors import SubmissionError
from .writer import DEFAULT_MAX_CONCURRENCY, WriterConfig

CONFIG_DEFAULT = 'manifestsubmit.config.yaml'
DEFAULT_OUTPUT_DIR = 'manifests'


class ConfigError(SubmissionError):
    pass


@dataclass
class SubmitConfig:
    version: int
    output_directory: Path
    # Writer configuration
    writer_max_concurrency: int
    writer_warn_on_collision: bool
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str
    # Environment configuration
    env_load_dotenv: bool
    env_dotenv_path: str | None

    def writer_config(self) -> WriterConfig:
        return WriterConfig(
            max_concurrency=self.writer_max_concurrency,
            warn_on_collision=self.writer_warn_on_collision,
        )

    def environment_config(self) -> EnvironmentConfig:
        return EnvironmentConfig(
            load_dotenv=self.env_load_dotenv,
            dotenv_path=self.env_dotenv_path,
        )


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {}) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return cast(dict[str, Any], value)


def _int(section: dict[str, Any], key: str, default: int, label: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{label} must be an integer: {exc}") from exc


def _bool(section: dict[str, Any], key: str, default: bool, label: str) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{label} must be true or false, got {value!r}")
    return value


def _str(section: dict[str, Any], key: str, default: str | None, label: str) -> str | None:
    value = section.get(key, default)
    if value is None and default is None:
        return None
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{label} must be a non-empty string, got {value!r}")
    return value


def _build(raw: dict[str, Any], base: Path) -> SubmitConfig:
    out = _section(raw, 'output')
    writer = _section(raw, 'writer')
    logging_config = _section(raw, 'logging')
    env = _section(raw, 'environment')

    max_concurrency = _int(
        writer, 'max_concurrency', DEFAULT_MAX_CONCURRENCY, 'writer.max_concurrency'
    )
    if max_concurrency < 1:
        raise ConfigError('writer.max_concurrency must be at least 1')
    directory = cast(str, _str(out, 'directory', DEFAULT_OUTPUT_DIR, 'output.directory'))

    return SubmitConfig(
        version=_int(raw, 'version', 1, 'version'),
        output_directory=base / directory,
        writer_max_concurrency=max_concurrency,
        writer_warn_on_collision=_bool(
            writer, 'warn_on_collision', True, 'writer.warn_on_collision'
        ),
        logging_json_enabled=_bool(logging_config, 'json_enabled', False, 'logging.json_enabled'),
        logging_level=cast(str, _str(logging_config, 'level', 'INFO', 'logging.level')),
        env_load_dotenv=_bool(env, 'load_dotenv', True, 'environment.load_dotenv'),
        env_dotenv_path=_str(env, 'dotenv_path', None, 'environment.dotenv_path'),
    )


def default_config(base: str | Path = '.') -> SubmitConfig:
    return _build({}, Path(base))


def load_config(path: str | Path) -> SubmitConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        loaded = yaml.safe_load(p.read_text(encoding='utf-8'))
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in {p}: {exc}') from exc
    if loaded is not None and not isinstance(loaded, dict):
        raise ConfigError(f'Configuration root in {p} must be a mapping')
    return _build(cast(dict[str, Any], loaded or {}), p.parent)


__all__ = ['CONFIG_DEFAULT', 'ConfigError', 'SubmitConfig', 'default_config', 'load_config']
