"""Runtime helpers for manifestsubmit CLI orchestration."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from manifestsubmit.config import (
    CONFIG_DEFAULT,
    ConfigError,
    SubmitConfig,
    default_config,
    load_config,
)
from manifestsubmit.errors import redact
from manifestsubmit.logging import get_logger


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[[str], SubmitConfig] = load_config
) -> SubmitConfig:
    """Load and post-process SubmitConfig for the given argparse namespace.

    An explicit ``--config`` must exist; otherwise the default file is used
    when present and built-in defaults when it is not.
    """
    config_path = getattr(args, "config", None)
    if config_path:
        cfg = loader(config_path)
    elif Path(CONFIG_DEFAULT).exists():
        cfg = loader(CONFIG_DEFAULT)
    else:
        cfg = default_config()
    output_override = getattr(args, "output", None)
    if output_override:
        cfg.output_directory = Path(output_override)
    max_concurrency = getattr(args, "max_concurrency", None)
    if max_concurrency is not None:
        if max_concurrency < 1:
            raise ConfigError("--max-concurrency must be at least 1")
        cfg.writer_max_concurrency = max_concurrency
    return cfg


def execute_command(handler: _HandlerCallable, command: str) -> int:
    """Execute a command handler while logging its outcome and duration."""
    logger = get_logger()
    start = time.perf_counter()
    try:
        result = handler()
        exit_code = int(result) if result is not None else 0
    except Exception as exc:
        logger.log_error(f"command {command} failed", error=redact(str(exc)), command=command)
        raise
    logger.log_performance(
        f"command_{command.replace('-', '_')}",
        (time.perf_counter() - start) * 1000,
        exit_code=exit_code,
    )
    return exit_code


__all__ = ["prepare_config", "execute_command"]
