"""Bounded concurrent writer for generated manifest files.

Files are flattened into the output directory (only the final path component
of each generated path is kept) and written with at most
``WriterConfig.max_concurrency`` writes in flight. All writes are joined
before the first failure is reported; successful writes are never rolled
back since the outputs can be regenerated and overwritten.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Sequence
from pathlib import Path, PurePath

from .errors import ChangeWriteError, OutputDirectoryError, redact
from .logging import get_logger
from .models import ChangeSet

DEFAULT_MAX_CONCURRENCY = 2


class WriterConfig:
    """Configuration for the change writer."""

    def __init__(
        self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY, warn_on_collision: bool = True
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.warn_on_collision = warn_on_collision


def resolve_file_name(path: str) -> str | None:
    """Return the final component of ``path`` or ``None`` when there is none."""
    name = PurePath(path).name
    if name in ("", ".", ".."):
        return None
    return name


def find_collisions(changes: ChangeSet) -> dict[str, list[str]]:
    """Map flattened file names targeted by several entries to their source paths."""
    seen: dict[str, list[str]] = {}
    for path, _content in changes:
        name = resolve_file_name(path)
        if name is not None:
            seen.setdefault(name, []).append(path)
    return {name: paths for name, paths in seen.items() if len(paths) > 1}


def _write_file(target: Path, content: str) -> None:
    target.write_bytes(content.encode("utf-8"))


class ChangeWriter:
    """Writes a change set into a directory with bounded parallelism."""

    def __init__(self, config: WriterConfig | None = None):
        self.config = config or WriterConfig()
        self.logger = get_logger()

    def plan(self, changes: ChangeSet, output: Path) -> list[tuple[Path, str]]:
        """Resolve each entry to its flattened target, dropping nameless paths."""
        targets: list[tuple[Path, str]] = []
        for path, content in changes:
            name = resolve_file_name(path)
            if name is None:
                self.logger.debug("Skipping entry without file name", path=path)
                continue
            targets.append((output / name, content))
        return targets

    async def _ensure_directory(self, output: Path) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, functools.partial(output.mkdir, parents=True, exist_ok=True)
            )
        except OSError as exc:
            self.logger.log_error(
                "Failed to create output directory", error=redact(str(exc)), path=str(output)
            )
            raise OutputDirectoryError(output, exc) from exc

    async def _write_one(self, semaphore: asyncio.Semaphore, target: Path, content: str) -> None:
        async with semaphore:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, functools.partial(_write_file, target, content))

    async def write(self, changes: ChangeSet, output: str | Path) -> None:
        output = Path(output)
        await self._ensure_directory(output)

        if self.config.warn_on_collision:
            for name, paths in find_collisions(changes).items():
                self.logger.warning(
                    f"Multiple entries flatten to {name}; the last one wins",
                    file_name=name,
                    sources=paths,
                )

        targets = self.plan(changes, output)
        with self.logger.timed_operation(
            "write_changes",
            file_count=len(targets),
            max_concurrency=self.config.max_concurrency,
        ):
            semaphore = asyncio.Semaphore(self.config.max_concurrency)
            tasks = [
                asyncio.create_task(self._write_one(semaphore, target, content))
                for target, content in targets
            ]
            results = await asyncio.gather(*tasks, return_exceptions=True)

            failures: list[tuple[Path, Exception]] = []
            for (target, _content), result in zip(targets, results):
                if isinstance(result, Exception):
                    self.logger.log_error(
                        f"Failed to write {target.name}",
                        error=redact(str(result)),
                        path=str(target),
                    )
                    failures.append((target, result))
                elif isinstance(result, BaseException):
                    raise result

            if failures:
                target, exc = failures[0]
                raise ChangeWriteError(target, exc, failed=len(failures)) from exc


async def write_changes_to_dir(
    changes: ChangeSet, output: str | Path, config: WriterConfig | None = None
) -> None:
    """Write ``changes`` into ``output``; raises a SubmissionError subclass on failure."""
    await ChangeWriter(config).write(changes, output)


def write_changes(
    changes: Sequence[tuple[str, str]], output: str | Path, config: WriterConfig | None = None
) -> None:
    """Synchronous entry point for callers without a running event loop."""
    asyncio.run(write_changes_to_dir(changes, output, config))


__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "ChangeWriter",
    "WriterConfig",
    "find_collisions",
    "resolve_file_name",
    "write_changes",
    "write_changes_to_dir",
]
