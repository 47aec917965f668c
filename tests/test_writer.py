"""Bounded change writer tests.

Coroutines are driven with asyncio.run wrappers, matching the concurrency
tests elsewhere in the suite.
"""

from __future__ import annotations

import asyncio
import json
import threading
import time
from pathlib import Path

import pytest

import manifestsubmit.writer as writer_module
from manifestsubmit.errors import ChangeWriteError, OutputDirectoryError, SubmissionError
from manifestsubmit.logging import configure_logging
from manifestsubmit.writer import (
    ChangeWriter,
    WriterConfig,
    find_collisions,
    resolve_file_name,
    write_changes,
    write_changes_to_dir,
)


def _listing(directory: Path) -> dict[str, str]:
    return {p.name: p.read_text(encoding="utf-8") for p in directory.iterdir()}


def test_flattens_paths_into_output(tmp_path: Path) -> None:
    out = tmp_path / "out"
    asyncio.run(write_changes_to_dir([("a.txt", "hello"), ("dir/b.txt", "world")], out))
    assert _listing(out) == {"a.txt": "hello", "b.txt": "world"}
    assert (out / "b.txt").read_bytes() == b"world"


def test_creates_missing_parent_directories(tmp_path: Path) -> None:
    out = tmp_path / "deep" / "nested" / "out"
    write_changes([("manifests/m/Pkg/1.0/Pkg.yaml", "PackageIdentifier: Pkg\n")], out)
    assert (out / "Pkg.yaml").read_text(encoding="utf-8") == "PackageIdentifier: Pkg\n"


@pytest.mark.parametrize("path", ["", "/"])
def test_entries_without_file_name_are_skipped(tmp_path: Path, path: str) -> None:
    out = tmp_path / "out"
    write_changes([(path, "ignored"), ("keep.txt", "kept")], out)
    assert _listing(out) == {"keep.txt": "kept"}


def test_only_nameless_entries_still_creates_directory(tmp_path: Path) -> None:
    out = tmp_path / "out"
    write_changes([("", "x"), (".", "y")], out)
    assert out.is_dir()
    assert list(out.iterdir()) == []


@pytest.mark.parametrize(
    "path, expected",
    [
        ("a.txt", "a.txt"),
        ("dir/b.txt", "b.txt"),
        ("manifests/p/Publisher/App/1.2.3/Publisher.App.installer.yaml", "Publisher.App.installer.yaml"),
        ("dir/", "dir"),
        ("", None),
        ("/", None),
        (".", None),
        ("a/..", None),
    ],
)
def test_resolve_file_name(path: str, expected: str | None) -> None:
    assert resolve_file_name(path) == expected


def test_unwritable_entry_fails_but_siblings_are_written(tmp_path: Path) -> None:
    out = tmp_path / "out"
    out.mkdir()
    # A directory in place of the target file makes that single write fail
    (out / "blocked.yaml").mkdir()
    changes = [
        ("a/first.yaml", "one"),
        ("b/blocked.yaml", "never"),
        ("c/second.yaml", "two"),
        ("d/third.yaml", "three"),
    ]

    with pytest.raises(ChangeWriteError) as excinfo:
        asyncio.run(write_changes_to_dir(changes, out))

    err = excinfo.value
    assert err.path == out / "blocked.yaml"
    assert err.failed == 1
    assert isinstance(err.__cause__, OSError)
    assert isinstance(err, SubmissionError)
    assert (out / "first.yaml").read_text(encoding="utf-8") == "one"
    assert (out / "second.yaml").read_text(encoding="utf-8") == "two"
    assert (out / "third.yaml").read_text(encoding="utf-8") == "three"


def test_multiple_failures_report_first_and_count(tmp_path: Path) -> None:
    out = tmp_path / "out"
    out.mkdir()
    (out / "x.yaml").mkdir()
    (out / "y.yaml").mkdir()
    changes = [("ok.yaml", "fine"), ("1/x.yaml", "a"), ("2/y.yaml", "b")]

    with pytest.raises(ChangeWriteError) as excinfo:
        write_changes(changes, out)

    assert excinfo.value.path.name == "x.yaml"
    assert excinfo.value.failed == 2
    assert "2 entries failed" in str(excinfo.value)
    assert (out / "ok.yaml").exists()


def test_output_directory_failure_aborts_before_writes(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    calls: list[Path] = []
    monkeypatch.setattr(writer_module, "_write_file", lambda target, content: calls.append(target))

    with pytest.raises(OutputDirectoryError) as excinfo:
        write_changes([("a.txt", "hello")], blocker / "out")

    assert excinfo.value.path == blocker / "out"
    assert calls == []


def test_never_more_than_two_writes_in_flight(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    lock = threading.Lock()
    state = {"current": 0, "peak": 0}
    original = writer_module._write_file

    def tracking_write(target: Path, content: str) -> None:
        with lock:
            state["current"] += 1
            state["peak"] = max(state["peak"], state["current"])
        try:
            time.sleep(0.02)
            original(target, content)
        finally:
            with lock:
                state["current"] -= 1

    monkeypatch.setattr(writer_module, "_write_file", tracking_write)
    changes = [(f"manifests/file{i}.yaml", f"content {i}") for i in range(7)]
    out = tmp_path / "out"

    asyncio.run(write_changes_to_dir(changes, out))

    assert 1 <= state["peak"] <= 2
    assert len(list(out.iterdir())) == 7


def test_custom_concurrency_limit(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lock = threading.Lock()
    state = {"current": 0, "peak": 0}

    def tracking_write(target: Path, content: str) -> None:
        with lock:
            state["current"] += 1
            state["peak"] = max(state["peak"], state["current"])
        time.sleep(0.01)
        with lock:
            state["current"] -= 1

    monkeypatch.setattr(writer_module, "_write_file", tracking_write)
    changes = [(f"f{i}.txt", "x") for i in range(4)]
    write_changes(changes, tmp_path / "out", WriterConfig(max_concurrency=1))
    assert state["peak"] == 1


def test_writing_twice_is_idempotent(tmp_path: Path) -> None:
    out = tmp_path / "out"
    changes = [("a.txt", "hello"), ("dir/b.txt", "world")]
    write_changes(changes, out)
    first = _listing(out)
    write_changes(changes, out)
    assert _listing(out) == first == {"a.txt": "hello", "b.txt": "world"}


def test_overwrite_truncates_existing_content(tmp_path: Path) -> None:
    out = tmp_path / "out"
    out.mkdir()
    (out / "a.txt").write_text("a much longer previous body", encoding="utf-8")
    write_changes([("a.txt", "short")], out)
    assert (out / "a.txt").read_text(encoding="utf-8") == "short"


def test_unicode_content_written_as_utf8(tmp_path: Path) -> None:
    out = tmp_path / "out"
    write_changes([("locale.yaml", "Description: Café ✓\n")], out)
    assert (out / "locale.yaml").read_bytes() == "Description: Café ✓\n".encode("utf-8")


def test_find_collisions() -> None:
    changes = [("x/a.txt", "1"), ("y/a.txt", "2"), ("b.txt", "3"), ("", "4")]
    assert find_collisions(changes) == {"a.txt": ["x/a.txt", "y/a.txt"]}
    assert find_collisions([("a.txt", "1")]) == {}


def test_collision_warns_and_last_entry_wins_when_serialised(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "out"
    write_changes(
        [("x/a.txt", "first"), ("y/a.txt", "second")],
        out,
        WriterConfig(max_concurrency=1),
    )
    assert _listing(out) == {"a.txt": "second"}
    assert "Multiple entries flatten to a.txt" in capsys.readouterr().out


def test_collision_warning_can_be_disabled(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    write_changes(
        [("x/a.txt", "first"), ("y/a.txt", "second")],
        tmp_path / "out",
        WriterConfig(max_concurrency=1, warn_on_collision=False),
    )
    assert "Multiple entries" not in capsys.readouterr().out


def test_writer_logs_operation_and_performance(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    write_changes([("a.txt", "x"), ("b.txt", "y")], tmp_path / "out")
    out = capsys.readouterr().out
    assert "Operation: write_changes_start" in out
    assert "Performance: write_changes completed" in out


def test_writer_timed_operation_logs_redacted_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    configure_logging(json_logging=True)

    def failing_write(target: Path, content: str) -> None:
        raise OSError("denied for ghp_ABCDEFGHIJKLMNOPQRSTUVWX")

    monkeypatch.setattr(writer_module, "_write_file", failing_write)
    with pytest.raises(ChangeWriteError):
        write_changes([("a.txt", "x")], tmp_path / "out")

    records = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line]
    assert records[0]["operation"] == "write_changes_start"
    assert records[0]["max_concurrency"] == 2
    final = records[-1]
    assert final["message"] == "operation write_changes failed"
    assert final["file_count"] == 1
    assert "ghp_" not in final["error"]
    assert not any(r["message"].startswith("Performance:") for r in records)


def test_change_writer_plan_skips_nameless(tmp_path: Path) -> None:
    writer = ChangeWriter()
    plan = writer.plan([("", "a"), ("dir/b.txt", "b")], tmp_path)
    assert plan == [(tmp_path / "b.txt", "b")]


def test_writer_config_defaults_and_validation() -> None:
    config = WriterConfig()
    assert config.max_concurrency == 2
    assert config.warn_on_collision is True
    with pytest.raises(ValueError):
        WriterConfig(max_concurrency=0)
