"""manifestsubmit CLI.

Subcommands:
  check-existing -> show an existing pull request and confirm resubmission
  write          -> write a generated change set into the output directory
  env            -> show the detected runtime environment
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any

import yaml

from manifestsubmit.config import SubmitConfig
from manifestsubmit.environment import load_environment
from manifestsubmit.errors import SubmissionError, classify_error
from manifestsubmit.guard import prompt_existing_pull_request
from manifestsubmit.logging import configure_logging, get_logger
from manifestsubmit.models import PullRequest
from manifestsubmit.runtime import execute_command, prepare_config
from manifestsubmit.ux import print_error, print_operation_status, print_summary_box
from manifestsubmit.writer import resolve_file_name, write_changes

_MAX_HELP_WIDTH = 100

EXIT_DECLINED = 1


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands."""
    p = _FormatterArgumentParser(
        prog="manifestsubmit", description="Submit package manifest changes as pull requests"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational logging (env: MANIFESTSUBMIT_QUIET=1)",
    )
    p.add_argument("--config", help="Path to manifestsubmit.config.yaml")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    ce = sub.add_parser(
        "check-existing", help="Confirm before resubmitting a package version with a pull request"
    )
    ce.add_argument("--identifier", required=True, help="Package identifier")
    ce.add_argument("--version", required=True, help="Package version")
    ce.add_argument(
        "--pull-request",
        help="YAML/JSON file with the existing pull request (state, createdAt, url)",
    )
    ce.add_argument("--state", help="Pull request state (OPEN, CLOSED, MERGED)")
    ce.add_argument("--created-at", help="Pull request creation timestamp (ISO 8601)")
    ce.add_argument("--url", help="Pull request URL")
    ce.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; implied when CI=true",
    )

    w = sub.add_parser("write", help="Write generated manifests into the output directory")
    w.add_argument(
        "--changes",
        required=True,
        help="YAML/JSON file: mapping of path to content, or list of {path, content}",
    )
    w.add_argument("--output", help="Output directory (overrides config)")
    w.add_argument("--max-concurrency", type=int, help="Maximum simultaneous writes")

    sub.add_parser("env", help="Show the detected runtime environment")
    return p


def _read_structured(path: str) -> Any:
    try:
        return yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise SubmissionError(f"Unable to read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise SubmissionError(f"Invalid YAML/JSON in {path}: {exc}") from exc


def _load_change_set(path: str) -> list[tuple[str, str]]:
    data = _read_structured(path)
    if isinstance(data, dict):
        items = list(data.items())
    elif isinstance(data, list):
        items = []
        for entry in data:
            if not isinstance(entry, dict) or "path" not in entry or "content" not in entry:
                raise SubmissionError(f"Change entries in {path} need 'path' and 'content'")
            items.append((entry["path"], entry["content"]))
    else:
        raise SubmissionError(f"Change set in {path} must be a mapping or a list")
    changes: list[tuple[str, str]] = []
    for entry_path, content in items:
        if not isinstance(content, str):
            raise SubmissionError(f"Content for {entry_path!r} must be a string")
        changes.append((str(entry_path), content))
    return changes


def _load_pull_request(args: argparse.Namespace, parser: argparse.ArgumentParser) -> PullRequest:
    if args.pull_request:
        data = _read_structured(args.pull_request)
        if not isinstance(data, dict):
            raise SubmissionError(f"Pull request in {args.pull_request} must be a mapping")
    else:
        if not (args.state and args.created_at and args.url):
            parser.error("check-existing needs --pull-request or all of --state/--created-at/--url")
        data = {"state": args.state, "createdAt": args.created_at, "url": args.url}
    try:
        return PullRequest.from_dict(data)
    except ValueError as exc:
        raise SubmissionError(str(exc)) from exc


def _cmd_check_existing(
    cfg: SubmitConfig, args: argparse.Namespace, parser: argparse.ArgumentParser
) -> int:
    pull_request = _load_pull_request(args, parser)
    environment = load_environment(cfg.environment_config())
    non_interactive = args.non_interactive or environment.non_interactive
    proceed = prompt_existing_pull_request(
        args.identifier,
        args.version,
        pull_request,
        non_interactive=non_interactive,
    )
    if proceed:
        print_operation_status("check-existing", "proceed")
        return 0
    print_operation_status(
        "check-existing", "skipped" if non_interactive else "declined", "not proceeding"
    )
    return EXIT_DECLINED


def _cmd_write(cfg: SubmitConfig, args: argparse.Namespace) -> int:
    changes = _load_change_set(args.changes)
    output = cfg.output_directory
    write_changes(changes, output, cfg.writer_config())
    written = sum(1 for path, _ in changes if resolve_file_name(path) is not None)
    print_operation_status("write", "written", f"{written} files in {output}")
    return 0


def _cmd_env(cfg: SubmitConfig) -> int:
    environment = load_environment(cfg.environment_config())
    print_summary_box(
        "Runtime environment",
        [
            ("CI", environment.is_ci),
            ("Fork owner override", environment.fork_owner),
            ("Created with", environment.created_with),
            ("Created with URL", environment.created_with_url),
        ],
    )
    return 0


def _build_handlers(
    args: argparse.Namespace, cfg: SubmitConfig, parser: argparse.ArgumentParser
) -> dict[str, Any]:
    return {
        "check-existing": lambda: _cmd_check_existing(cfg, args, parser),
        "write": lambda: _cmd_write(cfg, args),
        "env": lambda: _cmd_env(cfg),
    }


def _report_failure(exc: SubmissionError) -> int:
    info = classify_error(exc)
    get_logger().debug("Command failed", category=info.category, error_type=info.original_type)
    print_error(info.message)
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("MANIFESTSUBMIT_QUIET") == "1":
        args.quiet = True
    try:
        cfg = prepare_config(args)
    except SubmissionError as exc:
        return _report_failure(exc)
    configure_logging(
        json_logging=cfg.logging_json_enabled,
        level="WARNING" if args.quiet else cfg.logging_level,
    )
    handlers = _build_handlers(args, cfg, parser)
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    try:
        return execute_command(handler, args.cmd)
    except SubmissionError as exc:
        return _report_failure(exc)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
