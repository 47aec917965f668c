"""Duplicate-submission guard.

When an earlier pull request exists for the same package version, the user is
shown its status and asked whether to continue. Non-interactive runs (CI)
never prompt and never continue.
"""

from __future__ import annotations

import asyncio
import functools
import sys
from collections.abc import Callable
from typing import TextIO

import click

from .errors import InteractionError
from .logging import get_logger
from .models import PackageIdentifier, PackageVersion, PullRequest, PullRequestState
from .ux import Colors, colorize

PROCEED_QUESTION = "Would you like to proceed?"

ConfirmCallable = Callable[[str], bool]


def _interaction_error(exc: BaseException) -> InteractionError:
    return InteractionError(f"Unable to read confirmation: {str(exc) or 'input aborted'}")


def confirm_proceed(question: str) -> bool:
    """Ask a yes/no question on the terminal."""
    sys.stderr.flush()
    try:
        return click.confirm(question, default=False, err=True)
    except (click.Abort, EOFError, OSError) as exc:
        raise _interaction_error(exc) from exc


def _state_phrase(state: PullRequestState) -> str:
    if state is PullRequestState.MERGED:
        return "a merged"
    if state is PullRequestState.OPEN:
        return "an open"
    return "a closed"


def describe_existing_pull_request(
    identifier: PackageIdentifier, version: PackageVersion, pull_request: PullRequest
) -> str:
    created = pull_request.created_at
    return (
        f"There is already {_state_phrase(pull_request.state)} pull request for "
        f"{identifier} {version} that was created on {created.date().isoformat()} "
        f"at {created.time().isoformat(timespec='seconds')}"
    )


def prompt_existing_pull_request(
    identifier: PackageIdentifier,
    version: PackageVersion,
    pull_request: PullRequest,
    *,
    non_interactive: bool,
    confirm: ConfirmCallable | None = None,
    stream: TextIO | None = None,
) -> bool:
    """Show the existing pull request and decide whether to continue.

    Returns ``False`` without prompting when ``non_interactive`` is set.
    Raises :class:`InteractionError` if the prompt cannot be answered.
    """
    stream = stream or sys.stdout
    print(describe_existing_pull_request(identifier, version, pull_request), file=stream)
    print(colorize(pull_request.url, Colors.BLUE, stream=stream), file=stream)

    logger = get_logger()
    if non_interactive:
        logger.debug(
            "Existing pull request found in non-interactive mode; not proceeding",
            identifier=identifier,
            version=version,
            state=pull_request.state.value,
        )
        return False

    ask = confirm or confirm_proceed
    try:
        proceed = bool(ask(PROCEED_QUESTION))
    except InteractionError:
        raise
    except (click.Abort, EOFError, OSError) as exc:
        raise _interaction_error(exc) from exc
    logger.debug(
        "Existing pull request confirmation answered",
        identifier=identifier,
        version=version,
        proceed=proceed,
    )
    return proceed


async def prompt_existing_pull_request_async(
    identifier: PackageIdentifier,
    version: PackageVersion,
    pull_request: PullRequest,
    *,
    non_interactive: bool,
    confirm: ConfirmCallable | None = None,
    stream: TextIO | None = None,
) -> bool:
    """Run :func:`prompt_existing_pull_request` off the event loop thread."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None,
        functools.partial(
            prompt_existing_pull_request,
            identifier,
            version,
            pull_request,
            non_interactive=non_interactive,
            confirm=confirm,
            stream=stream,
        ),
    )


__all__ = [
    "PROCEED_QUESTION",
    "confirm_proceed",
    "describe_existing_pull_request",
    "prompt_existing_pull_request",
    "prompt_existing_pull_request_async",
]
