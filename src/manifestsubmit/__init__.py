"""manifestsubmit - helpers for submitting package manifest pull requests.

High-level public API:

from manifestsubmit import prompt_existing_pull_request, write_changes_to_dir

if prompt_existing_pull_request(identifier, version, pull_request,
                                non_interactive=detect_environment().non_interactive):
    await write_changes_to_dir(changes, Path('manifests'))

The CLI delegates to these functions.
"""

from __future__ import annotations

from .config import SubmitConfig, load_config
from .environment import RuntimeEnvironment, detect_environment, load_environment
from .errors import (
    ChangeWriteError,
    InteractionError,
    OutputDirectoryError,
    SubmissionError,
)
from .guard import (
    describe_existing_pull_request,
    prompt_existing_pull_request,
    prompt_existing_pull_request_async,
)
from .models import PullRequest, PullRequestState
from .writer import ChangeWriter, WriterConfig, write_changes, write_changes_to_dir

__version__ = "0.1.0"

__all__ = [
    "ChangeWriteError",
    "ChangeWriter",
    "InteractionError",
    "OutputDirectoryError",
    "PullRequest",
    "PullRequestState",
    "RuntimeEnvironment",
    "SubmissionError",
    "SubmitConfig",
    "WriterConfig",
    "describe_existing_pull_request",
    "detect_environment",
    "load_config",
    "load_environment",
    "prompt_existing_pull_request",
    "prompt_existing_pull_request_async",
    "write_changes",
    "write_changes_to_dir",
    "__version__",
]
