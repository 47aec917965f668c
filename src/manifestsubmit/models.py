from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

PackageIdentifier = str
PackageVersion = str
ChangeSet = Sequence[tuple[str, str]]


class PullRequestState(str, Enum):
    """Lifecycle state of a pull request as reported by the GitHub API."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> PullRequestState:
        if isinstance(value, str):
            upper = value.upper()
            for member in cls:
                if member.value == upper:
                    return member
        return cls.UNKNOWN


def _parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw:
        raise ValueError(f"Invalid pull request timestamp: {raw!r}")
    text = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid pull request timestamp: {raw!r}") from exc


@dataclass(frozen=True)
class PullRequest:
    """An existing pull request discovered upstream; never mutated here."""

    state: PullRequestState
    created_at: datetime
    url: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PullRequest:
        """Build from a GraphQL-shaped mapping (``state``, ``createdAt``, ``url``)."""
        missing = [
            key
            for key, present in (
                ("state", "state" in data),
                ("createdAt", "createdAt" in data or "created_at" in data),
                ("url", "url" in data),
            )
            if not present
        ]
        if missing:
            raise ValueError(f"Pull request is missing fields: {', '.join(missing)}")
        created = data.get("createdAt", data.get("created_at"))
        return cls(
            state=PullRequestState(data["state"]),
            created_at=_parse_timestamp(created),
            url=str(data["url"]),
        )


__all__ = [
    "ChangeSet",
    "PackageIdentifier",
    "PackageVersion",
    "PullRequest",
    "PullRequestState",
]
