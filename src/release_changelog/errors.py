"""Exceptions raised by the changelog pipeline.

Every error that should abort a run derives from ChangelogError so the
CLI can turn it into a non-zero exit with one except clause. Per-record
fetch failures are not exceptions at this level; they travel as failed
FetchResult values and are dropped by the generator.
"""

from __future__ import annotations


class ChangelogError(Exception):
    """Base class for fatal changelog generation errors."""


class ConfigError(ChangelogError):
    """The configuration file could not be read or validated."""


class GitCommandError(ChangelogError):
    """A git invocation exited with a non-zero status."""

    def __init__(self, args: tuple[str, ...], returncode: int, stderr: str = "") -> None:
        self.command = args
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(
            f"git {' '.join(args)} exited with status {returncode}{detail}"
        )


class NoRemoteConfigured(ChangelogError):
    """Neither the upstream nor the default remote resolves to owner/name."""


class NoReleaseMarkerFound(ChangelogError):
    """No tag matching the release pattern is reachable from HEAD."""


class MalformedMergeEvent(ChangelogError):
    """A merge commit message does not reference a pull request number."""

    def __init__(self, event: str) -> None:
        self.event = event
        super().__init__(f"no pull request reference found in merge event: {event!r}")


class NoChangeRecords(ChangelogError):
    """Every pull request fetch failed, leaving nothing to write."""
