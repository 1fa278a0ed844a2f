"""Git history scanning.

Finds the GitHub repository the checkout belongs to, the most recent
release tag, and the pull request merge commits made since that tag.

Design notes:
- All git access goes through the GitRunner protocol so tests can feed
  canned output instead of shelling out
- Calls are sequential and blocking; the scan happens once per run
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Protocol

from release_changelog.config import ChangelogConfig
from release_changelog.errors import (
    GitCommandError,
    NoReleaseMarkerFound,
    NoRemoteConfigured,
)
from release_changelog.logging_config import get_logger
from release_changelog.schemas import RepositoryOrigin

logger = get_logger(__name__)

# Trailing "owner/name" of https://, ssh:// and scp-style (git@host:owner/name) URLs
REMOTE_URL_RE = re.compile(r"[:/](?P<owner>[^/:]+)/(?P<name>[^/]+?)(?:\.git)?/?$")


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class GitRunner(Protocol):
    """Runs a git subcommand and returns its standard output."""

    def run(self, *args: str) -> str:
        """Run ``git <args>``.

        Raises:
            GitCommandError: If git exits with a non-zero status
        """
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class SubprocessGitRunner:
    """GitRunner backed by the ``git`` binary."""

    def __init__(self, cwd: str | Path | None = None) -> None:
        self._cwd = cwd

    def run(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self._cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stderr)
        return result.stdout


def parse_remote_url(url: str) -> RepositoryOrigin | None:
    """Split a remote URL into owner and repository name.

    >>> parse_remote_url("git@github.com:octo/widgets.git")
    RepositoryOrigin(owner='octo', name='widgets')
    """
    match = REMOTE_URL_RE.search(url.strip())
    if match is None:
        return None
    return RepositoryOrigin(owner=match.group("owner"), name=match.group("name"))


class HistoryScanner:
    """Reads the release window out of the local repository.

    Usage:
        scanner = HistoryScanner(SubprocessGitRunner(), ChangelogConfig())
        origin = scanner.resolve_origin()
        marker = scanner.resolve_last_release_marker()
        merges = scanner.list_merges_since(marker)
    """

    def __init__(self, git: GitRunner, config: ChangelogConfig | None = None) -> None:
        self.git = git
        self.config = config or ChangelogConfig()

    def resolve_origin(self) -> RepositoryOrigin:
        """Owner/name of the upstream remote, else of the default remote.

        Raises:
            NoRemoteConfigured: If neither remote yields an owner/name pair
        """
        for remote in (self.config.upstream_remote, self.config.default_remote):
            try:
                url = self.git.run("remote", "get-url", remote)
            except GitCommandError:
                logger.debug("remote_missing", remote=remote)
                continue
            origin = parse_remote_url(url)
            if origin is not None:
                logger.debug("remote_resolved", remote=remote, repo=origin.slug)
                return origin
            logger.debug("remote_unparseable", remote=remote, url=url.strip())

        raise NoRemoteConfigured(
            f"neither '{self.config.upstream_remote}' nor "
            f"'{self.config.default_remote}' points at a repository"
        )

    def resolve_last_release_marker(self) -> str:
        """Most recent tag matching the release pattern reachable from HEAD.

        Raises:
            NoReleaseMarkerFound: If no such tag exists
        """
        try:
            marker = self.git.run(
                "describe", "--tags", "--abbrev=0", "--match", self.config.tag_pattern
            ).strip()
        except GitCommandError as exc:
            raise NoReleaseMarkerFound(
                f"no tag matching '{self.config.tag_pattern}': {exc.stderr or exc}"
            ) from exc

        if not marker:
            raise NoReleaseMarkerFound(f"no tag matching '{self.config.tag_pattern}'")
        return marker

    def list_merges_since(self, marker: str) -> list[str]:
        """Pull request merge subjects between ``marker`` and the primary branch.

        Returned in the order git prints them (newest first), each stripped.
        """
        output = self.git.run(
            "log",
            f"{marker}..{self.config.primary_branch}",
            "--merges",
            f"--grep={self.config.merge_phrase}",
            "--pretty=format:%s",
        )
        merges = [
            line.strip()
            for line in output.splitlines()
            if self.config.merge_phrase in line
        ]
        logger.info("history_scanned", marker=marker, merges=len(merges))
        return merges
