"""Pipeline orchestrator and CLI entry point.

This module ties together all the components:
- History scanning (context/history.py)
- Pull request number extraction (extractor.py)
- Metadata fetching (context/github.py)
- Classification (classifier.py)
- Rendering and merging with the existing file (changelog.py)

The generator follows this flow:
1. Resolve owner/name, the last release tag and the merges since it
2. Extract one pull request number per merge
3. Fetch every pull request concurrently, dropping failures
4. Group the survivors by category
5. Render the new file in memory, then overwrite CHANGELOG.md once

Nothing is written unless every step succeeds.
"""

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import sys
from pathlib import Path

from release_changelog.changelog import parse_changelog, render_changelog
from release_changelog.classifier import group_records
from release_changelog.config import ChangelogConfig, load_config
from release_changelog.context.github import GitHubClient, PullRequestFetcher
from release_changelog.context.history import HistoryScanner, SubprocessGitRunner
from release_changelog.errors import ChangelogError, ConfigError, NoChangeRecords
from release_changelog.extractor import extract_references
from release_changelog.logging_config import bind_run_context, get_logger, setup_logging
from release_changelog.schemas import ChangelogDocument, NewRelease

logger = get_logger(__name__)


class ChangelogGenerator:
    """Builds the next release section and merges it into the changelog.

    Usage:
        generator = ChangelogGenerator(config=load_config("changelog.yaml"))
        await generator.run("1.5.0", Path("CHANGELOG.md"))
    """

    def __init__(
        self,
        config: ChangelogConfig | None = None,
        scanner: HistoryScanner | None = None,
        fetcher: PullRequestFetcher | None = None,
        today: dt.date | None = None,
    ) -> None:
        """Initialize the generator with its collaborators.

        Args:
            config: Run settings. Uses defaults if None.
            scanner: History scanner. Defaults to one backed by the git binary.
            fetcher: Pull request fetcher. Defaults to the GraphQL client.
            today: Release date. Defaults to the current local date.
        """
        self.config = config or ChangelogConfig()
        self.scanner = scanner or HistoryScanner(SubprocessGitRunner(), self.config)
        self.fetcher = fetcher or GitHubClient(config=self.config)
        self.today = today

    async def build(self, version: str, document: ChangelogDocument) -> str:
        """Produce the full text of the updated changelog.

        Raises:
            ChangelogError: On any fatal failure (see errors.py)
        """
        if not version.strip():
            raise ConfigError("version must not be empty")

        origin = self.scanner.resolve_origin()
        marker = self.scanner.resolve_last_release_marker()
        merges = self.scanner.list_merges_since(marker)

        references = extract_references(merges)
        logger.info(
            "references_extracted",
            repo=origin.slug,
            marker=marker,
            references=references,
        )

        results = await self.fetcher.fetch_all(origin.owner, origin.name, references)
        records = [result.record for result in results if result.record is not None]
        if not records:
            raise NoChangeRecords(
                f"no pull requests could be fetched for {origin.slug} since {marker}"
            )

        release = NewRelease(
            version=version,
            date=self.today or dt.date.today(),
            groups=group_records(
                records, self.config.category_rules, self.config.match_all_keywords
            ),
        )
        logger.info(
            "release_classified",
            **{category.value.lower(): len(items) for category, items in release.groups.items()},
        )
        return render_changelog(document, release, origin, self.config)

    async def run(self, version: str, changelog_path: Path) -> None:
        """Read the changelog, build the new release and overwrite the file."""
        text = (
            changelog_path.read_text(encoding="utf-8")
            if changelog_path.exists()
            else ""
        )
        document = parse_changelog(text)

        with bind_run_context(version=version):
            try:
                updated = await self.build(version, document)
            except ChangelogError as e:
                logger.error("generation_failed", error=str(e))
                raise

            changelog_path.write_text(updated, encoding="utf-8")
            logger.info("changelog_written", path=str(changelog_path))


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-changelog",
        description="Prepend a release section built from merged pull requests "
        "to CHANGELOG.md",
    )
    parser.add_argument("version", help="Version label for the new release heading")
    parser.add_argument(
        "--changelog",
        type=Path,
        default=Path("CHANGELOG.md"),
        help="Changelog file to update (default: CHANGELOG.md)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML file overriding the default settings",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="DEBUG, INFO, WARNING or ERROR (default: $LOG_LEVEL or INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Usage:
        release-changelog 1.5.0
        release-changelog 1.5.0 --changelog docs/CHANGELOG.md --config changelog.yaml

    Returns 0 on success and 1 on any fatal error. A missing or blank
    version makes argparse exit with status 2 before anything else runs.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.version.strip():
        parser.error("version must not be empty")
    setup_logging(log_level=args.log_level)

    try:
        config = load_config(args.config)
        generator = ChangelogGenerator(config=config)
        asyncio.run(generator.run(args.version, args.changelog))
    except (ChangelogError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(f"Changelog updated for version {args.version}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
