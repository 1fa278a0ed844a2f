"""Configuration for a changelog run.

Everything that used to be a hard-coded constant (API endpoint, merge
phrase, tag pattern, category keywords, fan-out) lives on ChangelogConfig
and is handed to the generator explicitly, so tests can substitute any
of it.

An optional YAML file overrides the defaults:

    primary_branch: main
    max_concurrency: 8
    category_rules:
      - category: Fixed
        keywords: [fix, resolve, bug]
      - category: Changed
        keywords: [change]
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from release_changelog.errors import ConfigError
from release_changelog.schemas import Category


class CategoryRule(BaseModel):
    """Titles containing one of ``keywords`` belong to ``category``."""

    category: Category
    keywords: list[str] = Field(..., min_length=1)


DEFAULT_CATEGORY_RULES = [
    CategoryRule(category=Category.FIXED, keywords=["fix", "resolve"]),
    CategoryRule(category=Category.CHANGED, keywords=["change"]),
]


class ChangelogConfig(BaseModel):
    """Settings for one run of the generator.

    Attributes:
        graphql_endpoint: GitHub GraphQL API URL
        github_host: Base URL used when linking issue references
        token_env_var: Environment variable holding the bearer token
        upstream_remote: Remote tried first when resolving owner/name
        default_remote: Fallback remote
        primary_branch: Branch whose tip closes the merge window
        tag_pattern: Glob passed to ``git describe --match``
        merge_phrase: Text identifying a pull request merge commit
        category_rules: Ordered rules; titles matching none are Added
        match_all_keywords: Test every keyword of a rule, not only the first
        max_concurrency: Ceiling on in-flight requests (None = unlimited)
        request_timeout: Per-request timeout in seconds (None = wait forever)
        pad_day_by_month: Reproduce the legacy date padding quirk
    """

    graphql_endpoint: str = "https://api.github.com/graphql"
    github_host: str = "https://github.com"
    token_env_var: str = "GITHUB_TOKEN"
    upstream_remote: str = "upstream"
    default_remote: str = "origin"
    primary_branch: str = "main"
    tag_pattern: str = "[0-9]*.[0-9]*.[0-9]*"
    merge_phrase: str = "Merge pull request"
    category_rules: list[CategoryRule] = Field(
        default_factory=lambda: [rule.model_copy(deep=True) for rule in DEFAULT_CATEGORY_RULES]
    )
    match_all_keywords: bool = False
    max_concurrency: int | None = Field(None, ge=1)
    request_timeout: float | None = Field(None, gt=0)
    pad_day_by_month: bool = True


def load_config(path: str | Path | None) -> ChangelogConfig:
    """Load and validate a YAML config file.

    Args:
        path: Path to the YAML file, or None for defaults.

    Returns:
        A validated ChangelogConfig. Returns defaults if the file doesn't exist.

    Raises:
        ConfigError: If the YAML content is invalid or fails validation.
    """
    if path is None:
        return ChangelogConfig()

    config_path = Path(path)
    if not config_path.exists():
        return ChangelogConfig()

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    try:
        return ChangelogConfig.model_validate(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid changelog config in {path}: {exc}") from exc
