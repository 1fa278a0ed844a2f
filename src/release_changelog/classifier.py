"""Keyword-based classification of pull request titles."""

from __future__ import annotations

from collections.abc import Sequence

from release_changelog.config import DEFAULT_CATEGORY_RULES, CategoryRule
from release_changelog.schemas import Category, ChangeRecord


def classify(
    title: str,
    rules: Sequence[CategoryRule] | None = None,
    match_all_keywords: bool = False,
) -> Category:
    """Assign a title to a category.

    Rules are tried in order and the first match wins; a title matching
    no rule is Added. Matching is a case-insensitive substring test.
    ``rules`` defaults to DEFAULT_CATEGORY_RULES.

    By default only the first keyword of each rule is consulted, so with
    the default rules "Resolve race in cache" is Added, not Fixed. Pass
    ``match_all_keywords=True`` to test every keyword.
    """
    lowered = title.lower()
    for rule in rules if rules is not None else DEFAULT_CATEGORY_RULES:
        keywords = rule.keywords if match_all_keywords else rule.keywords[:1]
        if any(keyword.lower() in lowered for keyword in keywords):
            return rule.category
    return Category.ADDED


def group_records(
    records: Sequence[ChangeRecord],
    rules: Sequence[CategoryRule] | None = None,
    match_all_keywords: bool = False,
) -> dict[Category, list[ChangeRecord]]:
    """Bucket records by category, keeping fetch order within each bucket."""
    groups: dict[Category, list[ChangeRecord]] = {category: [] for category in Category}
    for record in records:
        groups[classify(record.title, rules, match_all_keywords)].append(record)
    return groups
