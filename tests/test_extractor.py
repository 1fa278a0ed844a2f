"""Tests for pull request number extraction."""

from __future__ import annotations

import pytest

from release_changelog.errors import MalformedMergeEvent
from release_changelog.extractor import extract_reference, extract_references


def test_merge_subject_yields_number() -> None:
    assert extract_references(["Merge pull request #42 from branch"]) == [42]


def test_order_is_preserved_and_duplicates_kept() -> None:
    events = [
        "Merge pull request #11 from octo/b",
        "Merge pull request #10 from octo/a",
        "Merge pull request #11 from octo/b-again",
    ]
    assert extract_references(events) == [11, 10, 11]


def test_first_match_wins() -> None:
    assert extract_reference("Merge pull request #7 from octo/fix-#9") == 7


def test_leading_zero_is_not_a_reference() -> None:
    assert extract_reference("Merge #0 and then pull request #15") == 15


def test_missing_reference_raises() -> None:
    with pytest.raises(MalformedMergeEvent) as exc_info:
        extract_references(["Merge pull request #3 from a", "Merge branch 'main'"])
    assert exc_info.value.event == "Merge branch 'main'"


def test_empty_input() -> None:
    assert extract_references([]) == []
