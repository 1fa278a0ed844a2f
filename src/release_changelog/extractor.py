"""Pull request number extraction from merge commit messages."""

from __future__ import annotations

import re
from collections.abc import Iterable

from release_changelog.errors import MalformedMergeEvent

# "#" followed by a number without a leading zero
REFERENCE_RE = re.compile(r"#([1-9]\d*)")


def extract_reference(event: str) -> int:
    """Return the first pull request number cited in ``event``.

    Raises:
        MalformedMergeEvent: If the text cites no number.
    """
    match = REFERENCE_RE.search(event)
    if match is None:
        raise MalformedMergeEvent(event)
    return int(match.group(1))


def extract_references(events: Iterable[str]) -> list[int]:
    """Map merge events to pull request numbers, one per event, in order.

    Numbers are not deduplicated: two merges citing the same pull request
    produce two entries.
    """
    return [extract_reference(event) for event in events]
