"""Reading and writing CHANGELOG.md.

The existing file is split into a preamble (anything above the title),
a title, a description and a list of ``## `` sections. Sections are
carried as opaque title/body pairs and written back exactly as parsed,
after the newly rendered release.

Layout produced by render_changelog():

    {preamble}
    # {title}
    {description}

    ## [{version}] - {date}
    ### Added
    - [PR #12](...): Add dark mode. Thanks [Jane](...) for the PR!

    ## {existing title}
    {existing body}


"""

from __future__ import annotations

import datetime as dt
import re

from release_changelog.config import ChangelogConfig
from release_changelog.extractor import REFERENCE_RE
from release_changelog.schemas import (
    Category,
    ChangelogDocument,
    ChangeRecord,
    NewRelease,
    ReleaseSection,
    RepositoryOrigin,
)

TITLE_RE = re.compile(r"^#\s+(?P<title>.*?)\s*$")
SECTION_RE = re.compile(r"^##\s+(?P<title>.*?)\s*$")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_changelog(text: str) -> ChangelogDocument:
    """Split changelog Markdown into title, description and sections.

    Lines ahead of the ``# `` title are kept as the preamble. Blank lines
    around the preamble, description and section bodies are dropped;
    indentation inside them is kept.
    """
    title: str | None = None
    preamble: list[str] = []
    description: list[str] = []
    sections: list[ReleaseSection] = []
    current_title: str | None = None
    current_body: list[str] = []

    for line in text.splitlines():
        section_match = SECTION_RE.match(line)
        if section_match:
            if current_title is not None:
                sections.append(_section(current_title, current_body))
            current_title = section_match.group("title")
            current_body = []
            continue

        if current_title is not None:
            current_body.append(line)
            continue

        title_match = TITLE_RE.match(line)
        if title is None and title_match:
            title = title_match.group("title")
        elif title is not None:
            description.append(line)
        else:
            preamble.append(line)

    if current_title is not None:
        sections.append(_section(current_title, current_body))

    return ChangelogDocument(
        preamble="\n".join(preamble).strip("\n"),
        title=title or "Changelog",
        description="\n".join(description).strip("\n"),
        sections=tuple(sections),
    )


def _section(title: str, body: list[str]) -> ReleaseSection:
    return ReleaseSection(title=title, body="\n".join(body).strip("\n"))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_release_date(day: dt.date, pad_day_by_month: bool = True) -> str:
    """Format ``day`` as YYYY-MM-DD for the release heading.

    With ``pad_day_by_month`` (the default) the day is zero-padded only
    when the month is, so 2026-11-05 comes out as "2026-11-5". This
    matches the headings already present in changelogs written by earlier
    releases of the tool. Pass False for a plain ISO date.
    """
    if not pad_day_by_month:
        return day.isoformat()

    month = f"{day.month:02d}"
    day_of_month = str(day.day)
    if day.month < 10:
        day_of_month = day_of_month.zfill(2)
    return f"{day.year}-{month}-{day_of_month}"


def link_references(text: str, origin: RepositoryOrigin, github_host: str) -> str:
    """Rewrite every ``#N`` in ``text`` as a link to issue N."""
    base = f"{github_host.rstrip('/')}/{origin.owner}/{origin.name}/issues"
    return REFERENCE_RE.sub(
        lambda match: f"[#{match.group(1)}]({base}/{match.group(1)})", text
    )


def render_entry(record: ChangeRecord, origin: RepositoryOrigin, github_host: str) -> str:
    """One list item for a pull request, including the trailing newline.

    If the first line of the description cites an issue (e.g. "Closes #12"),
    it is appended lower-cased with the citation linked.
    """
    line = f"- [PR #{record.number}]({record.url}): {record.title}"

    first_line = record.body.splitlines()[0].strip() if record.body else ""
    if REFERENCE_RE.search(first_line):
        line += ", " + link_references(first_line.lower(), origin, github_host)

    return line + f". Thanks [{record.author.name}]({record.author.url}) for the PR!\n"


def render_release(
    release: NewRelease, origin: RepositoryOrigin, config: ChangelogConfig
) -> str:
    """The new ``## [version] - date`` section with its non-empty categories."""
    parts = [
        f"## [{release.version}] - "
        f"{format_release_date(release.date, config.pad_day_by_month)}\n"
    ]
    for category in Category:
        records = release.records(category)
        if not records:
            continue
        parts.append(f"### {category.value}\n")
        parts.extend(render_entry(record, origin, config.github_host) for record in records)
        parts.append("\n")
    return "".join(parts)


def render_changelog(
    document: ChangelogDocument,
    release: NewRelease,
    origin: RepositoryOrigin,
    config: ChangelogConfig | None = None,
) -> str:
    """Header, then the new release, then every existing section unchanged."""
    config = config or ChangelogConfig()
    parts = [f"{document.preamble}\n"] if document.preamble else []
    parts += [
        f"# {document.title}\n",
        f"{document.description}\n\n",
        render_release(release, origin, config),
    ]
    for section in document.sections:
        parts.append(f"## {section.title}\n{section.body}\n\n\n")
    return "".join(parts)
