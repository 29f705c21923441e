"""Changelog signal extraction.

Two entry modes are supported:

``boundaries``
    The legacy heuristic. Entries are cut from the raw document between an
    ordered, hand-maintained list of date labels (newest first). A label that
    no longer appears is skipped, so a stale list silently yields fewer
    entries; keep ``DEFAULT_DATE_BOUNDARIES`` (or the configured list) current.

``headings``
    Structural parse of the HTML: every heading element starts an entry that
    runs until the next heading of the same kind, so new dated entries are
    picked up without touching the boundary list.

Parsing never raises; a document with no recognisable content produces the
``unknown`` version and an empty entry tuple.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from packaging.version import InvalidVersion, Version

from .models import UNKNOWN_VERSION, ParsedChangelog

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")

DEFAULT_DATE_BOUNDARIES: tuple[str, ...] = (
    "January 22, 2025",
    "December 6, 2024",
    "November 25, 2024",
    "November 7, 2024",
    "November 4, 2024",
    "October 22, 2024",
    "October 21, 2024",
)

DEFAULT_MAX_ENTRIES = 3
DEFAULT_MIN_ENTRY_LENGTH = 50

ENTRY_MODES = ("boundaries", "headings")
VERSION_STRATEGIES = ("first", "max", "spec")


def find_versions(text: str) -> list[str]:
    return VERSION_PATTERN.findall(text)


def select_version(
    candidates: Sequence[str], strategy: str = "first", declared: str | None = None
) -> str:
    """Pick the changelog's latest version from candidates in document order.

    ``first`` trusts document order, ``max`` compares release numbers and
    ``spec`` prefers the version the specification declares when the
    changelog mentions it.
    """
    if not candidates:
        return UNKNOWN_VERSION
    if strategy == "max":
        return max(candidates, key=_version_key)
    if strategy == "spec" and declared and declared in candidates:
        return declared
    return candidates[0]


def _version_key(candidate: str) -> Version:
    try:
        return Version(candidate)
    except InvalidVersion:  # pragma: no cover - pattern only yields N.N.N
        return Version("0")


def split_on_boundaries(text: str, boundaries: Sequence[str]) -> list[str]:
    """Return raw segments delimited by consecutive boundary labels.

    Each segment starts at the first occurrence of its label and stops just
    before the first occurrence of the next label after it, or at the end of
    the document. The last label always runs to the end.
    """
    segments: list[str] = []
    for index, label in enumerate(boundaries):
        start = text.find(label)
        if start < 0:
            continue
        end = len(text)
        if index + 1 < len(boundaries):
            following = text.find(boundaries[index + 1], start + len(label))
            if following >= 0:
                end = following
        segments.append(text[start:end])
    return segments


def split_on_headings(html: str, heading_tags: Iterable[str] = ("h2",)) -> list[str]:
    """Return the text of each heading section of an HTML document."""
    tags = {tag.lower() for tag in heading_tags}
    soup = BeautifulSoup(html, "html.parser")
    for el in soup.find_all(["script", "style", "nav"]):
        el.decompose()
    segments: list[str] = []
    for heading in soup.find_all(list(tags)):
        parts = [heading.get_text(" ", strip=True)]
        for sibling in heading.next_siblings:
            if isinstance(sibling, Tag):
                if sibling.name in tags:
                    break
                text = sibling.get_text(" ", strip=True)
            elif isinstance(sibling, Comment):
                continue
            elif isinstance(sibling, NavigableString):
                text = str(sibling).strip()
            else:  # pragma: no cover - bs4 only yields the two node kinds
                continue
            if text:
                parts.append(text)
        segments.append("\n".join(parts))
    return segments


def select_entries(
    segments: Iterable[str],
    *,
    max_entries: int = DEFAULT_MAX_ENTRIES,
    min_length: int = DEFAULT_MIN_ENTRY_LENGTH,
) -> tuple[str, ...]:
    entries: list[str] = []
    for segment in segments:
        if len(entries) >= max_entries:
            break
        entry = segment.strip()
        if len(entry) < min_length:
            continue
        entries.append(entry)
    return tuple(entries)


class ChangelogParser:
    def __init__(
        self,
        *,
        boundaries: Sequence[str] = DEFAULT_DATE_BOUNDARIES,
        entry_mode: str = "boundaries",
        version_strategy: str = "first",
        heading_tags: Sequence[str] = ("h2",),
        max_entries: int = DEFAULT_MAX_ENTRIES,
        min_entry_length: int = DEFAULT_MIN_ENTRY_LENGTH,
    ) -> None:
        if entry_mode not in ENTRY_MODES:
            raise ValueError(f"Unknown entry mode: {entry_mode}")
        if version_strategy not in VERSION_STRATEGIES:
            raise ValueError(f"Unknown version strategy: {version_strategy}")
        self.boundaries = tuple(boundaries)
        self.entry_mode = entry_mode
        self.version_strategy = version_strategy
        self.heading_tags = tuple(heading_tags)
        self.max_entries = max_entries
        self.min_entry_length = min_entry_length

    def parse(self, text: str, declared_version: str | None = None) -> ParsedChangelog:
        latest = select_version(find_versions(text), self.version_strategy, declared_version)
        if self.entry_mode == "headings":
            segments = split_on_headings(text, self.heading_tags)
        else:
            segments = split_on_boundaries(text, self.boundaries)
        entries = select_entries(
            segments, max_entries=self.max_entries, min_length=self.min_entry_length
        )
        if not entries:
            logger.debug("no changelog entries extracted (%d candidate segments)", len(segments))
        return ParsedChangelog(latest_version=latest, changelog_entries=entries, raw_text=text)


__all__ = [
    "DEFAULT_DATE_BOUNDARIES",
    "ENTRY_MODES",
    "VERSION_STRATEGIES",
    "ChangelogParser",
    "find_versions",
    "select_entries",
    "select_version",
    "split_on_boundaries",
    "split_on_headings",
]
