from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

UNKNOWN_VERSION = "unknown"

T = TypeVar("T")


@dataclass(frozen=True)
class ParsedChangelog:
    """Signals extracted from one fetch of the changelog document.

    ``changelog_entries`` is ordered most recent first and never holds more
    than the parser's entry cap. Instances are replaced wholesale by the next
    run, never merged.
    """

    latest_version: str
    changelog_entries: tuple[str, ...]
    raw_text: str

    def as_json(self) -> dict[str, Any]:
        return {
            "latestVersion": self.latest_version,
            "changelogEntries": list(self.changelog_entries),
            "rawText": self.raw_text,
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> ParsedChangelog:
        """Rebuild a cached changelog; raises ``ValueError`` on a bad shape.

        Caches written by the legacy monitor stored the document under
        ``rawHtml``; it is accepted as an alias of ``rawText``.
        """
        entries_any = payload.get("changelogEntries")
        if not isinstance(entries_any, list) or not all(isinstance(e, str) for e in entries_any):
            raise ValueError("changelogEntries must be a list of strings")
        version_any = payload.get("latestVersion", UNKNOWN_VERSION)
        raw_any = payload.get("rawText", payload.get("rawHtml", ""))
        return cls(
            latest_version=version_any if isinstance(version_any, str) else UNKNOWN_VERSION,
            changelog_entries=tuple(entries_any),
            raw_text=raw_any if isinstance(raw_any, str) else "",
        )


class LoadStatus(str, Enum):
    ABSENT = "absent"
    CORRUPT = "corrupt"
    PRESENT = "present"


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    """Outcome of reading one persisted state slot.

    ``absent`` is the normal first-run case; ``corrupt`` carries the reason in
    ``detail`` so callers can alert on it.
    """

    status: LoadStatus
    value: T | None = None
    detail: str | None = None

    @classmethod
    def absent(cls) -> LoadResult[T]:
        return cls(LoadStatus.ABSENT)

    @classmethod
    def corrupt(cls, detail: str) -> LoadResult[T]:
        return cls(LoadStatus.CORRUPT, detail=detail)

    @classmethod
    def present(cls, value: T) -> LoadResult[T]:
        return cls(LoadStatus.PRESENT, value=value)

    @property
    def is_corrupt(self) -> bool:
        return self.status is LoadStatus.CORRUPT

    def as_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status.value}
        if self.detail:
            payload["detail"] = self.detail
        return payload


@dataclass(frozen=True)
class StoredState:
    spec_load: LoadResult[str] = field(default_factory=LoadResult.absent)
    cache_load: LoadResult[ParsedChangelog] = field(default_factory=LoadResult.absent)

    @property
    def stored_version(self) -> str:
        if self.spec_load.status is LoadStatus.PRESENT and self.spec_load.value is not None:
            return self.spec_load.value
        return UNKNOWN_VERSION

    @property
    def cached_changelog(self) -> ParsedChangelog | None:
        if self.cache_load.status is LoadStatus.PRESENT:
            return self.cache_load.value
        return None


@dataclass(frozen=True)
class MonitorResult:
    version_changed: bool
    changelog_changed: bool
    current_version: str
    stored_version: str
    changelog_data: ParsedChangelog
    current_spec: Any

    @property
    def changed(self) -> bool:
        return self.version_changed or self.changelog_changed

    def as_json(self) -> dict[str, Any]:
        return {
            "versionChanged": self.version_changed,
            "changelogChanged": self.changelog_changed,
            "currentVersion": self.current_version,
            "storedVersion": self.stored_version,
            "changelogData": self.changelog_data.as_json(),
            "currentSpec": self.current_spec,
        }


def declared_version(spec: Any) -> str:
    """Return ``info.version`` of a specification document or the sentinel."""
    if isinstance(spec, Mapping):
        info = spec.get("info")
        if isinstance(info, Mapping):
            version = info.get("version")
            if isinstance(version, str) and version:
                return version
    return UNKNOWN_VERSION


__all__ = [
    "UNKNOWN_VERSION",
    "LoadResult",
    "LoadStatus",
    "MonitorResult",
    "ParsedChangelog",
    "StoredState",
    "declared_version",
]
