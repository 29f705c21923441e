"""Change-detection run: fetch, parse, compare, persist, report.

One :meth:`ChangelogMonitor.run` call walks

    IDLE -> FETCHING -> PARSING -> COMPARING -> PERSISTING -> REPORTED

and ends in ``FAILED`` instead when a remote document cannot be fetched or
decoded. A failed run persists nothing and returns no result. Local state
problems never fail a run: unreadable prior state reads as "unknown", and a
failed cache write is logged while the computed result is still returned.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from . import digest
from .changelog import ChangelogParser
from .config import MonitorConfig, load_config
from .fetcher import DocumentFetcher, changelog_resource, spec_resource
from .logging import get_logger
from .models import MonitorResult, declared_version
from .state_store import StateStore


class MonitorState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    COMPARING = "comparing"
    PERSISTING = "persisting"
    REPORTED = "reported"
    FAILED = "failed"


class ChangelogMonitor:
    def __init__(
        self,
        config: MonitorConfig | None = None,
        *,
        fetcher: DocumentFetcher | None = None,
        store: StateStore | None = None,
        parser: ChangelogParser | None = None,
    ) -> None:
        self.config = config or MonitorConfig()
        self.fetcher = fetcher or DocumentFetcher(timeout=self.config.timeout)
        self.store = store or StateStore(self.config.spec_path, self.config.cache_path)
        self.parser = parser or ChangelogParser(
            boundaries=self.config.date_boundaries,
            entry_mode=self.config.entry_mode,
            version_strategy=self.config.version_strategy,
            heading_tags=self.config.heading_tags,
            max_entries=self.config.max_entries,
            min_entry_length=self.config.min_entry_length,
        )
        self.state = MonitorState.IDLE
        self.logger = get_logger()

    @classmethod
    def from_config_path(cls, path: str | Path | None = None) -> ChangelogMonitor:
        return cls(load_config(path))

    def _enter(self, state: MonitorState) -> None:
        self.logger.debug(f"monitor state {self.state.value} -> {state.value}", state=state.value)
        self.state = state

    def run(self) -> MonitorResult:
        self.state = MonitorState.IDLE
        try:
            with self.logger.timed_operation("monitor_run"):
                return self._run()
        except Exception:
            self._enter(MonitorState.FAILED)
            raise

    def _run(self) -> MonitorResult:
        stored = self.store.load_stored_state()
        self.logger.info(f"Stored API version: {stored.stored_version}")

        self._enter(MonitorState.FETCHING)
        changelog_text, current_spec = self.fetcher.fetch_all(
            [
                changelog_resource(self.config.changelog_url, self.config.user_agent),
                spec_resource(self.config.spec_url, self.config.user_agent),
            ],
            concurrent=self.config.concurrent_fetch,
        )
        current_version = declared_version(current_spec)
        self.logger.info(f"Current API version: {current_version}")

        self._enter(MonitorState.PARSING)
        parsed = self.parser.parse(str(changelog_text), declared_version=current_version)
        self.logger.info(
            f"Latest changelog version: {parsed.latest_version}; "
            f"{len(parsed.changelog_entries)} recent entries",
            entry_count=len(parsed.changelog_entries),
        )

        self._enter(MonitorState.COMPARING)
        version_changed = current_version != stored.stored_version
        changelog_changed = not digest.equal(parsed, stored.cached_changelog)
        self.logger.info(
            f"Version changed: {version_changed}; changelog changed: {changelog_changed}",
            version_changed=version_changed,
            changelog_changed=changelog_changed,
        )

        self._enter(MonitorState.PERSISTING)
        self.store.save_changelog_cache(parsed)

        result = MonitorResult(
            version_changed=version_changed,
            changelog_changed=changelog_changed,
            current_version=current_version,
            stored_version=stored.stored_version,
            changelog_data=parsed,
            current_spec=current_spec,
        )
        self._enter(MonitorState.REPORTED)
        return result


__all__ = ["ChangelogMonitor", "MonitorState"]
