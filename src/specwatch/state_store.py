from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .errors import LocalStateReadError, LocalStateWriteError
from .models import UNKNOWN_VERSION, LoadResult, ParsedChangelog, StoredState, declared_version

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise LocalStateReadError(f"cannot read {path}: {exc}") from exc


def write_text_atomic(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` through a uniquely named sibling temp file.

    Concurrent writers never share a temp file, so readers see one complete
    version or the other. The temp file is removed if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class StateStore:
    """Two persisted slots: the stored API specification and the changelog cache.

    The specification record is maintained by the packaging workflow and is
    only read here. The cache is overwritten after every successful run.
    Reads never raise; a missing slot is ``absent`` and an unreadable one is
    ``corrupt``.
    """

    def __init__(self, spec_path: Path, cache_path: Path) -> None:
        self.spec_path = Path(spec_path)
        self.cache_path = Path(cache_path)

    def load_spec_version(self) -> LoadResult[str]:
        if not self.spec_path.exists():
            logger.debug("stored specification not found at %s", self.spec_path)
            return LoadResult.absent()
        try:
            raw = _read_json(self.spec_path)
            version = declared_version(raw)
            if version == UNKNOWN_VERSION:
                raise LocalStateReadError(f"{self.spec_path} has no info.version string")
        except LocalStateReadError as exc:
            logger.warning("stored specification unusable: %s", exc)
            return LoadResult.corrupt(str(exc))
        return LoadResult.present(version)

    def load_cache(self) -> LoadResult[ParsedChangelog]:
        if not self.cache_path.exists():
            logger.debug("changelog cache not found at %s", self.cache_path)
            return LoadResult.absent()
        try:
            raw = _read_json(self.cache_path)
            if not isinstance(raw, dict):
                raise LocalStateReadError(f"{self.cache_path} is not a JSON object")
            try:
                cached = ParsedChangelog.from_json(raw)
            except ValueError as exc:
                raise LocalStateReadError(f"{self.cache_path}: {exc}") from exc
        except LocalStateReadError as exc:
            logger.warning("changelog cache unusable, treating as first run: %s", exc)
            return LoadResult.corrupt(str(exc))
        return LoadResult.present(cached)

    def load_stored_state(self) -> StoredState:
        return StoredState(spec_load=self.load_spec_version(), cache_load=self.load_cache())

    def save_changelog_cache(self, parsed: ParsedChangelog) -> bool:
        """Overwrite the cache with ``parsed``; return False if the write failed.

        The new content goes to a sibling temp file that is renamed over the
        cache, so an overlapping run sees either the old or the new file.
        """
        try:
            self._write_cache(parsed)
        except LocalStateWriteError as exc:
            logger.error("changelog cache not saved: %s", exc)
            return False
        return True

    def _write_cache(self, parsed: ParsedChangelog) -> None:
        payload = json.dumps(parsed.as_json(), indent=2, ensure_ascii=False)
        try:
            write_text_atomic(self.cache_path, payload + "\n")
        except OSError as exc:
            raise LocalStateWriteError(f"cannot write {self.cache_path}: {exc}") from exc


__all__ = ["StateStore", "write_text_atomic"]
