from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast
from urllib.parse import urlsplit

import yaml

from .changelog import (
    DEFAULT_DATE_BOUNDARIES,
    DEFAULT_MAX_ENTRIES,
    DEFAULT_MIN_ENTRY_LENGTH,
    ENTRY_MODES,
    VERSION_STRATEGIES,
)
from .errors import ConfigError
from .fetcher import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT

CONFIG_DEFAULT = "specwatch.config.yaml"

DEFAULT_CHANGELOG_URL = "https://www.openphone.com/docs/mdx/api-reference/changelog"
DEFAULT_SPEC_URL = (
    "https://openphone-public-api-prod.s3.us-west-2.amazonaws.com"
    "/public/openphone-public-api-v1-prod.json"
)


@dataclass
class MonitorConfig:
    root: Path = field(default_factory=Path.cwd)
    version: int = 1
    # Remote sources
    changelog_url: str = DEFAULT_CHANGELOG_URL
    spec_url: str = DEFAULT_SPEC_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    concurrent_fetch: bool = False
    # Persisted state, relative to ``root``
    spec_file: str = "openapi.json"
    changelog_cache: str = ".changelog-cache.json"
    report_file: str = "monitor-results.json"
    # Changelog parsing
    entry_mode: str = "boundaries"
    version_strategy: str = "first"
    heading_tags: list[str] = field(default_factory=lambda: ["h2"])
    max_entries: int = DEFAULT_MAX_ENTRIES
    min_entry_length: int = DEFAULT_MIN_ENTRY_LENGTH
    date_boundaries: list[str] = field(default_factory=lambda: list(DEFAULT_DATE_BOUNDARIES))
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = "INFO"

    @property
    def spec_path(self) -> Path:
        return self.root / self.spec_file

    @property
    def cache_path(self) -> Path:
        return self.root / self.changelog_cache

    @property
    def report_path(self) -> Path:
        return self.root / self.report_file


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        return os.getenv(value[1:], value)  # Fallback to original if not found
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {}) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return {str(k): _resolve_env_var(v) for k, v in section.items()}


def _choice(value: Any, allowed: tuple[str, ...], key: str) -> str:
    if value not in allowed:
        raise ConfigError(f"{key} must be one of {', '.join(allowed)} (got {value!r})")
    return cast(str, value)


def _string_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key} must be a list of strings")
    return list(value)


_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


def _flag(value: Any, key: str) -> bool:
    """Booleans from YAML arrive as bool, from $ENV values as strings."""
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ConfigError(f"{key} must be a boolean (got {value!r})")


def _absolute_url(value: Any, key: str) -> str:
    url = str(value)
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        hint = " (environment variable not set?)" if url.startswith("$") else ""
        raise ConfigError(f"{key} must be an absolute URL, got {url!r}{hint}")
    return url


def _non_negative_int(value: Any, key: str) -> int:
    number = int(value)
    if number < 0:
        raise ConfigError(f"{key} must not be negative (got {number})")
    return number


def build_config(raw: dict[str, Any], root: Path) -> MonitorConfig:
    sources = _section(raw, 'sources')
    state = _section(raw, 'state')
    changelog = _section(raw, 'changelog')
    logging_config = _section(raw, 'logging')
    defaults = MonitorConfig(root=root)
    try:
        return MonitorConfig(
            root=root,
            version=int(raw.get('version', 1)),
            changelog_url=_absolute_url(
                sources.get('changelog_url', defaults.changelog_url), 'sources.changelog_url'
            ),
            spec_url=_absolute_url(sources.get('spec_url', defaults.spec_url), 'sources.spec_url'),
            user_agent=str(sources.get('user_agent', defaults.user_agent)),
            timeout=float(sources.get('timeout', defaults.timeout)),
            concurrent_fetch=_flag(sources.get('concurrent', False), 'sources.concurrent'),
            spec_file=str(state.get('spec_file', defaults.spec_file)),
            changelog_cache=str(state.get('changelog_cache', defaults.changelog_cache)),
            report_file=str(state.get('report_file', defaults.report_file)),
            entry_mode=_choice(
                changelog.get('entry_mode', defaults.entry_mode),
                ENTRY_MODES,
                'changelog.entry_mode',
            ),
            version_strategy=_choice(
                changelog.get('version_strategy', defaults.version_strategy),
                VERSION_STRATEGIES,
                'changelog.version_strategy',
            ),
            heading_tags=_string_list(
                changelog.get('heading_tags', defaults.heading_tags), 'changelog.heading_tags'
            ),
            max_entries=_non_negative_int(
                changelog.get('max_entries', defaults.max_entries), 'changelog.max_entries'
            ),
            min_entry_length=_non_negative_int(
                changelog.get('min_entry_length', defaults.min_entry_length),
                'changelog.min_entry_length',
            ),
            date_boundaries=_string_list(
                changelog.get('date_boundaries', defaults.date_boundaries),
                'changelog.date_boundaries',
            ),
            logging_json_enabled=_flag(
                logging_config.get('json_enabled', False), 'logging.json_enabled'
            ),
            logging_level=str(logging_config.get('level', 'INFO')),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'Invalid configuration value: {exc}') from exc


def load_config(path: str | Path | None = None) -> MonitorConfig:
    """Load configuration from YAML.

    With no explicit path the default file is used when present; otherwise
    built-in defaults apply relative to the working directory. An explicitly
    named file that does not exist is an error.
    """
    if path is None:
        candidate = Path(CONFIG_DEFAULT)
        if not candidate.exists():
            return MonitorConfig(root=Path.cwd())
        p = candidate
    else:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw_any: Any = yaml.safe_load(p.read_text(encoding='utf-8')) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f'Cannot read configuration {p}: {exc}') from exc
    if not isinstance(raw_any, dict):
        raise ConfigError(f'Configuration root must be a mapping: {p}')
    return build_config(cast(dict[str, Any], raw_any), p.resolve().parent)


__all__ = ["CONFIG_DEFAULT", "MonitorConfig", "build_config", "load_config"]
