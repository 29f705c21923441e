"""specwatch - change detection for a vendor API specification and changelog.

High-level public API:

from specwatch import ChangelogMonitor

monitor = ChangelogMonitor.from_config_path('specwatch.config.yaml')
result = monitor.run()
print(result.version_changed, result.changelog_changed)

The CLI (``specwatch check``) wraps the same call and writes the result
file that downstream automation consumes.
"""

from __future__ import annotations

from .changelog import ChangelogParser
from .config import MonitorConfig, load_config
from .errors import DecodeError, MonitorError, NetworkError
from .models import LoadResult, LoadStatus, MonitorResult, ParsedChangelog, StoredState
from .monitor import ChangelogMonitor, MonitorState
from .state_store import StateStore

# Version constant (sync manually with pyproject)
__version__ = "0.1.0"

__all__ = [
    "ChangelogMonitor",
    "ChangelogParser",
    "DecodeError",
    "LoadResult",
    "LoadStatus",
    "MonitorConfig",
    "MonitorError",
    "MonitorResult",
    "MonitorState",
    "NetworkError",
    "ParsedChangelog",
    "StateStore",
    "StoredState",
    "load_config",
    "__version__",
]
