"""Result file for downstream automation (SDK regeneration, issue creation)."""

from __future__ import annotations

import json
from pathlib import Path

from .models import MonitorResult
from .state_store import write_text_atomic


def render_report(result: MonitorResult) -> str:
    return json.dumps(result.as_json(), indent=2, ensure_ascii=False) + "\n"


def write_report(path: Path, result: MonitorResult) -> Path:
    write_text_atomic(path, render_report(result))
    return path


__all__ = ["render_report", "write_report"]
