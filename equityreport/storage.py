from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import get_settings


_UNSAFE_FILE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def exports_root() -> Path:
    root = get_settings().data_dir / 'exports'
    root.mkdir(parents=True, exist_ok=True)
    return root


def _safe_ticker(ticker: str) -> str:
    token = _UNSAFE_FILE_CHARS.sub('_', str(ticker or '').strip()).strip('._')
    return token.upper() or 'REPORT'


def export_filename(ticker: str) -> str:
    return f'Report-{_safe_ticker(ticker)}.pdf'


def export_path(ticker: str, *, output_dir: Path | None = None) -> Path:
    root = output_dir if output_dir is not None else exports_root()
    return root / export_filename(ticker)


def events_path() -> Path:
    return exports_root() / 'events.jsonl'


def write_bytes_atomic(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(payload)
    tmp.replace(path)


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding='utf-8')
    tmp.replace(path)


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding='utf-8'))


def append_event(event: str, **extra: Any) -> None:
    now = datetime.now(timezone.utc).isoformat()
    row = {
        'ts': now,
        'event': event,
        **extra,
    }
    events_file = events_path()
    events_file.parent.mkdir(parents=True, exist_ok=True)
    with events_file.open('a', encoding='utf-8') as f:
        f.write(json.dumps(row, ensure_ascii=False, default=str) + '\n')
