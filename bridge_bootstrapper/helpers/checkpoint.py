#!/usr/bin/env python3
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(prefix="addresses_", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(tmp_fd, "w") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def read_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path) as f:
        return json.load(f)


def _jsonable(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return hex(value)
    if hasattr(value, "to_json"):
        return value.to_json()
    return value


def save_entries(path: Path, entries: dict[str, Any]) -> None:
    data = read_json(path)
    data.update({k: _jsonable(v) for k, v in entries.items()})
    write_json_atomic(path, data)


def rotate_checkpoint(path: Path) -> Path | None:
    """Move an existing checkpoint aside as ``<name>.prev``. Returns the new location, if any."""
    path = Path(path)
    if not path.exists():
        return None
    previous = path.with_name(path.name + ".prev")
    os.replace(path, previous)
    return previous
