"""Local file I/O utilities."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterator

from common.errors import FileIOError

logger = logging.getLogger(__name__)


def read_json_file(path: Path) -> Any:
    """Read a JSON file.

    Raises:
        FileIOError: If the file cannot be read or is not valid JSON.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise FileIOError(f"Failed to read {path}: {exc}") from exc


def write_json_file(path: Path, data: Any) -> None:
    """Write data as pretty JSON, replacing the whole file atomically.

    The parent directory is created when missing. The content goes to a
    temporary file in the same directory first so readers never observe a
    partially written file.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise FileIOError(f"Failed to write {path}: {exc}") from exc


def remove_file(path: Path) -> None:
    """Delete a stage file; a file that is already gone is not an error."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as exc:
        raise FileIOError(f"Failed to delete {path}: {exc}") from exc


def walk_json_files(root: Path) -> Iterator[Path]:
    """Yield every .json file below root in sorted order, skipping hidden entries."""
    root = Path(root)
    if not root.exists():
        return
    for path in sorted(root.rglob("*.json")):
        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue
        if path.is_file():
            yield path

