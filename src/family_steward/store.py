"""Well-known snapshot files shared between the bridge and the application."""

import json
import logging
from pathlib import Path
from typing import Any

import anyio

log = logging.getLogger(__name__)

INPUT_FILENAME = "input.json"
OUTPUT_FILENAME = "output.json"
SUGGESTIONS_FILENAME = "suggestions.json"


class SnapshotStore:
    """The hand-off files under one base directory.

    Writes replace the whole file at once.  Async writers take the file's
    guard first, so at most one of them touches a given path at a time.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir.expanduser().absolute()
        self._guards: dict[Path, anyio.Lock] = {}

    @property
    def input_path(self) -> Path:
        return self.data_dir / INPUT_FILENAME

    @property
    def output_path(self) -> Path:
        return self.data_dir / OUTPUT_FILENAME

    @property
    def suggestions_path(self) -> Path:
        return self.data_dir / SUGGESTIONS_FILENAME

    def guard(self, path: Path) -> anyio.Lock:
        if path not in self._guards:
            self._guards[path] = anyio.Lock()
        return self._guards[path]

    def read_text(self, path: Path) -> str | None:
        """Return the file's text, or None when it doesn't exist."""
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def write_json(self, path: Path, data: Any) -> Path:
        """Serialize data and swap it into place in one rename."""
        path.parent.mkdir(parents=True, exist_ok=True)
        staging = path.with_name(f".{path.name}.tmp")
        try:
            staging.write_text(
                json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
            )
            staging.replace(path)
        except Exception:
            staging.unlink(missing_ok=True)
            raise
        return path

    def remove(self, path: Path) -> bool:
        """Delete a file if present.  Returns True if something was removed."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            log.warning("Could not remove %s", path, exc_info=True)
            return False
        return True
