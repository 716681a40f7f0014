"""
JSON-file backed key-value store.

Each key maps to ``<directory>/<key>.json``.  Writes go to a temporary
sibling file first and are moved into place, so a crash mid-write never
leaves a truncated document behind.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStore:
    """Directory of JSON documents, one per key.

    Args:
        directory: Directory that holds the documents.  Created lazily
            on first write.
    """

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)
        logger.info("FileStore initialised", extra={"directory": str(self._dir)})

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        self._dir.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as fh:
            fh.write(value)
        os.replace(tmp_path, path)

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
