from __future__ import annotations

import logging
import os
import shutil
from collections import OrderedDict
from pathlib import Path, PurePosixPath
from typing import Dict

from .files import clean_dir, sorted_files

logger = logging.getLogger(__name__)


class ResourceSet:
    """Ordered copy rules from a source file to a destination-relative path.

    A later rule for an already mapped destination replaces the earlier one
    and logs a warning.
    """

    def __init__(self) -> None:
        self._entries: "OrderedDict[str, Path]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, dest: str) -> bool:
        return _normalize(dest) in self._entries

    def add(self, source: str | Path, dest: str) -> None:
        key = _normalize(dest)
        source = Path(source)
        previous = self._entries.pop(key, None)
        if previous is not None and previous != source:
            logger.warning("Duplicate resource %s: %s replaces %s", key, source, previous)
        self._entries[key] = source

    def add_tree(self, directory: str | Path, into: str = "") -> int:
        root = Path(directory)
        if not root.is_dir():
            logger.debug("Resource directory %s not found; skipping", root)
            return 0
        count = 0
        for path in sorted_files(root):
            rel = PurePosixPath(Path(os.path.relpath(path, root)).as_posix())
            self.add(path, str(PurePosixPath(into) / rel) if into else str(rel))
            count += 1
        return count

    def entries(self) -> Dict[str, Path]:
        return dict(self._entries)

    def sync(self, dest_dir: str | Path) -> Path:
        """Materialize the set into a clean ``dest_dir``."""
        dest = clean_dir(dest_dir)
        for rel, source in self._entries.items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        return dest


def _normalize(dest: str) -> str:
    parts = [p for p in PurePosixPath(str(dest).replace("\\", "/")).parts if p not in ("", ".")]
    if not parts or ".." in parts or parts[0] == "/":
        raise ValueError(f"Invalid resource destination: {dest!r}")
    return "/".join(parts)


__all__ = ["ResourceSet"]
