"""Main class discovery for HiveMQ extensions.

The scan is a textual heuristic, not a parser: a source file counts as the
extension entry point when ``ExtensionMain`` appears between one of `` ,:``
and one of `` ,{``, which is how ``implements ExtensionMain {`` (Java) or
``: ExtensionMain {`` (Kotlin) read. A match inside a comment or string
literal is therefore reported as well.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ..config.schema import ExtensionMetadata
from ..errors import ConfigurationError
from .files import sorted_files

logger = logging.getLogger(__name__)

EXTENSION_MAIN_PATTERN = re.compile(r"[ ,:]ExtensionMain[ ,{]")
SOURCE_SUFFIXES = (".java", ".kt")


def class_name_for(relative_path: str | Path) -> str:
    """``test/TestExtensionMain.java`` -> ``test.TestExtensionMain``."""
    posix = Path(relative_path).as_posix()
    stem, dot, _ = posix.rpartition(".")
    return (stem if dot else posix).replace("/", ".")


def find_main_class(source_roots: Iterable[str | Path]) -> Optional[str]:
    """Return the class name of the first source file implementing ``ExtensionMain``.

    Roots are visited in the given order, files within a root in sorted
    depth-first order. Missing roots are skipped.
    """
    for root in source_roots:
        root_path = Path(root)
        if not root_path.is_dir():
            logger.debug("Source root %s not found; skipping", root_path)
            continue
        for path in sorted_files(root_path):
            if not path.name.endswith(SOURCE_SUFFIXES):
                continue
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.warning("Cannot read %s: %s", path, exc)
                continue
            if EXTENSION_MAIN_PATTERN.search(text):
                main_class = class_name_for(os.path.relpath(path, root_path))
                logger.info("Detected main class %s in %s", main_class, path)
                return main_class
    return None


def resolve_main_class(metadata: ExtensionMetadata, source_roots: Sequence[str | Path]) -> str:
    if metadata.main_class:
        return metadata.main_class
    main_class = find_main_class(source_roots)
    if not main_class:
        raise ConfigurationError.missing("mainClass")
    return main_class


__all__ = [
    "EXTENSION_MAIN_PATTERN",
    "class_name_for",
    "find_main_class",
    "resolve_main_class",
]
