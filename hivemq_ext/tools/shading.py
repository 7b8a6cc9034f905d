"""Merge compiled classes and runtime jars into one extension jar."""

from __future__ import annotations

import logging
import os
import zipfile
from pathlib import Path, PurePosixPath
from typing import Iterable, Protocol, Sequence

from ..errors import ArtifactError
from .dependencies import ResolvedDependency
from .files import atomic_output, sorted_files, zip_info

logger = logging.getLogger(__name__)

MANIFEST_PATH = "META-INF/MANIFEST.MF"
MANIFEST_CONTENT = "Manifest-Version: 1.0\r\n\r\n"
_STRIPPED_PATHS = {"META-INF/INDEX.LIST", "module-info.class"}
_SIGNATURE_SUFFIXES = (".SF", ".DSA", ".RSA")


def is_stripped(name: str) -> bool:
    """Signature files, jar indexes and module descriptors break re-loading by the broker."""
    if name in _STRIPPED_PATHS or name == MANIFEST_PATH:
        return True
    path = PurePosixPath(name)
    return str(path.parent) == "META-INF" and path.suffix in _SIGNATURE_SUFFIXES


class JarShader(Protocol):
    def shade(
        self,
        directories: Sequence[Path],
        extra_entries: dict[str, bytes],
        classpath: Sequence[ResolvedDependency],
        excludes: Iterable[str],
        output: Path,
    ) -> Path:
        ...


class ZipJarShader:
    """Shadow-style jar merging built on :mod:`zipfile`.

    Entries are written in a fixed order (manifest, generated entries,
    project directories, dependency jars in classpath order) with the first
    occurrence of a path winning.
    A project file at a generated path is skipped with a warning.
    """

    def shade(
        self,
        directories: Sequence[Path],
        extra_entries: dict[str, bytes],
        classpath: Sequence[ResolvedDependency],
        excludes: Iterable[str],
        output: Path,
    ) -> Path:
        excluded = set(excludes)
        written: set[str] = set()
        with atomic_output(output) as tmp:
            with zipfile.ZipFile(tmp, "w", zipfile.ZIP_DEFLATED) as jar:
                self._write(jar, written, MANIFEST_PATH, MANIFEST_CONTENT.encode("utf-8"))
                for name, data in extra_entries.items():
                    self._write(jar, written, name, data)
                for directory in directories:
                    if not directory.is_dir():
                        logger.debug("Class directory %s not found; skipping", directory)
                        continue
                    for path in sorted_files(directory):
                        name = Path(os.path.relpath(path, directory)).as_posix()
                        if is_stripped(name):
                            continue
                        if name in extra_entries:
                            logger.warning("Ignoring %s; %s is generated", path, name)
                            continue
                        self._write(jar, written, name, path.read_bytes())
                for dependency in classpath:
                    if dependency.coordinate.key in excluded:
                        logger.info("Excluding provided dependency %s", dependency.coordinate)
                        continue
                    self._merge_jar(jar, written, dependency)
        logger.info("Wrote jar %s (%d entries)", output, len(written))
        return output

    def _merge_jar(self, jar: zipfile.ZipFile, written: set[str], dependency: ResolvedDependency) -> None:
        try:
            source = zipfile.ZipFile(dependency.path, "r")
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArtifactError(f"Cannot read {dependency.coordinate} from {dependency.path}: {exc}") from exc
        with source:
            for info in source.infolist():
                if info.is_dir() or is_stripped(info.filename):
                    continue
                self._write(jar, written, info.filename, source.read(info))

    @staticmethod
    def _write(jar: zipfile.ZipFile, written: set[str], name: str, data: bytes) -> None:
        if name in written:
            logger.debug("Skipping duplicate jar entry %s", name)
            return
        written.add(name)
        jar.writestr(zip_info(name), data)


__all__ = ["JarShader", "ZipJarShader", "is_stripped", "MANIFEST_PATH"]
