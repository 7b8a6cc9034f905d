"""Local repository resolution of dependency coordinates.

Only the Maven directory layout is consulted; POM files are not read, so
transitive dependencies must be listed explicitly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..config.schema import DependencySpec
from ..errors import DependencyResolutionError

logger = logging.getLogger(__name__)

DYNAMIC_VERSIONS = {"latest.integration", "latest.release", "+"}


@dataclass(frozen=True)
class Coordinate:
    group: str
    module: str
    version: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        parts = text.strip().split(":")
        if len(parts) not in (2, 3) or not all(parts):
            raise DependencyResolutionError(f"Invalid dependency coordinate '{text}'")
        return cls(parts[0], parts[1], parts[2] if len(parts) == 3 else None)

    @property
    def key(self) -> str:
        return f"{self.group}:{self.module}"

    @property
    def is_dynamic(self) -> bool:
        return self.version is None or self.version in DYNAMIC_VERSIONS or self.version.endswith("+")

    def __str__(self) -> str:
        return f"{self.key}:{self.version}" if self.version else self.key


@dataclass(frozen=True)
class ResolvedDependency:
    coordinate: Coordinate
    path: Path


def version_key(version: str) -> tuple:
    # 1.10.0 > 1.9.0; release > same-numbered qualifier (1.0.0 > 1.0.0-SNAPSHOT).
    numbers = [int(n) for n in re.findall(r"\d+", version.split("-", 1)[0])]
    return (numbers, "-" not in version, version)


def _matches(requested: Optional[str], candidate: str) -> bool:
    if requested in (None, "latest.integration", "+"):
        return True
    if requested == "latest.release":
        return not candidate.endswith("-SNAPSHOT")
    if requested and requested.endswith("+"):
        return candidate.startswith(requested[:-1])
    return candidate == requested


class RepositoryResolver:
    """Resolve coordinates against Maven-layout repository directories."""

    def __init__(self, repositories: Sequence[str | Path], base_dir: Optional[Path] = None):
        roots: List[Path] = []
        for repo in repositories:
            path = Path(repo).expanduser()
            if not path.is_absolute() and base_dir is not None:
                path = base_dir / path
            roots.append(path)
        self.repositories = roots

    def resolve(self, spec: DependencySpec, base_dir: Optional[Path] = None) -> ResolvedDependency:
        coordinate = Coordinate.parse(spec.coordinate)
        if spec.path:
            path = Path(spec.path).expanduser()
            if not path.is_absolute() and base_dir is not None:
                path = base_dir / path
            if not path.is_file():
                raise DependencyResolutionError(f"Jar for {coordinate} not found at {path}")
            return ResolvedDependency(coordinate, path)
        for repo in self.repositories:
            path = self._lookup(repo, coordinate)
            if path is not None:
                logger.debug("Resolved %s to %s", coordinate, path)
                return ResolvedDependency(coordinate, path)
        searched = ", ".join(str(r) for r in self.repositories) or "(no repositories)"
        raise DependencyResolutionError(f"Could not resolve {coordinate} in {searched}")

    def resolve_all(self, specs: Iterable[DependencySpec], base_dir: Optional[Path] = None) -> List[ResolvedDependency]:
        return [self.resolve(spec, base_dir) for spec in specs]

    def _lookup(self, repo: Path, coordinate: Coordinate) -> Optional[Path]:
        module_dir = repo.joinpath(*coordinate.group.split("."), coordinate.module)
        if not module_dir.is_dir():
            return None
        if coordinate.is_dynamic:
            candidates = sorted(
                (d.name for d in module_dir.iterdir() if d.is_dir() and _matches(coordinate.version, d.name)),
                key=version_key,
                reverse=True,
            )
        else:
            candidates = [coordinate.version]
        for version in candidates:
            jar = module_dir / version / f"{coordinate.module}-{version}.jar"
            if jar.is_file():
                return jar
        return None


def excluded_modules(provided: Iterable[DependencySpec | str]) -> set[str]:
    """``group:module`` keys of the directly declared provided dependencies."""
    keys = set()
    for item in provided:
        text = item.coordinate if isinstance(item, DependencySpec) else item
        keys.add(Coordinate.parse(text).key)
    return keys


__all__ = [
    "Coordinate",
    "ResolvedDependency",
    "RepositoryResolver",
    "excluded_modules",
    "version_key",
]
