from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from ..errors import ArtifactError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Constant entry timestamp so archives built from unchanged inputs are byte-identical.
FIXED_ZIP_TIME = (1980, 2, 1, 0, 0, 0)


def ensure_dirs(paths: Iterable[Optional[PathLike]]) -> List[Path]:
    created = []
    for p in paths:
        if p:
            path = Path(p)
            path.mkdir(parents=True, exist_ok=True)
            created.append(path)
    return created


def write_text_if_changed(path: PathLike, content: str) -> bool:
    """Write ``content`` atomically; return False when the file already matches."""
    target = Path(path)
    data = content.encode("utf-8")
    if target.is_file() and target.read_bytes() == data:
        logger.debug("%s is up to date", target)
        return False
    with atomic_output(target) as tmp:
        tmp.write_bytes(data)
    return True


@contextlib.contextmanager
def atomic_output(target: PathLike) -> Iterator[Path]:
    """Yield a temp path beside ``target`` and move it into place on success.

    On any exception the temp file is removed and ``target`` is left untouched.
    """
    target = Path(target)
    ensure_dirs([target.parent])
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        yield tmp
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()


def clean_dir(path: PathLike) -> Path:
    target = Path(path)
    if target.exists():
        shutil.rmtree(target)
    target.mkdir(parents=True)
    return target


def sorted_files(root: PathLike) -> Iterator[Path]:
    """Depth-first walk yielding files with directory and file names sorted."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


def zip_info(name: str, *, directory: bool = False) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=FIXED_ZIP_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.create_system = 3
    if directory:
        info.external_attr = (0o40755 << 16) | 0x10
        info.compress_type = zipfile.ZIP_STORED
    else:
        info.external_attr = 0o100644 << 16
    return info


def extract_zip(zip_path: PathLike, dest: PathLike) -> list[Path]:
    """Extract ``zip_path`` into ``dest``; duplicate or pre-existing files are overwritten with a warning."""
    dest = Path(dest)
    root = dest.resolve()
    written: list[Path] = []
    seen: set[str] = set()
    with zipfile.ZipFile(zip_path, "r") as archive:
        for info in archive.infolist():
            target = (dest / info.filename).resolve()
            if root != target and root not in target.parents:
                raise ArtifactError(f"Refusing to extract {info.filename!r} outside {dest}")
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if info.filename in seen or target.exists():
                logger.warning("Overwriting duplicate entry %s in %s", info.filename, dest)
            seen.add(info.filename)
            target.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(info) as src, target.open("wb") as out:
                shutil.copyfileobj(src, out)
            written.append(target)
    return written
