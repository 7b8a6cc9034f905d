"""Local HiveMQ home staging for manual debugging."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Sequence

from ..errors import EnvironmentSetupError
from ..tools.files import clean_dir, extract_zip

logger = logging.getLogger(__name__)

EXTENSIONS_FOLDER_NAME = "extensions"
HIVEMQ_JAR_PATH = "bin/hivemq.jar"
HIVEMQ_HOME_PROPERTY = "hivemq.home"

DEFAULT_JVM_ARGS = [
    "-Djava.net.preferIPv4Stack=true",
    "--add-opens", "java.base/java.lang=ALL-UNNAMED",
    "--add-opens", "java.base/java.nio=ALL-UNNAMED",
    "--add-opens", "java.base/sun.nio.ch=ALL-UNNAMED",
    "--add-opens", "jdk.management/com.sun.management.internal=ALL-UNNAMED",
    "--add-exports", "java.base/jdk.internal.misc=ALL-UNNAMED",
]


def _ignore_extension(source_root: Path, extension_id: str):
    excluded = (source_root / EXTENSIONS_FOLDER_NAME / extension_id).resolve()

    def ignore(directory: str, names: List[str]) -> List[str]:
        base = Path(directory).resolve()
        return [name for name in names if base / name == excluded]

    return ignore


def check_hivemq_folder(hivemq_folder: str | Path | None) -> Path:
    if not hivemq_folder:
        raise EnvironmentSetupError("hivemqFolder is not configured (set home.hivemq_folder or HIVEMQ_FOLDER)")
    source = Path(hivemq_folder).expanduser()
    if not source.exists():
        raise EnvironmentSetupError(f"hivemqFolder {source} does not exist")
    if not source.is_dir():
        raise EnvironmentSetupError(f"hivemqFolder {source} is not a directory")
    return source


def prepare_home(hivemq_folder: str | Path | None, zip_path: Path, extension_id: str, dest: Path) -> Path:
    """Copy a HiveMQ installation to ``dest`` and unpack the extension zip into its extensions folder.

    Any copy of the extension already shipped in the installation
    (``extensions/<id>``) is left out.
    """
    source = check_hivemq_folder(hivemq_folder)
    dest = clean_dir(dest)
    shutil.copytree(source, dest, dirs_exist_ok=True, ignore=_ignore_extension(source, extension_id))
    extensions = dest / EXTENSIONS_FOLDER_NAME
    extensions.mkdir(exist_ok=True)
    extract_zip(zip_path, extensions)
    logger.info("Prepared HiveMQ home %s with %s", dest, zip_path.name)
    return dest


def run_command(home: Path, java: str = "java", jvm_args: Sequence[str] = ()) -> List[str]:
    home = Path(home).resolve()
    return [
        java,
        f"-D{HIVEMQ_HOME_PROPERTY}={home}",
        *DEFAULT_JVM_ARGS,
        *jvm_args,
        "-jar",
        str(home / HIVEMQ_JAR_PATH),
    ]


def run_hivemq(home: Path, java: str = "java", jvm_args: Sequence[str] = ()) -> int:
    jar = Path(home) / HIVEMQ_JAR_PATH
    if not jar.is_file():
        raise EnvironmentSetupError(f"{jar} does not exist; is {home} a HiveMQ home?")
    command = run_command(home, java, jvm_args)
    logger.info("Starting HiveMQ: %s", " ".join(command))
    try:
        return subprocess.run(command, cwd=str(home), env=os.environ.copy(), check=False).returncode
    except OSError as exc:
        raise EnvironmentSetupError(f"Could not start {java}: {exc}") from exc


__all__ = ["check_hivemq_folder", "prepare_home", "run_command", "run_hivemq", "EXTENSIONS_FOLDER_NAME"]
