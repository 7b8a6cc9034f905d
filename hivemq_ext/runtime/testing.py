from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Sequence

from ..errors import ConfigurationError, EnvironmentSetupError
from ..tools.files import clean_dir, extract_zip

logger = logging.getLogger(__name__)

TEST_DIR_ENV = "HIVEMQ_EXTENSION_TEST_DIR"
TEST_ZIP_ENV = "HIVEMQ_EXTENSION_ZIP"


def prepare_extension_test(zip_path: Path, dest: Path) -> Path:
    """Unpack the extension zip into a fresh fixture directory."""
    dest = clean_dir(dest)
    extract_zip(zip_path, dest)
    logger.info("Prepared extension test fixtures in %s", dest)
    return dest


def run_integration_tests(command: Sequence[str], fixture_dir: Path, zip_path: Path, cwd: Path) -> int:
    if not command:
        raise ConfigurationError("integration_test.command is missing.")
    env = os.environ.copy()
    env[TEST_DIR_ENV] = str(Path(fixture_dir).resolve())
    env[TEST_ZIP_ENV] = str(Path(zip_path).resolve())
    logger.info("Running integration tests: %s", " ".join(command))
    try:
        return subprocess.run(list(command), cwd=str(cwd), env=env, check=False).returncode
    except OSError as exc:
        raise EnvironmentSetupError(f"Could not start {command[0]}: {exc}") from exc


__all__ = ["prepare_extension_test", "run_integration_tests", "TEST_DIR_ENV", "TEST_ZIP_ENV"]
