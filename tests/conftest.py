from __future__ import annotations

import sys
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

if sys.version_info < (3, 10):
    pytest.exit("hivemq-ext requires Python 3.10+", returncode=0)

MAIN_SOURCE = """package test;

import com.hivemq.extension.sdk.api.ExtensionMain;

public class TestExtensionMain implements ExtensionMain {
}
"""


def write_jar(path: Path, entries: Dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        for name, data in entries.items():
            jar.writestr(name, data)
    return path


@pytest.fixture
def make_jar():
    return write_jar


@pytest.fixture
def project_factory(tmp_path):
    """Create a small extension project and return the path of its config file."""

    def create(
        extension: Optional[Dict[str, Any]] = None,
        dependencies: Optional[Dict[str, Any]] = None,
        **sections: Any,
    ) -> Path:
        root = tmp_path / "project"
        (root / "src/main/java/test").mkdir(parents=True, exist_ok=True)
        (root / "src/main/java/test/TestExtensionMain.java").write_text(MAIN_SOURCE, encoding="utf-8")
        classes = root / "build/classes/java/main/test"
        classes.mkdir(parents=True, exist_ok=True)
        (classes / "TestExtensionMain.class").write_bytes(b"\xca\xfe\xba\xbe main")
        (root / "src/hivemq-extension").mkdir(parents=True, exist_ok=True)
        (root / "src/hivemq-extension/README.txt").write_text("readme", encoding="utf-8")

        repo = root / "repo"
        write_jar(
            repo / "com/acme/util/1.0/util-1.0.jar",
            {
                "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\r\n",
                "META-INF/ACME.SF": b"signature",
                "module-info.class": b"module",
                "com/acme/Util.class": b"\xca\xfe\xba\xbe util",
            },
        )
        write_jar(
            repo / "org/provided/api/2.0/api-2.0.jar",
            {"org/provided/Api.class": b"\xca\xfe\xba\xbe api"},
        )

        ext = {"name": "Test Extension", "author": "HiveMQ"}
        if extension is not None:
            ext = extension
        deps = {
            "repositories": ["repo"],
            "runtime": ["com.acme:util:1.0", "org.provided:api:2.0"],
            "provided": ["org.provided:api:2.0"],
        }
        if dependencies is not None:
            deps = dependencies
        data: Dict[str, Any] = {
            "project": {"name": "test-extension", "version": "1.0.0"},
            "hivemqExtension": ext,
            "dependencies": deps,
        }
        data.update(sections)
        config_path = root / "hivemq-extension.yaml"
        config_path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return config_path

    return create
