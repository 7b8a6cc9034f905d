from __future__ import annotations

import logging
import subprocess
import zipfile
from pathlib import Path, PurePosixPath
from typing import List, Sequence

from .config.schema import CustomJarConfig, ExtensionMetadata
from .errors import ArtifactError
from .tools.dependencies import ResolvedDependency
from .tools.files import atomic_output, zip_info
from .tools.resources import ResourceSet
from .tools.shading import JarShader

logger = logging.getLogger(__name__)


def zip_name(metadata: ExtensionMetadata, classifier: str = "") -> str:
    suffix = f"-{classifier}" if classifier else ""
    return f"{metadata.archive_base}{suffix}.zip"


def build_jar(
    shader: JarShader,
    metadata: ExtensionMetadata,
    directories: Sequence[Path],
    service_descriptor: tuple[str, str],
    classpath: Sequence[ResolvedDependency],
    excludes: set[str],
    dest_dir: Path,
) -> Path:
    """Shade project output and the runtime classpath into ``<id>-<version>-all.jar``."""
    output = Path(dest_dir) / f"{metadata.archive_base}-all.jar"
    path, content = service_descriptor
    return shader.shade(list(directories), {path: content.encode("utf-8")}, classpath, excludes, output)


def run_custom_jar(custom: CustomJarConfig, jar: Path, project_dir: Path) -> Path:
    """Run the post-processing command; it must leave exactly the configured output jar behind."""
    output = Path(custom.output).expanduser()
    if not output.is_absolute():
        output = project_dir / output
    if not output.name.endswith(".jar"):
        raise ArtifactError(f"customJarTask '{custom.name}' output must be a .jar file: {output}")
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.exists():
        output.unlink()
    command = [arg.replace("{input}", str(jar)).replace("{output}", str(output)) for arg in custom.command]
    logger.info("Running customJarTask %s: %s", custom.name, " ".join(command))
    try:
        proc = subprocess.run(command, cwd=str(project_dir), check=False)
    except OSError as exc:
        raise ArtifactError(f"customJarTask '{custom.name}' could not start: {exc}") from exc
    if proc.returncode != 0:
        raise ArtifactError(f"customJarTask '{custom.name}' failed with exit code {proc.returncode}")
    if not output.is_file():
        raise ArtifactError(f"customJarTask '{custom.name}' did not produce {output}")
    return output


def zip_resources(metadata: ExtensionMetadata, jar: Path, resources: ResourceSet) -> ResourceSet:
    """ResourceSet for one zip: the renamed jar first, then the collected resources."""
    combined = ResourceSet()
    combined.add(jar, metadata.jar_name)
    for rel, source in resources.entries().items():
        combined.add(source, rel)
    return combined


def assemble_zip(
    metadata: ExtensionMetadata,
    jar: Path,
    resources: ResourceSet,
    dest_dir: Path,
    classifier: str = "",
) -> Path:
    output = Path(dest_dir) / zip_name(metadata, classifier)
    entries = zip_resources(metadata, jar, resources).entries()
    root = PurePosixPath(metadata.id)

    directories = {str(root)}
    for rel in entries:
        for parent in PurePosixPath(rel).parents:
            if str(parent) != ".":
                directories.add(str(root / parent))

    with atomic_output(output) as tmp:
        with zipfile.ZipFile(tmp, "w", zipfile.ZIP_DEFLATED) as archive:
            for directory in sorted(directories):
                archive.writestr(zip_info(f"{directory}/", directory=True), b"")
            for rel, source in entries.items():
                try:
                    data = Path(source).read_bytes()
                except OSError as exc:
                    raise ArtifactError(f"Cannot read {source} for {output.name}: {exc}") from exc
                archive.writestr(zip_info(str(root / rel)), data)
    logger.info("Wrote zip %s", output)
    return output


def list_zip(path: Path) -> List[str]:
    with zipfile.ZipFile(path, "r") as archive:
        return archive.namelist()


__all__ = [
    "zip_name",
    "build_jar",
    "run_custom_jar",
    "zip_resources",
    "assemble_zip",
    "list_zip",
]
