from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .assembler import assemble_zip, build_jar, run_custom_jar, zip_name
from .config.schema import BuildConfig, DependencySpec, ExtensionMetadata
from .errors import ArtifactError, ConfigurationError
from .runtime import home as home_stager
from .runtime import testing as test_stager
from .tools import descriptors
from .tools.dependencies import Coordinate, RepositoryResolver, ResolvedDependency, excluded_modules
from .tools.main_class import resolve_main_class
from .tools.resources import ResourceSet
from .tools.shading import JarShader, ZipJarShader

logger = logging.getLogger(__name__)

BUILD_FOLDER_NAME = "hivemq-extension"
RESOURCES_FOLDER_NAME = "resources"
HOME_FOLDER_NAME = "hivemq-home"
TEST_FOLDER_NAME = "hivemq-extension-test"


@dataclass
class BuildResult:
    jar: Path
    zips: List[Path] = field(default_factory=list)
    custom_jar: Optional[Path] = None

    @property
    def zip(self) -> Path:
        return self.zips[0]


class ExtensionPipeline:
    """Runs the extension build steps in dependency order.

    Every method recomputes its inputs, so calling ``zips()`` alone performs
    the main class scan, descriptor generation and shading as well.
    """

    def __init__(
        self,
        config: BuildConfig,
        shader: Optional[JarShader] = None,
        resolver: Optional[RepositoryResolver] = None,
    ):
        self.config = config
        self.metadata: ExtensionMetadata = config.metadata()
        self.shader = shader or ZipJarShader()
        self.resolver = resolver or RepositoryResolver(
            config.dependencies.repositories, base_dir=config.project_dir
        )

    # ------------------------------------------------------------------
    @property
    def output_dir(self) -> Path:
        return self.config.build_dir / BUILD_FOLDER_NAME

    @property
    def home_dir(self) -> Path:
        return self.config.build_dir / HOME_FOLDER_NAME

    @property
    def test_dir(self) -> Path:
        return self.config.build_dir / TEST_FOLDER_NAME

    def _paths(self, values: List[str]) -> List[Path]:
        return [self.config.resolve_path(v) for v in values]

    # ------------------------------------------------------------------
    def main_class(self) -> str:
        return resolve_main_class(self.metadata, self._paths(self.config.sources.roots))

    def service_descriptor(self) -> Path:
        return descriptors.write_service_descriptor(self.main_class(), self.output_dir)

    def xml(self) -> Path:
        return descriptors.write_extension_xml(self.metadata, self.output_dir)

    def resource_set(self) -> ResourceSet:
        resources = ResourceSet()
        resources.add(self.xml(), descriptors.EXTENSION_XML_NAME)
        resources.add_tree(self.config.resolve_path(self.config.sources.extension_resources))
        for rule in self.config.extension.resources:
            source = self.config.resolve_path(rule.source)
            if source.is_dir():
                resources.add_tree(source, rule.into)
            elif source.is_file():
                name = rule.rename or source.name
                resources.add(source, f"{rule.into}/{name}" if rule.into else name)
            else:
                raise ConfigurationError(f"hivemqExtension: resource {source} does not exist.")
        return resources

    def resources(self) -> Path:
        dest = self.resource_set().sync(self.output_dir / RESOURCES_FOLDER_NAME)
        logger.info("Collected resources into %s", dest)
        return dest

    def provided(self) -> List[DependencySpec]:
        return [*self.config.dependencies.provided, DependencySpec(coordinate=self.metadata.sdk_coordinate)]

    def classpath(self) -> List[ResolvedDependency]:
        excludes = excluded_modules(self.provided())
        runtime = []
        for spec in self.config.dependencies.runtime:
            # Provided jars never reach the shaded jar, so they need not be resolvable.
            if Coordinate.parse(spec.coordinate).key in excludes:
                logger.debug("Skipping provided runtime dependency %s", spec.coordinate)
                continue
            runtime.append(spec)
        return self.resolver.resolve_all(runtime, self.config.project_dir)

    def jar(self) -> Path:
        descriptor_path = self.service_descriptor()
        content = descriptor_path.read_text(encoding="utf-8")
        directories = self._paths(self.config.sources.classes) + self._paths(self.config.sources.resources)
        return build_jar(
            self.shader,
            self.metadata,
            directories,
            (descriptors.SERVICE_DESCRIPTOR_PATH, content),
            self.classpath(),
            excluded_modules(self.provided()),
            self.output_dir,
        )

    def custom_jar(self, jar: Path) -> Optional[Path]:
        custom = self.config.extension.custom_jar_task
        if custom is None:
            return None
        return run_custom_jar(custom, jar, self.config.project_dir)

    def _remove_stale_zips(self) -> None:
        classifiers = [""]
        if self.config.extension.custom_jar_task is not None:
            classifiers.append(self.config.extension.custom_jar_task.classifier)
        for classifier in classifiers:
            stale = self.output_dir / zip_name(self.metadata, classifier)
            if stale.exists():
                logger.debug("Removing previous zip %s", stale)
                stale.unlink()

    def build(self) -> BuildResult:
        # A failed rebuild must not leave an older zip for --no-build tasks to pick up.
        self._remove_stale_zips()
        resources = self.resource_set()
        jar = self.jar()
        result = BuildResult(jar=jar)
        result.zips.append(assemble_zip(self.metadata, jar, resources, self.output_dir))
        custom = self.config.extension.custom_jar_task
        if custom is not None:
            result.custom_jar = self.custom_jar(jar)
            result.zips.append(
                assemble_zip(self.metadata, result.custom_jar, resources, self.output_dir, custom.classifier)
            )
        return result

    def zips(self) -> List[Path]:
        return self.build().zips

    # ------------------------------------------------------------------
    def existing_zip(self) -> Path:
        path = self.output_dir / zip_name(self.metadata)
        if not path.is_file():
            raise ArtifactError(f"{path} does not exist; run the build first")
        return path

    def hivemq_folder(self) -> Optional[Path]:
        folder = self.config.home.hivemq_folder
        return self.config.resolve_path(folder) if folder else None

    def prepare_home(self, rebuild: bool = True) -> Path:
        folder = home_stager.check_hivemq_folder(self.hivemq_folder())
        zip_path = self.build().zip if rebuild else self.existing_zip()
        return home_stager.prepare_home(folder, zip_path, self.metadata.id, self.home_dir)

    def run_hivemq(self, rebuild: bool = True) -> int:
        home = self.prepare_home(rebuild=rebuild)
        return home_stager.run_hivemq(home, self.config.home.java, self.config.home.jvm_args)

    def prepare_test(self, rebuild: bool = True) -> Path:
        zip_path = self.build().zip if rebuild else self.existing_zip()
        return test_stager.prepare_extension_test(zip_path, self.test_dir)

    def integration_test(self, rebuild: bool = True) -> int:
        command = self.config.integration_test.command
        if not command:
            raise ConfigurationError("integration_test.command is missing.")
        fixtures = self.prepare_test(rebuild=rebuild)
        return test_stager.run_integration_tests(
            command, fixtures, self.existing_zip(), self.config.project_dir
        )


__all__ = ["ExtensionPipeline", "BuildResult"]
