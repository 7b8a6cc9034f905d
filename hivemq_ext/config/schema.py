from __future__ import annotations

import re
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_SDK_VERSION = "latest.integration"
SDK_COORDINATE = "com.hivemq:hivemq-extension-sdk"

_COORDINATE_RE = re.compile(r"^[^:\s]+:[^:\s]+(:[^:\s]+)?$")


class HivemqBaseModel(BaseModel):
    # Keys may be written as in the Gradle DSL (startPriority) or in snake_case.
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class ProjectConfig(HivemqBaseModel):
    name: str
    version: str
    directory: str = Field(default=".")
    build_dir: str = Field(default="build")

    @field_validator("name", "version")
    @classmethod
    def validate_not_empty(cls, value: str) -> str:
        if not str(value).strip():
            raise ValueError("project name and version must be non-empty")
        return str(value)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> Any:
        # YAML reads `version: 1.0` as a float.
        if isinstance(value, (int, float)):
            return str(value)
        return value


class CustomJarConfig(HivemqBaseModel):
    name: str
    command: List[str]
    output: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("customJarTask.name must be a non-empty string")
        return value.strip()

    @field_validator("command")
    @classmethod
    def validate_command(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("customJarTask.command must contain at least one argument")
        return value

    @property
    def classifier(self) -> str:
        name = self.name
        if name.endswith("Jar") and len(name) > 3:
            name = name[: -len("Jar")]
        return name.lower()


class ResourceRule(HivemqBaseModel):
    source: str
    into: str = Field(default="")
    rename: Optional[str] = None

    @field_validator("into", "rename")
    @classmethod
    def validate_destination(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parts = value.replace("\\", "/").split("/")
        if value.startswith(("/", "\\")) or ".." in parts:
            raise ValueError(f"hivemqExtension: resource destination '{value}' must stay inside the extension folder")
        return value


class ExtensionConfig(HivemqBaseModel):
    id: Optional[str] = None
    version: Optional[str] = None
    name: Optional[str] = None
    author: Optional[str] = None
    priority: int = Field(default=0)
    start_priority: int = Field(default=1000)
    main_class: Optional[str] = None
    sdk_version: str = Field(default=DEFAULT_SDK_VERSION)
    custom_jar_task: Optional[CustomJarConfig] = None
    resources: List[ResourceRule] = Field(default_factory=list)

    @field_validator("sdk_version")
    @classmethod
    def validate_sdk_version(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("sdkVersion must be a non-empty string")
        return value.strip()


class DependencySpec(HivemqBaseModel):
    coordinate: str
    path: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"coordinate": data}
        return data

    @field_validator("coordinate")
    @classmethod
    def validate_coordinate(cls, value: str) -> str:
        value = value.strip()
        if not _COORDINATE_RE.match(value):
            raise ValueError(f"dependency '{value}' must look like group:module[:version]")
        return value


class DependenciesConfig(HivemqBaseModel):
    repositories: List[str] = Field(default_factory=lambda: ["~/.m2/repository"])
    runtime: List[DependencySpec] = Field(default_factory=list)
    provided: List[DependencySpec] = Field(default_factory=list)


class SourcesConfig(HivemqBaseModel):
    roots: List[str] = Field(default_factory=lambda: ["src/main/java", "src/main/kotlin"])
    classes: List[str] = Field(
        default_factory=lambda: ["build/classes/java/main", "build/classes/kotlin/main"]
    )
    resources: List[str] = Field(default_factory=lambda: ["src/main/resources"])
    extension_resources: str = Field(default="src/hivemq-extension")


class HomeConfig(HivemqBaseModel):
    hivemq_folder: Optional[str] = None
    java: str = Field(default="java")
    jvm_args: List[str] = Field(default_factory=list)


class IntegrationTestConfig(HivemqBaseModel):
    command: List[str] = Field(default_factory=list)


class ExtensionMetadata(BaseModel):
    """Read-only view of the extension settings, built once after loading."""

    model_config = ConfigDict(frozen=True)

    id: str
    version: str
    name: Optional[str] = None
    author: Optional[str] = None
    priority: int = 0
    start_priority: int = 1000
    main_class: Optional[str] = None
    sdk_version: str = DEFAULT_SDK_VERSION

    @property
    def archive_base(self) -> str:
        return f"{self.id}-{self.version}"

    @property
    def jar_name(self) -> str:
        return f"{self.archive_base}.jar"

    @property
    def sdk_coordinate(self) -> str:
        return f"{SDK_COORDINATE}:{self.sdk_version}"


class BuildConfig(HivemqBaseModel):
    project: ProjectConfig
    extension: ExtensionConfig = Field(default_factory=ExtensionConfig, alias="hivemqExtension")
    dependencies: DependenciesConfig = Field(default_factory=DependenciesConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    home: HomeConfig = Field(default_factory=HomeConfig)
    integration_test: IntegrationTestConfig = Field(default_factory=IntegrationTestConfig)

    @property
    def project_dir(self) -> Path:
        return Path(self.project.directory).expanduser()

    @property
    def build_dir(self) -> Path:
        return self.resolve_path(self.project.build_dir)

    def resolve_path(self, value: str | Path) -> Path:
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self.project_dir / path

    def metadata(self) -> ExtensionMetadata:
        ext = self.extension
        return ExtensionMetadata(
            id=ext.id or self.project.name,
            version=ext.version or self.project.version,
            name=ext.name,
            author=ext.author,
            priority=ext.priority,
            start_priority=ext.start_priority,
            main_class=ext.main_class,
            sdk_version=ext.sdk_version,
        )

    def dump(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, by_alias=True)
