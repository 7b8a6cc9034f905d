from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from hivemq_ext.config import load_config
from hivemq_ext.config.schema import CustomJarConfig, ExtensionMetadata
from hivemq_ext.errors import ConfigurationError


def test_defaults_follow_project(project_factory):
    cfg = load_config(project_factory())
    metadata = cfg.metadata()
    assert metadata.id == "test-extension"
    assert metadata.version == "1.0.0"
    assert metadata.priority == 0
    assert metadata.start_priority == 1000
    assert metadata.main_class is None
    assert metadata.sdk_version == "latest.integration"
    assert metadata.sdk_coordinate == "com.hivemq:hivemq-extension-sdk:latest.integration"


def test_camel_and_snake_case_keys(project_factory):
    camel = load_config(project_factory(extension={"name": "N", "author": "A", "startPriority": 5, "mainClass": "a.B"}))
    snake = load_config(project_factory(extension={"name": "N", "author": "A", "start_priority": 5, "main_class": "a.B"}))
    assert camel.metadata() == snake.metadata()
    assert camel.metadata().start_priority == 5


def test_id_and_version_overrides(project_factory):
    cfg = load_config(project_factory(extension={"id": "custom-id", "version": "9.9"}))
    assert cfg.metadata().archive_base == "custom-id-9.9"


def test_metadata_is_read_only():
    metadata = ExtensionMetadata(id="a", version="1")
    with pytest.raises(ValidationError):
        metadata.id = "b"


def test_project_directory_is_anchored_at_config(project_factory):
    path = project_factory()
    cfg = load_config(path)
    assert cfg.project_dir == path.parent.resolve()
    assert cfg.build_dir == path.parent.resolve() / "build"
    assert cfg.resolve_path("/abs/path") == Path("/abs/path")


def test_float_version_is_read_as_text(tmp_path):
    path = tmp_path / "hivemq-extension.yaml"
    path.write_text("project:\n  name: ext\n  version: 1.0\n", encoding="utf-8")
    assert load_config(path).metadata().version == "1.0"


def test_missing_file_is_a_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_invalid_values_are_reported(project_factory):
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(project_factory(extension={"priority": "high"}))


def test_unknown_keys_are_rejected(project_factory):
    with pytest.raises(ConfigurationError):
        load_config(project_factory(extension={"nmae": "typo"}))


def test_bad_coordinate_is_rejected(project_factory):
    with pytest.raises(ConfigurationError, match="group:module"):
        load_config(project_factory(dependencies={"runtime": ["not-a-coordinate"]}))


def test_hivemq_folder_env_override(project_factory, monkeypatch, tmp_path):
    monkeypatch.setenv("HIVEMQ_FOLDER", str(tmp_path / "hivemq"))
    cfg = load_config(project_factory(home={"hivemq_folder": "/elsewhere"}))
    assert cfg.home.hivemq_folder == str(tmp_path / "hivemq")


def test_config_path_from_env(project_factory, monkeypatch):
    path = project_factory()
    monkeypatch.setenv("HIVEMQ_EXTENSION_CONFIG", str(path))
    assert load_config().project.name == "test-extension"


@pytest.mark.parametrize(
    "name, classifier",
    [("proguard", "proguard"), ("proguardJar", "proguard"), ("Obfuscated", "obfuscated")],
)
def test_custom_jar_classifier(name, classifier):
    custom = CustomJarConfig(name=name, command=["true"], output="out.jar")
    assert custom.classifier == classifier


def test_custom_jar_requires_command():
    with pytest.raises(ValidationError):
        CustomJarConfig(name="proguard", command=[], output="out.jar")


@pytest.mark.parametrize("rule", [{"source": "a", "rename": "../x"}, {"source": "a", "into": "/etc"}, {"source": "a", "into": "x/../../y"}])
def test_resource_destinations_stay_inside_extension(project_factory, rule):
    config_path = project_factory(extension={"name": "N", "author": "A", "resources": [rule]})
    with pytest.raises(ConfigurationError, match="must stay inside the extension folder"):
        load_config(config_path)
