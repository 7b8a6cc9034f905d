from __future__ import annotations

import pytest

from hivemq_ext.config.schema import DependencySpec
from hivemq_ext.errors import DependencyResolutionError
from hivemq_ext.tools.dependencies import Coordinate, RepositoryResolver, excluded_modules, version_key


def _publish(repo, make_jar, group, module, version):
    path = repo.joinpath(*group.split("."), module, version, f"{module}-{version}.jar")
    return make_jar(path, {f"{module}/Marker.class": version.encode()})


def test_coordinate_parsing():
    coordinate = Coordinate.parse("com.hivemq:hivemq-extension-sdk:4.9.0")
    assert coordinate.key == "com.hivemq:hivemq-extension-sdk"
    assert coordinate.version == "4.9.0"
    assert not coordinate.is_dynamic
    assert Coordinate.parse("a:b").is_dynamic
    with pytest.raises(DependencyResolutionError):
        Coordinate.parse("a:b:c:d")


def test_fixed_version_lookup(tmp_path, make_jar):
    jar = _publish(tmp_path, make_jar, "com.acme", "util", "1.0")
    resolver = RepositoryResolver([tmp_path])
    resolved = resolver.resolve(DependencySpec(coordinate="com.acme:util:1.0"))
    assert resolved.path == jar


def test_dynamic_version_picks_highest(tmp_path, make_jar):
    for version in ("1.9.0", "1.10.0", "1.10.1-SNAPSHOT"):
        _publish(tmp_path, make_jar, "com.acme", "util", version)
    resolver = RepositoryResolver([tmp_path])
    assert resolver.resolve(DependencySpec(coordinate="com.acme:util:latest.integration")).path.name == "util-1.10.1-SNAPSHOT.jar"
    assert resolver.resolve(DependencySpec(coordinate="com.acme:util:latest.release")).path.name == "util-1.10.0.jar"
    assert resolver.resolve(DependencySpec(coordinate="com.acme:util:1.9.+")).path.name == "util-1.9.0.jar"


def test_repositories_are_searched_in_order(tmp_path, make_jar):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    jar = _publish(second, make_jar, "com.acme", "util", "1.0")
    resolver = RepositoryResolver([first, second])
    assert resolver.resolve(DependencySpec(coordinate="com.acme:util:1.0")).path == jar


def test_explicit_path_relative_to_project(tmp_path, make_jar):
    jar = make_jar(tmp_path / "libs/lib.jar", {"Lib.class": b""})
    resolver = RepositoryResolver([])
    resolved = resolver.resolve(DependencySpec(coordinate="org.acme:lib:1.0", path="libs/lib.jar"), tmp_path)
    assert resolved.path == jar


def test_unresolvable_dependency(tmp_path):
    resolver = RepositoryResolver([tmp_path])
    with pytest.raises(DependencyResolutionError, match="com.acme:missing:1.0"):
        resolver.resolve(DependencySpec(coordinate="com.acme:missing:1.0"))


def test_only_direct_provided_coordinates_are_excluded():
    provided = [DependencySpec(coordinate="org.slf4j:slf4j-api:1.7.36"), "com.hivemq:hivemq-extension-sdk:4.9.0"]
    assert excluded_modules(provided) == {"org.slf4j:slf4j-api", "com.hivemq:hivemq-extension-sdk"}


def test_version_key_ordering():
    versions = ["1.0.0-SNAPSHOT", "1.10.0", "1.2.0", "1.0.0"]
    assert sorted(versions, key=version_key) == ["1.0.0-SNAPSHOT", "1.0.0", "1.2.0", "1.10.0"]
