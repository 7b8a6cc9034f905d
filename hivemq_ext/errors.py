from __future__ import annotations

# Gradle DSL name of the extension block; used to prefix configuration errors.
EXTENSION_NAMESPACE = "hivemqExtension"


class HivemqExtensionError(RuntimeError):
    """Base class for every failure surfaced by the build."""


class ConfigurationError(HivemqExtensionError):
    """Raised when a required configuration value is missing or invalid."""

    @classmethod
    def missing(cls, field: str) -> "ConfigurationError":
        return cls(f"{EXTENSION_NAMESPACE}: {field} is missing.")


class EnvironmentSetupError(HivemqExtensionError):
    """Raised when the local environment lacks something the task needs."""


class DependencyResolutionError(HivemqExtensionError):
    """Raised when a dependency coordinate cannot be resolved to a jar."""


class ArtifactError(HivemqExtensionError):
    """Raised when a jar or zip cannot be produced."""


__all__ = [
    "EXTENSION_NAMESPACE",
    "HivemqExtensionError",
    "ConfigurationError",
    "EnvironmentSetupError",
    "DependencyResolutionError",
    "ArtifactError",
]
