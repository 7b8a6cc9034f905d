"""Build steps exposed under ``hivemq_ext.tools``."""

from __future__ import annotations

__all__ = [
    "dependencies",
    "descriptors",
    "files",
    "main_class",
    "resources",
    "shading",
]
