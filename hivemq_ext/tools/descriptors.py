from __future__ import annotations

import logging
from pathlib import Path

from ..config.schema import ExtensionMetadata
from ..errors import ConfigurationError
from .files import write_text_if_changed

logger = logging.getLogger(__name__)

EXTENSION_MAIN_CLASS_NAME = "com.hivemq.extension.sdk.api.ExtensionMain"
SERVICE_DESCRIPTOR_PATH = f"META-INF/services/{EXTENSION_MAIN_CLASS_NAME}"
EXTENSION_XML_NAME = "hivemq-extension.xml"

_XML_TEMPLATE = """<?xml version="1.0" encoding="UTF-8" ?>
<hivemq-extension>
    <id>{id}</id>
    <version>{version}</version>
    <name>{name}</name>
    <author>{author}</author>
    <priority>{priority}</priority>
    <start-priority>{start_priority}</start-priority>
</hivemq-extension>"""


def render_service_descriptor(main_class: str | None) -> str:
    if not main_class:
        raise ConfigurationError.missing("mainClass")
    return main_class


def write_service_descriptor(main_class: str | None, dest_dir: Path) -> Path:
    content = render_service_descriptor(main_class)
    path = Path(dest_dir) / EXTENSION_MAIN_CLASS_NAME
    if write_text_if_changed(path, content):
        logger.info("Wrote service descriptor %s", path)
    return path


def render_extension_xml(metadata: ExtensionMetadata) -> str:
    # Values are inserted verbatim; the broker reads them as plain text.
    if not metadata.name:
        raise ConfigurationError.missing("name")
    if not metadata.author:
        raise ConfigurationError.missing("author")
    return _XML_TEMPLATE.format(
        id=metadata.id,
        version=metadata.version,
        name=metadata.name,
        author=metadata.author,
        priority=metadata.priority,
        start_priority=metadata.start_priority,
    )


def write_extension_xml(metadata: ExtensionMetadata, dest_dir: Path) -> Path:
    content = render_extension_xml(metadata)
    path = Path(dest_dir) / EXTENSION_XML_NAME
    if write_text_if_changed(path, content):
        logger.info("Wrote xml descriptor %s", path)
    return path


__all__ = [
    "EXTENSION_MAIN_CLASS_NAME",
    "EXTENSION_XML_NAME",
    "SERVICE_DESCRIPTOR_PATH",
    "render_service_descriptor",
    "write_service_descriptor",
    "render_extension_xml",
    "write_extension_xml",
]
