"""Deterministic ``ivy-<version>.xml`` rendering.

The document holds the module identity and its flat dependency list:

    <ivy-module xmlns:xsi=".." xsi:noNamespaceSchemaLocation=".." version="2.0">
      <info organisation=".." module=".." revision=".." status="release"/>
      <dependencies>
        <dependency org=".." name=".." rev=".."/>
      </dependencies>
    </ivy-module>

Output carries no whitespace between elements, timestamps or other volatile
data, so identical input renders byte-identical documents.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING
from xml.sax.saxutils import XMLGenerator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contract.coordinates import Module

ENCODING = "UTF-8"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
IVY_SCHEMA_LOCATION = "http://ant.apache.org/ivy/schemas/ivy.xsd"
IVY_MODULE_VERSION = "2.0"
RELEASE_STATUS = "release"


def render_ivy_module(module: Module, dependencies: Sequence[Module]) -> str:
    """Render the Ivy descriptor for ``module`` and its direct dependencies.

    Dependencies are written in the given order. Attribute values are escaped
    by the XML writer.
    """
    buffer = io.StringIO()
    writer = XMLGenerator(buffer, encoding=ENCODING, short_empty_elements=True)

    writer.startDocument()
    writer.startElement(
        "ivy-module",
        {
            "xmlns:xsi": XSI_NAMESPACE,
            "xsi:noNamespaceSchemaLocation": IVY_SCHEMA_LOCATION,
            "version": IVY_MODULE_VERSION,
        },
    )

    _empty_element(
        writer,
        "info",
        {
            "organisation": module.group,
            "module": module.name,
            "revision": module.version,
            "status": RELEASE_STATUS,
        },
    )

    writer.startElement("dependencies", {})
    for dependency in dependencies:
        _empty_element(
            writer,
            "dependency",
            {
                "org": dependency.group,
                "name": dependency.name,
                "rev": dependency.version,
            },
        )
    writer.endElement("dependencies")

    writer.endElement("ivy-module")
    writer.endDocument()

    return buffer.getvalue()


def _empty_element(writer: XMLGenerator, name: str, attrs: dict[str, str]) -> None:
    writer.startElement(name, attrs)
    writer.endElement(name)


__all__ = [
    "ENCODING",
    "IVY_MODULE_VERSION",
    "IVY_SCHEMA_LOCATION",
    "RELEASE_STATUS",
    "XSI_NAMESPACE",
    "render_ivy_module",
]
