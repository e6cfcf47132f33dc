"""XML type-system descriptor parsing."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from typegen.descriptor.models import Descriptor, Feature, Field, Import, ParseError
from typegen.descriptor.urls import is_url, path_to_url, url_to_path

logger = logging.getLogger(__name__)

ROOT_TAG = "typeSystemDescription"


def _local(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for c in elem:
        if _local(c.tag) == name:
            return c
    return None


def _children(elem: ET.Element | None, name: str) -> list[ET.Element]:
    if elem is None:
        return []
    return [c for c in elem if _local(c.tag) == name]


def _text(elem: ET.Element, name: str) -> str:
    c = _child(elem, name)
    if c is None or c.text is None:
        return ""
    return c.text.strip()


def _parse_feature(elem: ET.Element, source: str) -> Feature:
    name = _text(elem, "name")
    if not name:
        raise ParseError(source, "featureDescription without a name")
    return Feature(
        name=name,
        range_type=_text(elem, "rangeTypeName"),
        description=_text(elem, "description"),
        element_type=_text(elem, "elementType") or None,
    )


def _parse_field(elem: ET.Element, source_url: str) -> Field:
    name = _text(elem, "name")
    if not name:
        raise ParseError(source_url, "typeDescription without a name")
    features = tuple(
        _parse_feature(f, source_url)
        for f in _children(_child(elem, "features"), "featureDescription")
    )
    return Field(
        name=name,
        supertype=_text(elem, "supertypeName"),
        description=_text(elem, "description"),
        features=features,
        source_url=source_url,
    )


def _parse_import(elem: ET.Element, source_url: str) -> Import:
    location = elem.get("location")
    name = elem.get("name")
    if not location and not name:
        raise ParseError(source_url, "import needs a location or a name")
    return Import(location=location or None, name=name or None)


def parse_descriptor(source: str | Path) -> Descriptor:
    """Parse a descriptor from a filesystem path or a ``file:`` URL.

    Every type read from the document carries the document's URL as its
    provenance.
    """
    if isinstance(source, str) and is_url(source):
        try:
            path = url_to_path(source)
        except ValueError as e:
            raise ParseError(source, str(e)) from e
    else:
        path = Path(source)
    source_url = path_to_url(path)

    try:
        data = path.read_bytes()
    except OSError as e:
        raise ParseError(source_url, f"cannot read descriptor: {e}") from e

    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ParseError(source_url, f"malformed XML: {e}") from e

    if _local(root.tag) != ROOT_TAG:
        raise ParseError(
            source_url, f"expected <{ROOT_TAG}>, found <{_local(root.tag)}>"
        )

    fields = [
        _parse_field(t, source_url)
        for t in _children(_child(root, "types"), "typeDescription")
    ]
    imports = [
        _parse_import(i, source_url)
        for i in _children(_child(root, "imports"), "import")
    ]
    logger.debug(
        "Parsed %s: %d types, %d imports", source_url, len(fields), len(imports)
    )
    return Descriptor(
        name=_text(root, "name"),
        source_url=source_url,
        fields=fields,
        imports=imports,
    )
