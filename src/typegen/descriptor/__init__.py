"""Type-system descriptors: models, parsing and import resolution."""

from typegen.descriptor.models import (
    Descriptor,
    DescriptorError,
    Feature,
    Field,
    Import,
    ParseError,
    ResolutionError,
)
from typegen.descriptor.parser import parse_descriptor
from typegen.descriptor.resolver import resolve_imports
from typegen.descriptor.urls import path_to_url, url_to_path

__all__ = [
    "Descriptor",
    "DescriptorError",
    "Feature",
    "Field",
    "Import",
    "ParseError",
    "ResolutionError",
    "parse_descriptor",
    "path_to_url",
    "resolve_imports",
    "url_to_path",
]
