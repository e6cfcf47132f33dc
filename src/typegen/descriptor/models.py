"""Data models for type-system descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field


class DescriptorError(Exception):
    """Base class for descriptor loading failures."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"{source}: {message}")


class ParseError(DescriptorError):
    """The descriptor is not well-formed XML or not a type-system description."""


class ResolutionError(DescriptorError):
    """An imported descriptor could not be located or read."""


@dataclass(frozen=True)
class Feature:
    """A feature (attribute) declared on a type."""

    name: str
    range_type: str
    description: str = ""
    element_type: str | None = None


@dataclass(frozen=True)
class Field:
    """A type declared in a descriptor.

    ``source_url`` is the provenance of the declaration: the URL of the
    descriptor file the type was read from.
    """

    name: str
    supertype: str = ""
    description: str = ""
    features: tuple[Feature, ...] = ()
    source_url: str | None = None


@dataclass(frozen=True)
class Import:
    """An import by ``location`` (relative URL) or by dotted ``name``."""

    location: str | None = None
    name: str | None = None

    def __str__(self) -> str:
        if self.location is not None:
            return f"location={self.location}"
        return f"name={self.name}"


@dataclass
class Descriptor:
    """A parsed type-system description."""

    name: str = ""
    source_url: str | None = None
    fields: list[Field] = field(default_factory=list)
    imports: list[Import] = field(default_factory=list)
