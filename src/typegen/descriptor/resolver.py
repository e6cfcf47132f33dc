"""Transitive import resolution against a search path."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from typegen.descriptor.models import Descriptor, Field, Import, ResolutionError
from typegen.descriptor.parser import parse_descriptor
from typegen.descriptor.urls import is_url, path_to_url, url_to_path

logger = logging.getLogger(__name__)


def _name_to_relpath(name: str) -> Path:
    """``org.example.Types`` -> ``org/example/Types.xml``."""
    return Path(*name.split(".")).with_suffix(".xml")


def _locate(imp: Import, base_url: str | None, roots: list[Path]) -> Path:
    """Find the file an import refers to.

    Location imports are tried relative to the importing descriptor first,
    then against each search root. Name imports only use the search roots.
    """
    candidates: list[Path] = []
    if imp.location is not None:
        if is_url(imp.location):
            try:
                candidates.append(url_to_path(imp.location))
            except ValueError as e:
                raise ResolutionError(base_url or "<memory>", str(e)) from e
        else:
            if base_url is not None:
                candidates.append(url_to_path(base_url).parent / imp.location)
            candidates.extend(root / imp.location for root in roots)
    else:
        rel = _name_to_relpath(imp.name or "")
        candidates.extend(root / rel for root in roots)

    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()

    raise ResolutionError(
        base_url or "<memory>",
        f"cannot locate import {imp} (searched {len(candidates)} location(s))",
    )


def _expand(
    descriptor: Descriptor,
    roots: list[Path],
    visited: set[str],
    fields: list[Field],
) -> None:
    for imp in descriptor.imports:
        path = _locate(imp, descriptor.source_url, roots)
        url = path_to_url(path)
        if url in visited:
            continue
        visited.add(url)
        logger.debug("Resolved import %s -> %s", imp, url)
        child = parse_descriptor(path)
        fields.extend(child.fields)
        _expand(child, roots, visited, fields)


def resolve_imports(
    descriptor: Descriptor, search_path: Sequence[str | Path]
) -> Descriptor:
    """Return a copy of *descriptor* with all imports merged in.

    Imported types keep the provenance of the file they were declared in.
    Each descriptor file is loaded at most once, so diamond imports are
    merged once and import cycles terminate.
    """
    roots = [Path(p) for p in search_path]
    visited: set[str] = set()
    if descriptor.source_url is not None:
        visited.add(descriptor.source_url)

    fields = list(descriptor.fields)
    _expand(descriptor, roots, visited, fields)

    return Descriptor(
        name=descriptor.name,
        source_url=descriptor.source_url,
        fields=fields,
        imports=[],
    )
