"""Staleness detection for generated sources via descriptor provenance."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from typegen.config.models import ResourceDirectory
from typegen.descriptor import Descriptor, parse_descriptor, resolve_imports, url_to_path
from typegen.freshness.state import ChangeOracle
from typegen.resources import build_resource_mapping

logger = logging.getLogger(__name__)

StaleReason = Literal[
    "up-to-date",
    "descriptor-changed",
    "non-file-provenance",
    "untracked",
    "changed",
    "forced",
]


class StalenessReport(BaseModel):
    """Outcome of a staleness check for one descriptor."""

    stale: bool
    reason: StaleReason
    trigger: str | None = None
    fields_total: int = 0
    checked: int = 0


def _load(
    descriptor_path: str | Path,
    search_path: Sequence[str | Path],
    resources: Sequence[ResourceDirectory],
    build_output_dir: str | Path,
    base_dir: str | Path | None,
    workers: int,
) -> tuple[Descriptor, dict[Path, Path]]:
    descriptor = parse_descriptor(descriptor_path)
    resolved = resolve_imports(descriptor, search_path)
    mapping = build_resource_mapping(
        resources, build_output_dir, base_dir=base_dir, workers=workers
    )
    return resolved, mapping


def _evaluate(
    resolved: Descriptor, mapping: dict[Path, Path], oracle: ChangeOracle
) -> StalenessReport:
    total = len(resolved.fields)
    checked = 0
    for fld in resolved.fields:
        url = fld.source_url
        if url is None:
            continue
        checked += 1
        try:
            target = url_to_path(url)
        except ValueError:
            logger.info("Stale: %s declared at non-file location %s", fld.name, url)
            return StalenessReport(
                stale=True, reason="non-file-provenance", trigger=url,
                fields_total=total, checked=checked,
            )

        origin = mapping.get(target)
        if origin is None:
            logger.info("Stale: %s has no resource origin", target)
            return StalenessReport(
                stale=True, reason="untracked", trigger=str(target),
                fields_total=total, checked=checked,
            )

        if oracle.has_changed(origin):
            logger.info("Stale: %s changed since last build", origin)
            return StalenessReport(
                stale=True, reason="changed", trigger=str(origin),
                fields_total=total, checked=checked,
            )

    logger.info("Up to date: %d of %d types checked", checked, total)
    return StalenessReport(
        stale=False, reason="up-to-date", fields_total=total, checked=checked
    )


def _origins(resolved: Descriptor, mapping: dict[Path, Path]) -> list[Path]:
    seen: dict[Path, None] = {}
    for fld in resolved.fields:
        if fld.source_url is None:
            continue
        try:
            target = url_to_path(fld.source_url)
        except ValueError:
            continue
        origin = mapping.get(target)
        if origin is not None:
            seen.setdefault(origin, None)
    return list(seen)


def check_staleness(
    descriptor_path: str | Path,
    search_path: Sequence[str | Path],
    resources: Sequence[ResourceDirectory],
    build_output_dir: str | Path,
    oracle: ChangeOracle,
    base_dir: str | Path | None = None,
    workers: int = 1,
) -> StalenessReport:
    """Decide whether output generated from *descriptor_path* is stale.

    1. Parses the descriptor and resolves its imports (ParseError and
       ResolutionError propagate).
    2. Maps every resource file's build-output location to its origin.
    3. For each type with a provenance URL, in declaration order: a
       non-file URL or an unmapped target counts as stale; otherwise the
       oracle is asked about the origin file.

    Stops at the first stale type. The oracle is only read.
    """
    resolved, mapping = _load(
        descriptor_path, search_path, resources, build_output_dir, base_dir, workers
    )
    return _evaluate(resolved, mapping, oracle)


def is_stale(
    descriptor_path: str | Path,
    search_path: Sequence[str | Path],
    resources: Sequence[ResourceDirectory],
    build_output_dir: str | Path,
    oracle: ChangeOracle,
    base_dir: str | Path | None = None,
    workers: int = 1,
) -> bool:
    """Boolean form of check_staleness()."""
    return check_staleness(
        descriptor_path, search_path, resources, build_output_dir, oracle,
        base_dir=base_dir, workers=workers,
    ).stale


def tracked_sources(
    descriptor_path: str | Path,
    search_path: Sequence[str | Path],
    resources: Sequence[ResourceDirectory],
    build_output_dir: str | Path,
    base_dir: str | Path | None = None,
    workers: int = 1,
) -> list[Path]:
    """Origin files behind every mapped type provenance, deduplicated in order."""
    resolved, mapping = _load(
        descriptor_path, search_path, resources, build_output_dir, base_dir, workers
    )
    return _origins(resolved, mapping)


def assess_staleness(
    descriptor_path: str | Path,
    search_path: Sequence[str | Path],
    resources: Sequence[ResourceDirectory],
    build_output_dir: str | Path,
    oracle: ChangeOracle,
    base_dir: str | Path | None = None,
    workers: int = 1,
    force: bool = False,
) -> tuple[StalenessReport, list[Path]]:
    """Full build decision plus the origin files to record afterwards.

    The descriptor graph is loaded once. *force* wins, then a change to
    the descriptor file itself, then the provenance walk of
    check_staleness(). The report and the origins come from the same load.
    """
    resolved, mapping = _load(
        descriptor_path, search_path, resources, build_output_dir, base_dir, workers
    )
    sources = _origins(resolved, mapping)
    total = len(resolved.fields)

    if force:
        return StalenessReport(stale=True, reason="forced", fields_total=total), sources

    descriptor_file = url_to_path(resolved.source_url)
    if oracle.has_changed(descriptor_file):
        logger.info("Stale: descriptor %s changed since last build", descriptor_file)
        report = StalenessReport(
            stale=True, reason="descriptor-changed", trigger=str(descriptor_file),
            fields_total=total,
        )
        return report, sources

    return _evaluate(resolved, mapping, oracle), sources
