"""Resource directory scanning and target -> origin mapping."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from fnmatch import fnmatchcase
from functools import lru_cache
from pathlib import Path

from typegen.config.models import ResourceDirectory

logger = logging.getLogger(__name__)

DEFAULT_INCLUDES = ("**",)


@lru_cache(maxsize=256)
def _split_pattern(pattern: str) -> tuple[str, ...]:
    """Split an Ant-style pattern into segments; a trailing ``/`` means ``/**``."""
    p = pattern.replace("\\", "/")
    if p.endswith("/"):
        p += "**"
    return tuple(seg for seg in p.split("/") if seg)


def _match(pattern: tuple[str, ...], parts: tuple[str, ...]) -> bool:
    if not pattern:
        return not parts
    head = pattern[0]
    if head == "**":
        # zero or more whole segments
        return any(_match(pattern[1:], parts[i:]) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatchcase(parts[0], head) and _match(pattern[1:], parts[1:])


def match_path(pattern: str, rel_path: str) -> bool:
    """Ant-style match of a relative POSIX path.

    ``*`` and ``?`` stay within one segment, ``**`` spans any number of them.
    """
    return _match(_split_pattern(pattern), tuple(rel_path.split("/")))


def scan_directory(
    directory: Path,
    includes: Sequence[str] = (),
    excludes: Sequence[str] = (),
) -> list[str]:
    """Return sorted relative paths of files under *directory* that match.

    An empty *includes* means everything. Excludes win over includes.
    """
    includes = list(includes) or list(DEFAULT_INCLUDES)
    result: list[str] = []
    for p in sorted(directory.rglob("*")):
        if not p.is_file():
            continue
        rel = p.relative_to(directory).as_posix()
        if not any(match_path(pat, rel) for pat in includes):
            continue
        if any(match_path(pat, rel) for pat in excludes):
            continue
        result.append(rel)
    return result


def _resolve_dir(directory: str, base_dir: Path) -> Path:
    d = Path(directory)
    if not d.is_absolute():
        d = base_dir / d
    return d.resolve()


def _scan_resource(
    resource: ResourceDirectory,
    base_dir: Path,
    build_output_dir: Path,
) -> list[tuple[Path, Path]]:
    """(target, origin) pairs for one resource directory, in scan order."""
    resource_dir = _resolve_dir(resource.directory, base_dir)
    if not resource_dir.is_dir():
        logger.debug("Skipping missing resource directory %s", resource_dir)
        return []

    target_base = build_output_dir
    if resource.target_path:
        target_base = build_output_dir / resource.target_path

    pairs: list[tuple[Path, Path]] = []
    for rel in scan_directory(resource_dir, resource.includes, resource.excludes):
        pairs.append(((target_base / rel).resolve(), resource_dir / rel))
    return pairs


def build_resource_mapping(
    resources: Sequence[ResourceDirectory],
    build_output_dir: str | Path,
    base_dir: str | Path | None = None,
    workers: int = 1,
) -> dict[Path, Path]:
    """Map each resource's location in the build output back to its origin.

    Directories are merged in declared order, so when two resources land
    on the same target the one declared last wins, whatever the worker
    count.
    """
    base = Path(base_dir).resolve() if base_dir is not None else Path.cwd()
    out_dir = _resolve_dir(str(build_output_dir), base)

    if workers > 1 and len(resources) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            scanned = list(
                pool.map(lambda r: _scan_resource(r, base, out_dir), resources)
            )
    else:
        scanned = [_scan_resource(r, base, out_dir) for r in resources]

    mapping: dict[Path, Path] = {}
    for pairs in scanned:
        for target, origin in pairs:
            previous = mapping.get(target)
            if previous is not None and previous != origin:
                logger.debug("Resource %s shadows %s at %s", origin, previous, target)
            mapping[target] = origin
    return mapping
