"""Generate-if-stale: the incremental build entry point."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

from typegen.config.models import ResourceDirectory
from typegen.freshness.checker import StaleReason, assess_staleness
from typegen.freshness.state import BuildState
from typegen.generator.base import Generator

logger = logging.getLogger(__name__)


class GenerationReport(BaseModel):
    """Outcome of one generate-if-stale run."""

    generated: bool
    reason: StaleReason
    trigger: str | None = None
    descriptor: str
    output_dir: str
    recorded: int = 0


def _absolute(path: str | Path, base: Path) -> Path:
    p = Path(path)
    if not p.is_absolute():
        p = base / p
    return p.resolve()


def generate_if_stale(
    descriptor_path: str | Path,
    output_dir: str | Path,
    search_path: Sequence[str | Path],
    resources: Sequence[ResourceDirectory],
    build_output_dir: str | Path,
    generator: Generator,
    state_file: str | Path,
    base_dir: str | Path | None = None,
    workers: int = 1,
    force: bool = False,
) -> GenerationReport:
    """Run *generator* if the descriptor or anything it imports changed.

    The descriptor file itself is checked first; if it is unchanged the
    full provenance check runs. After a successful generation the
    descriptor and every tracked origin file are recorded in the change
    record at *state_file*. A failing generator leaves the record as it was.
    """
    base = Path(base_dir).resolve() if base_dir is not None else Path.cwd()
    descriptor = _absolute(descriptor_path, base)
    out_dir = _absolute(output_dir, base)
    state_path = _absolute(state_file, base)
    search = [_absolute(p, base) for p in search_path]

    state = BuildState.load_or_empty(state_path)

    # Resolve before generating so descriptor errors surface first
    report, sources = assess_staleness(
        descriptor, search, resources, build_output_dir, state,
        base_dir=base, workers=workers, force=force,
    )
    if not report.stale:
        return GenerationReport(
            generated=False,
            reason=report.reason,
            descriptor=str(descriptor),
            output_dir=str(out_dir),
        )

    out_dir.mkdir(parents=True, exist_ok=True)
    generator.generate(descriptor, out_dir, search)
    logger.info("Generated sources for %s into %s", descriptor, out_dir)

    recorded = state.record([descriptor, *sources])
    state.save(state_path)

    return GenerationReport(
        generated=True,
        reason=report.reason,
        trigger=report.trigger,
        descriptor=str(descriptor),
        output_dir=str(out_dir),
        recorded=recorded,
    )
