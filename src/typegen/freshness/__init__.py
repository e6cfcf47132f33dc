"""Freshness tracking: change records, staleness detection and watching."""

from typegen.freshness.checker import (
    StalenessReport,
    assess_staleness,
    check_staleness,
    is_stale,
    tracked_sources,
)
from typegen.freshness.state import BuildState, ChangeOracle, compute_file_hash
from typegen.freshness.watcher import DescriptorWatcher

__all__ = [
    "BuildState",
    "ChangeOracle",
    "DescriptorWatcher",
    "StalenessReport",
    "assess_staleness",
    "check_staleness",
    "compute_file_hash",
    "is_stale",
    "tracked_sources",
]
