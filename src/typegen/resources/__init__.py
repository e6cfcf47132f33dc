"""Project resource directories and their build-output locations."""

from typegen.resources.scanner import build_resource_mapping, match_path, scan_directory

__all__ = [
    "build_resource_mapping",
    "match_path",
    "scan_directory",
]
