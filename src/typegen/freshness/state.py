"""Persisted per-file content hashes used to answer "has this changed?"."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ChangeOracle(Protocol):
    """Anything that can tell whether a file changed since the last build."""

    def has_changed(self, path: Path) -> bool:
        ...


def compute_hash(content: bytes) -> str:
    """SHA-256 hash, truncated to the first 12 hex characters."""
    return hashlib.sha256(content).hexdigest()[:12]


def compute_file_hash(path: Path) -> str:
    """Read a file from disk and return its truncated SHA-256 hash."""
    return compute_hash(path.read_bytes())


def _key(path: str | Path) -> str:
    return str(Path(path).resolve())


class BuildState:
    """Change record for one generation target.

    Maps absolute file paths to the content hash seen at the last
    successful generation.
    """

    version: int = 1
    algorithm: str = "sha256"

    def __init__(
        self,
        hashes: dict[str, str] | None = None,
        last_build: datetime | None = None,
    ) -> None:
        self.hashes = hashes if hashes is not None else {}
        self.last_build = last_build

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_changed(self, path: Path) -> bool:
        """True if *path* was never recorded, is gone, or has new content."""
        key = _key(path)
        recorded = self.hashes.get(key)
        if recorded is None:
            return True
        fpath = Path(key)
        if not fpath.is_file():
            return True
        return compute_file_hash(fpath) != recorded

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return _key(path) in self.hashes

    def __len__(self) -> int:
        return len(self.hashes)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def record(self, paths: Iterable[Path]) -> int:
        """Store current hashes for *paths*; returns how many were recorded.

        Paths that no longer exist are dropped from the record.
        """
        count = 0
        for path in paths:
            key = _key(path)
            fpath = Path(key)
            if fpath.is_file():
                self.hashes[key] = compute_file_hash(fpath)
                count += 1
            else:
                self.hashes.pop(key, None)
        self.last_build = datetime.now(timezone.utc)
        return count

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> str:
        data = {
            "version": self.version,
            "algorithm": self.algorithm,
            "last_build": self.last_build.isoformat() if self.last_build else None,
            "files": dict(sorted(self.hashes.items())),
        }
        return json.dumps(data, indent=2)

    @classmethod
    def from_json(cls, data: str) -> BuildState:
        obj = json.loads(data)
        if not isinstance(obj, dict):
            raise ValueError("build state must be a JSON object")
        files = obj.get("files", {})
        if not isinstance(files, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in files.items()
        ):
            raise ValueError("build state 'files' must map paths to hashes")
        last_build = obj.get("last_build")
        if last_build is not None and not isinstance(last_build, str):
            raise ValueError("build state 'last_build' must be a timestamp string")
        return cls(
            hashes=dict(files),
            last_build=datetime.fromisoformat(last_build) if last_build else None,
        )

    def save(self, path: Path) -> None:
        """Write the state to a JSON file, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json())

    @classmethod
    def load(cls, path: Path) -> BuildState:
        return cls.from_json(path.read_text())

    @classmethod
    def load_or_empty(cls, path: Path) -> BuildState:
        """Load a saved state, or start empty so every file counts as changed."""
        if not path.is_file():
            return cls()
        try:
            return cls.load(path)
        except (ValueError, KeyError, TypeError, OSError) as e:
            logger.warning("Ignoring unreadable build state %s: %s", path, e)
            return cls()
