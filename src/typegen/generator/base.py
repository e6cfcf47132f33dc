"""Generator protocol and error type."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable


class GenerationError(Exception):
    """Wraps a generator failure with context."""

    def __init__(self, generator: str, message: str) -> None:
        self.generator = generator
        super().__init__(f"{generator} failed: {message}")


@runtime_checkable
class Generator(Protocol):
    """Anything that turns a descriptor into sources under an output directory."""

    def generate(
        self,
        descriptor_path: Path,
        output_dir: Path,
        search_path: Sequence[Path],
    ) -> None:
        """Generate sources. Raises GenerationError on failure."""
        ...
