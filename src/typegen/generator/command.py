"""Generator that shells out to an external code generator."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

from typegen.config.models import GeneratorConfig
from typegen.generator.base import GenerationError

logger = logging.getLogger(__name__)

# Line prefix -> log level for generator output
_SEVERITY_PREFIXES = (
    ("ERROR:", logging.ERROR),
    ("WARNING:", logging.WARNING),
    ("WARN:", logging.WARNING),
)


def _level_for(line: str) -> int:
    upper = line.lstrip().upper()
    for prefix, level in _SEVERITY_PREFIXES:
        if upper.startswith(prefix):
            return level
    return logging.INFO


class CommandGenerator:
    """Runs ``config.command`` with ``{input}``, ``{output}``, ``{classpath}`` filled in.

    Output lines are forwarded to the log, with ``ERROR:`` / ``WARN:``
    prefixes mapped to the matching level. A non-zero exit or any
    ``ERROR:`` line is a failure.
    """

    name = "command"

    def __init__(self, config: GeneratorConfig) -> None:
        self.config = config

    def build_argv(
        self,
        descriptor_path: Path,
        output_dir: Path,
        search_path: Sequence[Path],
    ) -> list[str]:
        values = {
            "input": str(descriptor_path),
            "output": str(output_dir),
            "classpath": os.pathsep.join(str(p) for p in search_path),
        }
        try:
            return [arg.format(**values) for arg in self.config.command]
        except (KeyError, IndexError, ValueError) as e:
            raise GenerationError(self.name, f"bad command template: {e}") from e

    def generate(
        self,
        descriptor_path: Path,
        output_dir: Path,
        search_path: Sequence[Path],
    ) -> None:
        if not self.config.command:
            raise GenerationError(self.name, "no generator command configured")

        argv = self.build_argv(descriptor_path, output_dir, search_path)
        env = {**os.environ, **self.config.env} if self.config.env else None
        logger.info("Running generator: %s", " ".join(argv))
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
                env=env,
            )
        except FileNotFoundError as e:
            raise GenerationError(self.name, f"executable not found: {argv[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise GenerationError(
                self.name, f"timed out after {self.config.timeout}s"
            ) from e

        errors = 0
        for stream in (result.stdout, result.stderr):
            for line in (stream or "").splitlines():
                if not line.strip():
                    continue
                level = _level_for(line)
                if level >= logging.ERROR:
                    errors += 1
                logger.log(level, "generator: %s", line)

        if result.returncode != 0:
            raise GenerationError(
                self.name,
                f"exited {result.returncode}: {(result.stderr or '').strip()[:200]}",
            )
        if errors:
            raise GenerationError(self.name, f"reported {errors} error(s)")
