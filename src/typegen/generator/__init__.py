"""Code generation: generator protocol, command runner and pipeline."""

from typegen.generator.base import GenerationError, Generator
from typegen.generator.command import CommandGenerator
from typegen.generator.pipeline import GenerationReport, generate_if_stale

__all__ = [
    "CommandGenerator",
    "GenerationError",
    "GenerationReport",
    "Generator",
    "generate_if_stale",
]
