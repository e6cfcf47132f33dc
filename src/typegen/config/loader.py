"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import TypegenConfig


def load_config(cli_path: str | None = None) -> TypegenConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    A relative ``project.base_dir`` in a CLI or project-local file is taken
    relative to that file's directory. The user-global file and the
    defaults keep it relative to the working directory.
    """
    config_paths = [
        (Path(cli_path) if cli_path else None, True),
        (Path("./typegen.yaml"), True),
        (Path.home() / ".typegen" / "config.yaml", False),
    ]

    for path, anchored in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                config = TypegenConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e
            if anchored:
                _anchor_base_dir(config, path.parent)
            return config

    return TypegenConfig()


def _anchor_base_dir(config: TypegenConfig, config_dir: Path) -> None:
    base = Path(config.project.base_dir).expanduser()
    if not base.is_absolute():
        base = config_dir / base
    config.project.base_dir = str(base.resolve())


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `typegen config init`
DEFAULT_CONFIG_TEMPLATE = """\
# typegen.yaml

# Project layout. base_dir is relative to this file; the other
# relative paths resolve against base_dir
project:
  base_dir: "."
  build_output_dir: "target/classes"
  output_dir: "target/generated-sources/typegen"
  state_file: ".typegen/build-state.json"

# Roots searched for imported descriptors, in order
search_path:
  - "target/classes"

# Resource directories copied into build_output_dir
resources:
  - directory: "src/main/resources"
    includes: ["**/*.xml"]
    # excludes: []
    # target_path: "META-INF"

# External code generator. Placeholders: {input} {output} {classpath}
generator:
  command: []
  # command: ["jcasgen", "-jcasgeninput", "{input}", "-jcasgenoutput", "{output}", "-jcasgenclasspath", "{classpath}"]
  timeout: 300

# Watch mode
watch:
  debounce_seconds: 1.0

# Parallel resource scanning
scan_workers: 1

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
