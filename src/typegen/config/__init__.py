from .loader import load_config
from .models import (
    GeneratorConfig,
    ProjectConfig,
    ResourceDirectory,
    TypegenConfig,
    WatchConfig,
)

__all__ = [
    "GeneratorConfig",
    "ProjectConfig",
    "ResourceDirectory",
    "TypegenConfig",
    "WatchConfig",
    "load_config",
]
