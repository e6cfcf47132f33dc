from pydantic import BaseModel, Field
from typing import Literal


class ProjectConfig(BaseModel):
    base_dir: str = "."
    build_output_dir: str = "target/classes"
    output_dir: str = "target/generated-sources/typegen"
    state_file: str = ".typegen/build-state.json"


class ResourceDirectory(BaseModel):
    directory: str
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    target_path: str | None = None


class GeneratorConfig(BaseModel):
    command: list[str] = Field(default_factory=list)
    timeout: int = Field(default=300, gt=0)
    env: dict[str, str] = Field(default_factory=dict)


class WatchConfig(BaseModel):
    debounce_seconds: float = Field(default=1.0, gt=0)


class TypegenConfig(BaseModel):
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    search_path: list[str] = Field(default_factory=lambda: ["target/classes"])
    resources: list[ResourceDirectory] = Field(
        default_factory=lambda: [ResourceDirectory(directory="src/main/resources")]
    )
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    scan_workers: int = Field(default=1, ge=1)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
