"""Shared test fixtures for typegen."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from typegen.config.models import ResourceDirectory, TypegenConfig

NS = "http://uima.apache.org/resourceSpecifier"


def descriptor_xml(
    name: str = "",
    types: list[str] | None = None,
    location_imports: list[str] | None = None,
    name_imports: list[str] | None = None,
) -> str:
    """Build a small type-system descriptor document."""
    imports = [f'<import location="{loc}"/>' for loc in location_imports or []]
    imports += [f'<import name="{n}"/>' for n in name_imports or []]
    type_elems = [
        "<typeDescription>"
        f"<name>{t}</name>"
        "<description/>"
        "<supertypeName>uima.tcas.Annotation</supertypeName>"
        "</typeDescription>"
        for t in types or []
    ]
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<typeSystemDescription xmlns="{NS}">'
        f"<name>{name}</name>"
        f"<imports>{''.join(imports)}</imports>"
        f"<types>{''.join(type_elems)}</types>"
        "</typeSystemDescription>"
    )


def write_descriptor(path: Path, **kwargs) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(descriptor_xml(**kwargs))
    return path


class FakeOracle:
    """Change oracle with fixed answers that remembers what it was asked."""

    def __init__(self, changed: set[Path] | None = None) -> None:
        self.changed = {p.resolve() for p in changed or set()}
        self.calls: list[Path] = []

    def has_changed(self, path: Path) -> bool:
        self.calls.append(path)
        return path.resolve() in self.changed


class Project:
    """A Maven-style layout: descriptor A imports B, B is a copied resource.

    base/
      src/main/descriptors/A.xml        imports name="types.B"
      src/main/resources/types/B.xml    declares example.Token
      target/classes/types/B.xml        copy of the resource
    """

    def __init__(self, base: Path) -> None:
        self.base = base
        self.resources_dir = base / "src" / "main" / "resources"
        self.build_output = base / "target" / "classes"
        self.origin_b = write_descriptor(
            self.resources_dir / "types" / "B.xml", name="B", types=["example.Token"]
        )
        self.target_b = self.build_output / "types" / "B.xml"
        self.copy_resources()
        self.descriptor = write_descriptor(
            base / "src" / "main" / "descriptors" / "A.xml",
            name="A",
            name_imports=["types.B"],
        )
        self.resources = [ResourceDirectory(directory="src/main/resources")]
        self.search_path = [self.build_output]

    def copy_resources(self) -> None:
        """Mimic the resource-copy build step."""
        if self.build_output.exists():
            shutil.rmtree(self.build_output)
        shutil.copytree(self.resources_dir, self.build_output)

    def config(self, **overrides) -> TypegenConfig:
        data = {
            "project": {
                "base_dir": str(self.base),
                "build_output_dir": "target/classes",
                "output_dir": "target/generated-sources/typegen",
                "state_file": ".typegen/build-state.json",
            },
            "search_path": ["target/classes"],
            "resources": [{"directory": "src/main/resources"}],
        }
        data.update(overrides)
        return TypegenConfig(**data)


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path)


@pytest.fixture
def sample_config() -> TypegenConfig:
    return TypegenConfig()
