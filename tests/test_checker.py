"""Tests for the staleness checker."""

from __future__ import annotations

import itertools
from pathlib import Path

import pytest

import typegen.freshness.checker as checker_mod
from conftest import FakeOracle, Project, write_descriptor
from typegen.config.models import ResourceDirectory
from typegen.descriptor import Descriptor, Field, ParseError, ResolutionError
from typegen.freshness import assess_staleness, check_staleness, is_stale, tracked_sources


def _check(project: Project, oracle, **kwargs):
    params = dict(
        search_path=project.search_path,
        resources=project.resources,
        build_output_dir=project.build_output,
        oracle=oracle,
        base_dir=project.base,
    )
    params.update(kwargs)
    return check_staleness(project.descriptor, **params)


# ── Scenarios ────────────────────────────────────────────────────────


class TestScenarios:
    def test_mapped_unchanged_import_is_fresh(self, project: Project):
        """A imports B; B's type maps to an unchanged resource -> not stale."""
        oracle = FakeOracle()
        report = _check(project, oracle)

        assert report.stale is False
        assert report.reason == "up-to-date"
        assert report.checked == 1
        assert oracle.calls == [project.origin_b.resolve()]

    def test_changed_origin_is_stale(self, project: Project):
        oracle = FakeOracle(changed={project.origin_b})
        report = _check(project, oracle)

        assert report.stale is True
        assert report.reason == "changed"
        assert report.trigger == str(project.origin_b.resolve())

    def test_non_file_provenance_is_stale_regardless_of_oracle(
        self, project: Project, monkeypatch: pytest.MonkeyPatch
    ):
        remote = "http://example.com/types/B.xml"

        def _resolve_remote(descriptor, search_path):
            return Descriptor(
                name=descriptor.name,
                source_url=descriptor.source_url,
                fields=[Field(name="example.Token", source_url=remote)],
            )

        monkeypatch.setattr(checker_mod, "resolve_imports", _resolve_remote)
        oracle = FakeOracle()
        report = _check(project, oracle)

        assert report.stale is True
        assert report.reason == "non-file-provenance"
        assert report.trigger == remote
        assert oracle.calls == []

    def test_missing_resource_directory_means_untracked(self, project: Project):
        oracle = FakeOracle()
        report = _check(
            project,
            oracle,
            resources=[ResourceDirectory(directory="src/main/not-there")],
        )
        assert report.stale is True
        assert report.reason == "untracked"
        assert report.trigger == str(project.target_b.resolve())
        assert oracle.calls == []


# ── Properties ───────────────────────────────────────────────────────


class TestProperties:
    def test_no_provenance_means_not_stale(self, tmp_path: Path):
        """A descriptor with nothing to check is fresh, even with a paranoid oracle."""
        desc = write_descriptor(tmp_path / "Empty.xml", name="Empty")

        class _AlwaysChanged:
            def has_changed(self, path):
                return True

        assert is_stale(desc, [], [], tmp_path / "out", _AlwaysChanged()) is False

    def test_primary_types_outside_build_output_are_untracked(self, project: Project):
        write_descriptor(
            project.descriptor, name="A", types=["a.Local"], name_imports=["types.B"]
        )
        report = _check(project, FakeOracle())
        assert report.stale is True
        assert report.reason == "untracked"
        assert report.trigger == str(project.descriptor.resolve())

    def test_idempotent(self, project: Project):
        oracle = FakeOracle()
        first = _check(project, oracle)
        second = _check(project, oracle)
        assert first == second
        assert first.stale is False

    def test_independent_of_resource_declaration_order(self, project: Project):
        extra = project.base / "src" / "main" / "extra"
        write_descriptor(extra / "Other.xml", types=["o.Other"])
        resources = [
            ResourceDirectory(directory="src/main/resources"),
            ResourceDirectory(directory="src/main/extra"),
            ResourceDirectory(directory="src/main/missing"),
        ]
        results = {
            _check(project, FakeOracle(), resources=list(order)).stale
            for order in itertools.permutations(resources)
        }
        assert results == {False}

    def test_any_changed_type_makes_it_stale(self, project: Project):
        write_descriptor(
            project.resources_dir / "types" / "C.xml", name="C", types=["example.Other"]
        )
        write_descriptor(
            project.resources_dir / "types" / "B.xml",
            name="B",
            types=["example.Token"],
            name_imports=["types.C"],
        )
        project.copy_resources()
        origin_c = project.resources_dir / "types" / "C.xml"

        assert _check(project, FakeOracle()).stale is False
        report = _check(project, FakeOracle(changed={origin_c}))
        assert report.stale is True
        assert report.trigger == str(origin_c.resolve())

    def test_parallel_scan_same_answer(self, project: Project):
        assert _check(project, FakeOracle(), workers=4) == _check(project, FakeOracle())


# ── Failure semantics ────────────────────────────────────────────────


class TestFailures:
    def test_parse_error_propagates(self, project: Project):
        project.descriptor.write_text("<typeSystemDescription>")
        with pytest.raises(ParseError):
            _check(project, FakeOracle())

    def test_resolution_error_propagates(self, project: Project):
        (project.build_output / "types" / "B.xml").unlink()
        with pytest.raises(ResolutionError):
            _check(project, FakeOracle())


def test_tracked_sources_lists_origins(project: Project):
    sources = tracked_sources(
        project.descriptor,
        project.search_path,
        project.resources,
        project.build_output,
        base_dir=project.base,
    )
    assert sources == [project.origin_b.resolve()]


class TestAssess:
    def _assess(self, project: Project, oracle, **kwargs):
        return assess_staleness(
            project.descriptor,
            project.search_path,
            project.resources,
            project.build_output,
            oracle,
            base_dir=project.base,
            **kwargs,
        )

    def test_force_wins(self, project: Project):
        report, sources = self._assess(project, FakeOracle(), force=True)
        assert report.stale is True
        assert report.reason == "forced"
        assert sources == [project.origin_b.resolve()]

    def test_descriptor_change_skips_provenance_walk(self, project: Project):
        oracle = FakeOracle({project.descriptor})
        report, sources = self._assess(project, oracle)
        assert report.reason == "descriptor-changed"
        assert report.trigger == str(project.descriptor.resolve())
        assert oracle.calls == [project.descriptor.resolve()]
        assert sources == [project.origin_b.resolve()]

    def test_falls_through_to_provenance(self, project: Project):
        report, sources = self._assess(project, FakeOracle({project.origin_b}))
        assert report.reason == "changed"
        assert report.trigger == str(project.origin_b.resolve())
        assert sources == [project.origin_b.resolve()]

    def test_matches_check_staleness_when_descriptor_unchanged(self, project: Project):
        report, _ = self._assess(project, FakeOracle())
        assert report == _check(project, FakeOracle())

    def test_descriptor_errors_propagate_even_when_forced(self, project: Project):
        project.descriptor.write_text("<oops")
        with pytest.raises(ParseError):
            self._assess(project, FakeOracle(), force=True)
