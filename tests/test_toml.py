"""Tests for lazy_cascade.toml."""

from __future__ import annotations

import pytest

from lazy_cascade.errors import ConfigurationError
from lazy_cascade.models import DependencySpecifier, SpecOperator
from lazy_cascade.toml import (
    PyProjectManifest,
    apply_mutation,
    parse_document,
    parse_lock,
    parse_pyproject,
)


class TestParse:
    def test_invalid_toml_names_path(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            parse_pyproject("[project\nname = ", "packages/bad/pyproject.toml")
        assert exc_info.value.path == "packages/bad/pyproject.toml"

    def test_read_returns_plain_values(self, sample_manifest: PyProjectManifest) -> None:
        deps = sample_manifest.read("project.dependencies")
        assert type(deps) is list
        assert deps == ["click>=8.0", "core==1.0.0"]

    def test_read_default(self, sample_manifest: PyProjectManifest) -> None:
        assert sample_manifest.read("tool.missing.key") is None
        assert sample_manifest.read("tool.missing.key", "x") == "x"

    def test_write_missing_field_raises(self) -> None:
        doc = parse_document("[project]\n", "pyproject.toml")
        with pytest.raises(ConfigurationError, match="does not exist"):
            doc.write("tool.poetry.version", "1.0.0")


class TestPyProjectManifest:
    def test_selectors(self, sample_manifest: PyProjectManifest) -> None:
        assert sample_manifest.name_selector == "project.name"
        assert sample_manifest.version_selector == "project.version"

    def test_poetry_fallback(self) -> None:
        manifest = parse_pyproject('[tool.poetry]\nname = "legacy"\nversion = "0.9.0"\n')
        assert manifest.name_selector == "tool.poetry.name"
        assert manifest.version_selector == "tool.poetry.version"
        assert manifest.read(manifest.version_selector) == "0.9.0"

    def test_dependency_sections(self, sample_manifest: PyProjectManifest) -> None:
        assert list(sample_manifest.dependency_sections()) == [
            ("dependencies", "project.dependencies"),
            ("optional-dependencies.dev", "project.optional-dependencies.dev"),
            ("dependency-groups.test", "dependency-groups.test"),
        ]

    def test_dotted_section_names_are_quoted(self) -> None:
        text = """\
[project]
name = "a"
version = "1.0.0"

[project.optional-dependencies]
"cli.full" = ["click"]

[dependency-groups]
"docs.build" = ["sphinx"]
"""
        manifest = parse_pyproject(text)
        assert list(manifest.dependency_sections()) == [
            ("optional-dependencies.cli.full", 'project.optional-dependencies["cli.full"]'),
            ("dependency-groups.docs.build", 'dependency-groups["docs.build"]'),
        ]
        assert manifest.read('dependency-groups["docs.build"]') == ["sphinx"]

    def test_no_dependency_sections(self) -> None:
        manifest = parse_pyproject('[project]\nname = "a"\nversion = "1.0.0"\n')
        assert list(manifest.dependency_sections()) == []

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            (DependencySpecifier(name="core", operator=SpecOperator.EXACT, version="1.1.0"), "core==1.1.0"),
            (DependencySpecifier(name="core", operator=SpecOperator.AT_LEAST, version="1.1.0"), "core>=1.1.0"),
            (DependencySpecifier(name="core", operator=SpecOperator.COMPATIBLE, version="1.1.0"), "core^1.1.0"),
            (DependencySpecifier(name="core", operator=SpecOperator.APPROX_EQUAL, version="1.1.0"), "core~=1.1.0"),
            (DependencySpecifier(name="core"), "core"),
            (
                DependencySpecifier(
                    name="core",
                    extras=("z", "a"),
                    operator=SpecOperator.AT_LEAST,
                    version="1.1.0",
                    marker="python_version >= '3.11'",
                ),
                "core[a,z]>=1.1.0 ; python_version >= '3.11'",
            ),
        ],
    )
    def test_render_specifier(self, spec: DependencySpecifier, expected: str) -> None:
        assert parse_pyproject("").render_specifier(spec) == expected

    def test_workspace_members(self) -> None:
        manifest = parse_pyproject(
            '[tool.uv.workspace]\nmembers = ["packages/*", "libs/*"]\nexclude = ["libs/old"]\n'
        )
        assert manifest.workspace_members() == ["packages/*", "libs/*"]
        assert manifest.workspace_excludes() == ["libs/old"]

    def test_workspace_members_missing(self) -> None:
        manifest = parse_pyproject('[project]\nname = "solo"\n', "pyproject.toml")
        with pytest.raises(ConfigurationError, match="No \\[tool.uv.workspace\\] members"):
            manifest.workspace_members()
        assert manifest.workspace_excludes() == []


class TestApplyMutation:
    def test_preserves_formatting(self) -> None:
        text = """\
[project]
name = "cli"   # the command line
version = "1.0.0"
dependencies = [
    "click>=8.0",  # external
    "core>=1.0.0",
]
"""
        updated = apply_mutation(text, "project.dependencies[1]", "core>=1.1.0")
        assert updated == text.replace('"core>=1.0.0"', '"core>=1.1.0"')

    def test_sets_lock_entry_version(self) -> None:
        text = '[[package]]\nname = "a"\nversion = "1.0.0"\n\n[[package]]\nname = "b"\nversion = "2.0.0"\n'
        updated = apply_mutation(text, "package[1].version", "2.0.1")
        assert parse_lock(updated).read("package") == [
            {"name": "a", "version": "1.0.0"},
            {"name": "b", "version": "2.0.1"},
        ]
        assert updated == text.replace('"2.0.0"', '"2.0.1"')
