"""TOML manifest dialects: pyproject.toml and uv.lock.

Uses tomlkit to preserve formatting and comments when modifying files.
This is important for keeping release pull requests small and
diff-friendly: only the edited values change.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

import tomlkit
import tomlkit.exceptions

from .errors import ConfigurationError
from .manifest import join_key, read_path, write_path
from .models import DependencySpecifier, SpecOperator

_OPERATOR_SYMBOLS = {
    SpecOperator.EXACT: "==",
    SpecOperator.AT_LEAST: ">=",
    SpecOperator.COMPATIBLE: "^",
    SpecOperator.APPROX_EQUAL: "~=",
}


def _parse_toml(text: str, path: str) -> tomlkit.TOMLDocument:
    try:
        return tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ConfigurationError(f"Invalid TOML: {exc}", path=path) from exc


def _plain(value: Any) -> Any:
    """Unwrap tomlkit items into plain Python values."""
    unwrap = getattr(value, "unwrap", None)
    return unwrap() if unwrap is not None else value


class TomlDocument:
    """Selector-addressed access to a tomlkit document."""

    def __init__(self, doc: tomlkit.TOMLDocument, path: str = "") -> None:
        self.doc = doc
        self.path = path

    def read(self, selector: str, default: Any = None) -> Any:
        return _plain(read_path(self.doc, selector, default))

    def write(self, selector: str, value: Any) -> None:
        try:
            write_path(self.doc, selector, value)
        except KeyError as exc:
            raise ConfigurationError(
                f"Cannot set {selector}: field does not exist", path=self.path
            ) from exc

    def dumps(self) -> str:
        return tomlkit.dumps(self.doc)


class PyProjectManifest(TomlDocument):
    """A pyproject.toml for a workspace member or the workspace root.

    Name and version are read from ``[project]``, falling back to
    ``[tool.poetry]`` for projects that have not migrated to PEP 621.
    Dependencies are gathered from three locations:

    - ``[project].dependencies`` (main runtime deps)
    - ``[project].optional-dependencies.*`` (extras like [dev], [test])
    - ``[dependency-groups].*`` (PEP 735 dependency groups)
    """

    @property
    def name_selector(self) -> str:
        if self.read("project.name") is None and self.read("tool.poetry.name") is not None:
            return "tool.poetry.name"
        return "project.name"

    @property
    def version_selector(self) -> str:
        if (
            self.read("project.version") is None
            and self.read("tool.poetry.version") is not None
        ):
            return "tool.poetry.version"
        return "project.version"

    def dependency_sections(self) -> Iterator[tuple[str, str]]:
        if isinstance(self.read("project.dependencies"), list):
            yield "dependencies", "project.dependencies"

        optional = self.read("project.optional-dependencies")
        if isinstance(optional, Mapping):
            for group, deps in optional.items():
                if isinstance(deps, list):
                    yield (
                        f"optional-dependencies.{group}",
                        join_key("project.optional-dependencies", group),
                    )

        groups = self.read("dependency-groups")
        if isinstance(groups, Mapping):
            for group, deps in groups.items():
                if isinstance(deps, list):
                    yield f"dependency-groups.{group}", join_key("dependency-groups", group)

    def render_specifier(self, spec: DependencySpecifier) -> str:
        """Render a specifier back to PEP 508 text.

        Extras are sorted alphabetically for consistent output.
        """
        extras = f"[{','.join(sorted(spec.extras))}]" if spec.extras else ""
        if spec.operator is SpecOperator.UNCONSTRAINED:
            constraint = ""
        elif spec.operator is SpecOperator.OTHER:
            constraint = spec.version
        else:
            constraint = f"{_OPERATOR_SYMBOLS[spec.operator]}{spec.version}"
        marker = f" ; {spec.marker}" if spec.marker else ""
        return f"{spec.name}{extras}{constraint}{marker}"

    def workspace_members(self) -> list[str]:
        """Member glob patterns from ``[tool.uv.workspace]``.

        Raises:
            ConfigurationError: If no workspace members are defined.
        """
        members = self.read("tool.uv.workspace.members")
        if not members:
            raise ConfigurationError(
                "No [tool.uv.workspace] members defined in root pyproject.toml",
                path=self.path,
            )
        return [str(m) for m in members]

    def workspace_excludes(self) -> list[str]:
        return [str(e) for e in self.read("tool.uv.workspace.exclude") or []]


class UvLockDocument(TomlDocument):
    """A uv.lock file: one ``[[package]]`` entry per resolved package."""


def parse_pyproject(text: str, path: str = "pyproject.toml") -> PyProjectManifest:
    """Parse pyproject.toml text, raising ConfigurationError on bad TOML."""
    return PyProjectManifest(_parse_toml(text, path), path)


def parse_lock(text: str, path: str = "uv.lock") -> UvLockDocument:
    """Parse uv.lock text, raising ConfigurationError on bad TOML."""
    return UvLockDocument(_parse_toml(text, path), path)


def parse_document(text: str, path: str = "") -> TomlDocument:
    """Parse any TOML file for selector-based editing."""
    return TomlDocument(_parse_toml(text, path), path)


def apply_mutation(text: str, selector: str, value: Any) -> str:
    """Set one field in TOML text and return the updated text."""
    document = parse_document(text)
    document.write(selector, value)
    return document.dumps()
