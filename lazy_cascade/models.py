"""Data models for lazy-cascade.

These Pydantic models are the value types passed between the stages of a
cascade run: discovered packages, graph nodes and edges, dependency
specifiers, mutation instructions and the final result.
"""

from __future__ import annotations

import weakref
from enum import Enum
from typing import TYPE_CHECKING, Any

import semver
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .versions import VersionMap, parse_version

if TYPE_CHECKING:
    from .manifest import ManifestDocument

ROOT_PROJECT_PATH = "."


def add_path(directory: str, filename: str) -> str:
    """Join a workspace-relative directory and a file name.

    The workspace root (``"."``) maps to the bare file name so that paths
    stay canonical: ``add_path(".", "uv.lock")`` → ``"uv.lock"``.
    """
    directory = directory.strip("/")
    if directory in ("", ROOT_PROJECT_PATH):
        return filename
    return f"{directory}/{filename}"


class DiscoveredPackage(BaseModel):
    """One manifest location found by workspace discovery.

    Attributes:
        path: Workspace-relative package directory ("." for the root).
        manifest_path: Workspace-relative path of the manifest file.
        manifest_text: Raw manifest contents, or None when the manifest
            was expected but not found.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    manifest_path: str
    manifest_text: str | None = None


class Workspace(BaseModel):
    """Result of discovering a workspace on a branch or checkout."""

    root_manifest_text: str
    packages: list[DiscoveredPackage] = Field(default_factory=list)
    lock_file: DiscoveredPackage | None = None
    warnings: list[str] = Field(default_factory=list)


class PackageNode(BaseModel):
    """A workspace package as seen by the dependency graph.

    The manifest document itself is owned by the orchestrator's per-run
    cache; the node only keeps a weak reference to it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    version: str
    manifest_path: str
    _manifest_ref: Any = PrivateAttr(default=None)

    @classmethod
    def create(
        cls,
        *,
        name: str,
        path: str,
        version: str,
        manifest_path: str,
        manifest: ManifestDocument | None = None,
    ) -> PackageNode:
        node = cls(name=name, path=path, version=version, manifest_path=manifest_path)
        if manifest is not None:
            node._manifest_ref = weakref.ref(manifest)
        return node

    @property
    def current_version(self) -> semver.Version:
        return parse_version(self.version)

    @property
    def manifest(self) -> ManifestDocument:
        """The manifest document this node was built from.

        Raises:
            RuntimeError: If the owning cache has already been discarded.
        """
        manifest = self._manifest_ref() if self._manifest_ref is not None else None
        if manifest is None:
            raise RuntimeError(f"Manifest for {self.name} is no longer available")
        return manifest


class DependencyEdge(BaseModel):
    """``source`` declares a dependency on ``target``."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class SpecOperator(str, Enum):
    """Version constraint style of a dependency specifier."""

    EXACT = "exact"  # pkg==1.0.0
    AT_LEAST = "at-least"  # pkg>=1.0.0
    COMPATIBLE = "compatible"  # pkg^1.0.0
    APPROX_EQUAL = "approx-equal"  # pkg~=1.0.0 / pkg~1.0.0
    UNCONSTRAINED = "unconstrained"  # pkg
    OTHER = "other"  # anything else, e.g. pkg<2 or pkg>=1,<2


class DependencySpecifier(BaseModel):
    """A parsed dependency string such as ``"core[cli]>=1.0 ; python_version>'3.9'"``.

    Attributes:
        name: Package name exactly as written.
        extras: Extras in the order they were written.
        operator: Constraint style.
        version: Version part of the constraint ("" when unconstrained).
        marker: Environment marker after ``;`` (without the semicolon).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    extras: tuple[str, ...] = ()
    operator: SpecOperator = SpecOperator.UNCONSTRAINED
    version: str = ""
    marker: str = ""


class MutationKind(str, Enum):
    """Kinds of file edit, in application order."""

    SET_VERSION = "set-version"
    SET_DEPENDENCY_VERSION = "set-dependency-version"
    APPEND_CHANGELOG_NOTE = "append-changelog-note"

    @property
    def priority(self) -> int:
        return _KIND_PRIORITY[self]


_KIND_PRIORITY = {
    MutationKind.SET_VERSION: 0,
    MutationKind.SET_DEPENDENCY_VERSION: 1,
    MutationKind.APPEND_CHANGELOG_NOTE: 2,
}


class MutationInstruction(BaseModel):
    """A single edit: set ``selector`` in ``target_path`` to ``value``.

    Attributes:
        target_path: Workspace-relative file to edit.
        selector: Path into the document, e.g. ``project.version`` or
            ``package[3].version``. For changelog notes it identifies the
            note as ``<section>/<dependency>``.
        value: New value (or the note text).
        kind: What sort of edit this is.
        package: Name of the package the edit was synthesized for.
        section: Originating manifest section for dependency edits and
            changelog notes (e.g. ``optional-dependencies.dev``).
    """

    model_config = ConfigDict(frozen=True)

    target_path: str
    selector: str
    value: str
    kind: MutationKind
    package: str
    section: str | None = None


class CompositeMutation(BaseModel):
    """All edits for one file, in deterministic application order."""

    model_config = ConfigDict(frozen=True)

    target_path: str
    instructions: tuple[MutationInstruction, ...]


class CascadeResult(BaseModel):
    """Output of one cascade run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    version_map: VersionMap
    composite_mutations: list[CompositeMutation] = Field(default_factory=list)
    changelog_fragments: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
