"""Cascade pipeline: parse → graph → closure → synthesize → merge.

This module orchestrates one cascade run:
1. Parse every discovered manifest into the run's manifest cache
2. Build the workspace dependency graph
3. Compute the closure of affected packages and their new versions
4. Synthesize file edits for every package and the shared lock file
5. Merge edits into one composite mutation per file

The run has no side effects: the resulting CascadeResult is handed to
whatever writes files or opens pull requests. ``apply_mutations`` is the
in-memory writer used by the CLI and tests.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum

import semver

from .cascade import compute_closure
from .changelog import (
    append_dependencies_section,
    group_notes,
    prepend_release_entry,
    render_dependency_notes,
)
from .config import CascadeConfig
from .errors import ConfigurationError
from .graph import build_graph
from .logging import get_logger
from .manifest import ManifestDocument
from .merge import merge
from .models import (
    CascadeResult,
    CompositeMutation,
    DiscoveredPackage,
    MutationInstruction,
    MutationKind,
)
from .synthesize import synthesize_lock, synthesize_package
from .toml import parse_document, parse_lock, parse_pyproject
from .versions import BumpPolicy, VersionMap

logger = get_logger(__name__)


class Stage(str, Enum):
    """Orchestrator state; a run only ever moves forward."""

    IDLE = "idle"
    GRAPH_BUILT = "graph-built"
    CLOSURE_COMPUTED = "closure-computed"
    SYNTHESIZED = "synthesized"
    MERGED = "merged"
    DONE = "done"


class CascadeOrchestrator:
    """Drives a single cascade run.

    Create a fresh orchestrator per release attempt; it owns the run's
    manifest cache (path → parsed document) and refuses to run twice.
    """

    def __init__(self, config: CascadeConfig | None = None) -> None:
        self.config = config or CascadeConfig()
        self.stage = Stage.IDLE
        self._used = False
        self.manifests: dict[str, ManifestDocument] = {}

    def _advance(self, stage: Stage) -> None:
        logger.debug("cascade_stage", stage=stage.value)
        self.stage = stage

    def _parse_manifests(self, discovered: Sequence[DiscoveredPackage]) -> None:
        for package in discovered:
            if package.manifest_text is None:
                raise ConfigurationError(
                    f"Workspace member {package.path!r} declared but manifest not found",
                    path=package.manifest_path,
                )
            if package.path in self.manifests:
                raise ConfigurationError(
                    "Workspace member discovered twice", path=package.manifest_path
                )
            self.manifests[package.path] = parse_pyproject(
                package.manifest_text, package.manifest_path
            )

    def run(
        self,
        discovered_packages: Sequence[DiscoveredPackage],
        seed_versions: Mapping[str, semver.Version | str],
        bump_policy: BumpPolicy | None = None,
        *,
        lock_file: DiscoveredPackage | None = None,
    ) -> CascadeResult:
        """Compute every file edit needed to release ``seed_versions``.

        Args:
            discovered_packages: Manifests found by workspace discovery.
            seed_versions: Package name → externally decided new version.
            bump_policy: Version policy for cascaded packages; defaults to
                the configured policy.
            lock_file: The shared lock file, if the workspace has one.

        Returns:
            The CascadeResult with composite mutations sorted by path.

        Raises:
            ConfigurationError: On any malformed or ambiguous input; the
                run is aborted.
            RuntimeError: If this orchestrator has already been used.
        """
        if self._used:
            raise RuntimeError("CascadeOrchestrator instances are single-use")
        self._used = True

        self._parse_manifests(discovered_packages)
        graph = build_graph(self.manifests.items())
        self._advance(Stage.GRAPH_BUILT)

        version_map = compute_closure(graph, seed_versions, bump_policy or self.config.policy)
        self._advance(Stage.CLOSURE_COMPUTED)

        instructions: list[MutationInstruction] = []
        warnings: list[str] = []
        for name in graph.names:
            instructions.extend(
                synthesize_package(
                    graph.nodes[name],
                    version_map,
                    manifest=self.manifests[graph.nodes[name].path],
                    changelog_path=self.config.changelog_path,
                )
            )
        if lock_file is not None and version_map:
            if lock_file.manifest_text is None:
                raise ConfigurationError("Lock file not found", path=lock_file.manifest_path)
            lock = parse_lock(lock_file.manifest_text, lock_file.manifest_path)
            lock_instructions, lock_warnings = synthesize_lock(lock, version_map)
            instructions.extend(lock_instructions)
            warnings.extend(lock_warnings)
        self._advance(Stage.SYNTHESIZED)

        composites = merge(instructions)
        self._advance(Stage.MERGED)

        fragments = {
            package: render_dependency_notes(sections)
            for package, sections in sorted(group_notes(instructions).items())
        }
        self._advance(Stage.DONE)

        logger.info(
            "cascade_complete",
            packages=len(version_map),
            files=len(composites),
            warnings=len(warnings),
        )
        return CascadeResult(
            version_map=version_map,
            composite_mutations=composites,
            changelog_fragments=fragments,
            warnings=warnings,
        )


def run_cascade(
    discovered_packages: Sequence[DiscoveredPackage],
    seed_versions: Mapping[str, semver.Version | str],
    bump_policy: BumpPolicy | None = None,
    *,
    lock_file: DiscoveredPackage | None = None,
    config: CascadeConfig | None = None,
) -> CascadeResult:
    """Run a cascade with a fresh CascadeOrchestrator."""
    return CascadeOrchestrator(config).run(
        discovered_packages, seed_versions, bump_policy, lock_file=lock_file
    )


def apply_mutations(
    files: Mapping[str, str],
    composites: Sequence[CompositeMutation],
    version_map: VersionMap,
) -> dict[str, str]:
    """Apply composite mutations to file contents in memory.

    TOML files are edited field by field through the dialect so that
    formatting is preserved. Changelog notes for a file are rendered as
    one new ``## <version>`` entry at the top of that changelog.

    Args:
        files: Current contents by workspace-relative path. Missing
            changelogs are treated as empty; other missing files are an
            error.
        composites: The plan from CascadeResult.composite_mutations.
        version_map: The run's version map, used to title changelog entries.

    Returns:
        New contents for every file touched by ``composites``.
    """
    updated: dict[str, str] = {}
    for composite in composites:
        notes = [i for i in composite.instructions if i.kind is MutationKind.APPEND_CHANGELOG_NOTE]
        edits = [i for i in composite.instructions if i.kind is not MutationKind.APPEND_CHANGELOG_NOTE]
        text = files.get(composite.target_path)

        if edits:
            if text is None:
                raise ConfigurationError("Cannot update missing file", path=composite.target_path)
            document = parse_document(text, composite.target_path)
            for instruction in edits:
                document.write(instruction.selector, instruction.value)
            text = document.dumps()

        if notes:
            package = notes[0].package
            rendered = render_dependency_notes(group_notes(notes)[package])
            entry = append_dependencies_section("", rendered)
            text = prepend_release_entry(text or "", str(version_map[package]), entry)

        updated[composite.target_path] = text or ""
    return updated
