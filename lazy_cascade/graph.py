"""Dependency graph utilities.

Builds the workspace dependency graph from parsed manifests and finds
dependency cycles. Edges point from a dependent to its dependency: if
package A depends on package B there is an edge A → B, and a reverse
edge B → A in ``reverse_edges``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from packaging.utils import canonicalize_name

from .deps import dep_canonical_name
from .errors import ConfigurationError
from .logging import get_logger
from .manifest import ManifestDocument
from .models import ROOT_PROJECT_PATH, DependencyEdge, PackageNode, add_path
from .versions import parse_version

logger = get_logger(__name__)


@dataclass
class DependencyGraph:
    """A directed graph of workspace package dependencies.

    Attributes:
        nodes: Package name → PackageNode.
        edges: Package name → outgoing edges (its workspace dependencies).
        reverse_edges: Package name → names of packages depending on it.
    """

    nodes: dict[str, PackageNode] = field(default_factory=dict)
    edges: dict[str, set[DependencyEdge]] = field(default_factory=dict)
    reverse_edges: dict[str, set[str]] = field(default_factory=dict)

    @property
    def names(self) -> list[str]:
        """Sorted list of all package names in the graph."""
        return sorted(self.nodes)

    def dependencies(self, name: str) -> list[str]:
        """Sorted names of the workspace packages ``name`` depends on."""
        return sorted(edge.target for edge in self.edges.get(name, ()))

    def dependents(self, name: str) -> list[str]:
        """Sorted names of the workspace packages depending on ``name``."""
        return sorted(self.reverse_edges.get(name, ()))

    def add_edge(self, source: str, target: str) -> None:
        # Duplicate edges collapse because edges are stored in sets.
        if source == target:
            return
        self.edges[source].add(DependencyEdge(source=source, target=target))
        self.reverse_edges[target].add(source)

    def __len__(self) -> int:
        return len(self.nodes)


def _dependency_strings(manifest: ManifestDocument) -> list[str]:
    """All dependency strings across every dependency-bearing section."""
    deps: list[str] = []
    for _, selector in manifest.dependency_sections():
        for dep in manifest.read(selector) or []:
            # PEP 735 {include-group = "..."} tables are not dependencies.
            if isinstance(dep, str):
                deps.append(dep)
    return deps


def _make_node(path: str, manifest: ManifestDocument) -> PackageNode | None:
    manifest_path = manifest.path or add_path(path, "pyproject.toml")
    raw_name = manifest.read(manifest.name_selector)
    if not raw_name:
        if path == ROOT_PROJECT_PATH:
            logger.debug("workspace_root_has_no_package", path=manifest_path)
        else:
            logger.warning("manifest_missing_name", path=manifest_path)
        return None

    version = manifest.read(manifest.version_selector)
    if version is None:
        raise ConfigurationError(
            f"Package manifest for {raw_name} is missing version", path=manifest_path
        )
    if not isinstance(version, str):
        raise ConfigurationError(
            f"Package manifest for {raw_name} has an invalid version", path=manifest_path
        )
    try:
        parse_version(version)
    except ValueError as exc:
        raise ConfigurationError(
            f"Package manifest for {raw_name} has an invalid version {version!r}",
            path=manifest_path,
        ) from exc

    return PackageNode.create(
        name=canonicalize_name(str(raw_name)),
        path=path,
        version=version,
        manifest_path=manifest_path,
        manifest=manifest,
    )


def build_graph(packages: Iterable[tuple[str, ManifestDocument]]) -> DependencyGraph:
    """Build the dependency graph for a set of discovered packages.

    Only internal dependencies (those naming another workspace package)
    become edges; external dependencies are dropped.

    Args:
        packages: ``(workspace-relative path, parsed manifest)`` pairs.

    Returns:
        A DependencyGraph with forward and reverse edges.

    Raises:
        ConfigurationError: If two packages share a name, or a manifest has
            a missing or invalid version.
    """
    graph = DependencyGraph()
    manifests: dict[str, ManifestDocument] = {}

    # Sort by path so that errors and logs do not depend on discovery order.
    for path, manifest in sorted(packages, key=lambda item: item[0]):
        node = _make_node(path, manifest)
        if node is None:
            continue
        existing = graph.nodes.get(node.name)
        if existing is not None:
            raise ConfigurationError(
                f"Duplicate package name {node.name!r} declared in "
                f"{existing.manifest_path} and {node.manifest_path}",
                path=node.manifest_path,
                names=[node.name],
            )
        graph.nodes[node.name] = node
        graph.edges[node.name] = set()
        graph.reverse_edges[node.name] = set()
        manifests[node.name] = manifest

    for name, manifest in manifests.items():
        for dep_str in _dependency_strings(manifest):
            dep_name = dep_canonical_name(dep_str)
            # Only track internal deps, ignore external packages
            if dep_name in graph.nodes:
                graph.add_edge(name, dep_name)

    logger.debug(
        "graph_built",
        packages=len(graph),
        edges=sum(len(edges) for edges in graph.edges.values()),
    )
    return graph


def detect_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Find dependency cycles using a depth-first search.

    Returns:
        One list of package names per cycle found, each starting and
        ending with the same name (e.g. ``["a", "b", "a"]``). Empty if the
        graph is acyclic.
    """
    white, gray, black = 0, 1, 2
    color = {name: white for name in graph.nodes}
    parent: dict[str, str | None] = {name: None for name in graph.nodes}
    cycles: list[list[str]] = []

    def visit(node: str) -> None:
        color[node] = gray
        for neighbor in graph.dependencies(node):
            if color[neighbor] == gray:
                # Back edge: walk parents to reconstruct the cycle.
                cycle = [neighbor]
                current: str | None = node
                while current is not None and current != neighbor:
                    cycle.append(current)
                    current = parent[current]
                cycle.append(neighbor)
                cycle.reverse()
                cycles.append(cycle)
            elif color[neighbor] == white:
                parent[neighbor] = node
                visit(neighbor)
        color[node] = black

    for name in graph.names:
        if color[name] == white:
            visit(name)
    return cycles
