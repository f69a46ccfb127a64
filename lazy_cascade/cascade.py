"""Cascade computation: which packages a release touches, and at what version.

Starting from the seed (packages whose new version was decided upstream,
e.g. from commit history), every package that depends on something in
the result is pulled in with a version from the bump policy. The result
is the forward closure over reverse dependency edges:

    seed = {core}          cli → core, app → cli, docs (no deps)
    pass 1: cli joins      (depends on core)
    pass 2: app joins      (depends on cli)
    pass 3: nothing new    → {core, cli, app}
"""

from __future__ import annotations

from collections.abc import Mapping

import semver
from packaging.utils import canonicalize_name

from .errors import ConfigurationError
from .graph import DependencyGraph, detect_cycles
from .logging import get_logger
from .versions import BumpPolicy, VersionMap, bump_patch, parse_version

logger = get_logger(__name__)


def compute_closure(
    graph: DependencyGraph,
    seed: Mapping[str, semver.Version | str],
    bump_policy: BumpPolicy = bump_patch,
) -> VersionMap:
    """Assign new versions to the seed and all of its transitive dependents.

    Args:
        graph: The workspace dependency graph.
        seed: Package name → externally decided new version. Names are
            matched after PEP 503 normalization, like graph node names.
        bump_policy: Computes the new version of a cascaded package from
            its current version. Defaults to a patch bump.

    Returns:
        A VersionMap covering the seed plus every package reachable from
        it over reverse dependency edges. Packages not in the map are not
        part of this release.

    Raises:
        ConfigurationError: If a seed package is not in the workspace, a
            seed version is invalid, two seed names normalize to the same
            package with different versions, or the graph contains a
            dependency cycle.
    """
    seeds: dict[str, semver.Version] = {}
    for name, version in seed.items():
        try:
            parsed = parse_version(version) if isinstance(version, str) else version
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid seed version for {name}: {exc}", names=[name]
            ) from exc
        key = canonicalize_name(name)
        if key in seeds and seeds[key] != parsed:
            raise ConfigurationError(
                f"Conflicting seed versions for {key}: {seeds[key]} and {parsed}",
                names=[key],
            )
        seeds[key] = parsed

    unknown = sorted(name for name in seeds if name not in graph.nodes)
    if unknown:
        raise ConfigurationError(
            f"Seed packages not found in workspace: {', '.join(unknown)}",
            names=unknown,
        )

    result = VersionMap(seeds)
    if not result:
        return result

    cycles = detect_cycles(graph)
    if cycles:
        members = sorted({name for cycle in cycles for name in cycle})
        cycle_strs = [" → ".join(cycle) for cycle in cycles]
        raise ConfigurationError(
            f"Dependency cycle detected involving: {', '.join(members)} ({'; '.join(cycle_strs)})",
            names=members,
        )

    # Each productive pass adds at least one package, so an acyclic graph
    # settles within len(graph) passes plus the final empty pass.
    for passes in range(1, len(graph) + 2):
        added = []
        for name in graph.names:
            if name in result:
                continue
            if any(dep in result for dep in graph.dependencies(name)):
                added.append(name)
        for name in added:
            node = graph.nodes[name]
            new_version = bump_policy(node.current_version)
            result.assign(name, new_version)
            logger.debug(
                "cascaded_version",
                package=name,
                old=node.version,
                new=str(new_version),
                because=[dep for dep in graph.dependencies(name) if dep in result],
            )
        if not added:
            logger.info(
                "closure_computed",
                seed=len(seeds),
                cascaded=len(result) - len(seeds),
                passes=passes,
            )
            return result

    pending = sorted(name for name in graph.nodes if name not in result)
    raise ConfigurationError(
        f"Version cascade did not converge; unresolved: {', '.join(pending)}",
        names=pending,
    )
