"""Workspace discovery: find member manifests and fetch their contents.

Reads ``[tool.uv.workspace].members`` from the root pyproject.toml,
expands the member glob patterns (minus ``exclude`` patterns) into
package directories, and reads every manifest. Reads are independent, so
they are fanned out over a thread pool; results are sorted by path so
the order in which reads complete never matters.

A manifest that is expected but missing is reported as a
DiscoveredPackage with ``manifest_text=None``; the orchestrator turns
that into a ConfigurationError naming the path.
"""

from __future__ import annotations

import fnmatch
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

from .errors import ConfigurationError
from .logging import get_logger
from .models import ROOT_PROJECT_PATH, DiscoveredPackage, Workspace, add_path
from .toml import parse_pyproject

logger = get_logger(__name__)

MANIFEST_NAME = "pyproject.toml"


class WorkspaceReader(Protocol):
    """Read access to the workspace on some branch or checkout."""

    def read_text(self, path: str) -> str | None:
        """Return the file's contents, or None if it does not exist."""
        ...

    def glob(self, pattern: str) -> list[str]:
        """Return workspace-relative paths of files matching ``pattern``."""
        ...


class LocalWorkspaceReader:
    """WorkspaceReader over a directory on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def read_text(self, path: str) -> str | None:
        try:
            return (self.root / path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def glob(self, pattern: str) -> list[str]:
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in self.root.glob(pattern)
            if p.is_file()
        )


def _expand_member(reader: WorkspaceReader, pattern: str) -> list[str]:
    """Expand one member pattern into package directories."""
    pattern = pattern.strip("/")
    # Exact paths are taken as-is, even if their manifest is missing.
    if not any(ch in pattern for ch in "*?["):
        return [pattern]
    manifests = reader.glob(add_path(pattern, MANIFEST_NAME))
    return [m[: -len(MANIFEST_NAME)].rstrip("/") or ROOT_PROJECT_PATH for m in manifests]


def discover_workspace(
    reader: WorkspaceReader,
    *,
    lock_file: str | None = "uv.lock",
    max_workers: int = 8,
) -> Workspace:
    """Discover every package in the workspace and fetch its manifest.

    Args:
        reader: Access to the workspace files.
        lock_file: Shared lock file to fetch, or None to skip it.
        max_workers: Maximum number of concurrent manifest reads.

    Returns:
        The Workspace, including the root package (".") and any warnings
        about member patterns that matched nothing.

    Raises:
        ConfigurationError: If the root pyproject.toml is missing or does
            not declare any workspace members.
    """
    root_text = reader.read_text(MANIFEST_NAME)
    if root_text is None:
        raise ConfigurationError("No pyproject.toml found at workspace root", path=MANIFEST_NAME)
    root = parse_pyproject(root_text, MANIFEST_NAME)
    members = root.workspace_members()
    excludes = root.workspace_excludes()

    warnings: list[str] = []
    paths: set[str] = set()
    for pattern in members:
        expanded = _expand_member(reader, pattern)
        if not expanded:
            message = f"Workspace member pattern {pattern!r} matched no packages"
            logger.warning("member_pattern_matched_nothing", pattern=pattern)
            warnings.append(message)
        for path in expanded:
            if any(fnmatch.fnmatch(path, ex.strip("/")) for ex in excludes):
                logger.debug("member_excluded", path=path)
                continue
            paths.add(path)
    paths.discard(ROOT_PROJECT_PATH)
    member_paths = sorted(paths)

    def fetch(path: str) -> DiscoveredPackage:
        manifest_path = add_path(path, MANIFEST_NAME)
        return DiscoveredPackage(
            path=path,
            manifest_path=manifest_path,
            manifest_text=reader.read_text(manifest_path),
        )

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        fetched = list(pool.map(fetch, member_paths))

    packages = [
        DiscoveredPackage(
            path=ROOT_PROJECT_PATH, manifest_path=MANIFEST_NAME, manifest_text=root_text
        ),
        *sorted(fetched, key=lambda p: p.path),
    ]

    lock = None
    if lock_file:
        lock_text = reader.read_text(lock_file)
        if lock_text is None:
            logger.debug("lock_file_not_found", path=lock_file)
        else:
            lock = DiscoveredPackage(
                path=ROOT_PROJECT_PATH, manifest_path=lock_file, manifest_text=lock_text
            )

    logger.info("workspace_discovered", members=len(member_paths), warnings=len(warnings))
    return Workspace(
        root_manifest_text=root_text,
        packages=packages,
        lock_file=lock,
        warnings=warnings,
    )
