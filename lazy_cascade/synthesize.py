"""Update synthesis: turn a VersionMap into per-file edit instructions.

For each package this produces, in emission order:

1. ``SET_VERSION`` for the package's own version field,
2. ``SET_DEPENDENCY_VERSION`` for every occurrence of a workspace
   dependency whose version changed, keeping its operator style,
3. ``APPEND_CHANGELOG_NOTE`` for every updated dependency, one per
   manifest section.

Fields that already hold their target value produce nothing, so running
synthesis again over the updated files yields no instructions.
"""

from __future__ import annotations

from packaging.utils import canonicalize_name

from .deps import parse_specifier, repin
from .logging import get_logger
from .manifest import LockDocument, ManifestDocument
from .models import MutationInstruction, MutationKind, PackageNode, add_path
from .versions import VersionMap

logger = get_logger(__name__)

DEFAULT_CHANGELOG_PATH = "CHANGELOG.md"


def dependency_note(dep_name: str, version: str) -> str:
    return f"{dep_name} bumped to {version}"


def synthesize_package(
    package: PackageNode,
    version_map: VersionMap,
    *,
    manifest: ManifestDocument | None = None,
    changelog_path: str = DEFAULT_CHANGELOG_PATH,
) -> list[MutationInstruction]:
    """Synthesize the edits one package needs for this release.

    Args:
        package: The package's graph node.
        version_map: New versions for every package in the release.
        manifest: The package's parsed manifest; defaults to the document
            the node was built from.
        changelog_path: Changelog file name, relative to the package.

    Returns:
        Instructions in emission order; empty if the package is untouched.
    """
    manifest = manifest if manifest is not None else package.manifest
    instructions: list[MutationInstruction] = []

    if package.name in version_map:
        new_version = str(version_map[package.name])
        if manifest.read(manifest.version_selector) != new_version:
            instructions.append(
                MutationInstruction(
                    target_path=package.manifest_path,
                    selector=manifest.version_selector,
                    value=new_version,
                    kind=MutationKind.SET_VERSION,
                    package=package.name,
                )
            )

    # section → dependency names updated in it, in first-seen order
    updated: dict[str, dict[str, str]] = {}
    for section, list_selector in manifest.dependency_sections():
        for index, dep_str in enumerate(manifest.read(list_selector) or []):
            if not isinstance(dep_str, str):
                continue
            spec = parse_specifier(dep_str)
            if spec is None:
                continue
            dep_name = canonicalize_name(spec.name)
            if dep_name not in version_map or dep_name == package.name:
                continue
            new_version = str(version_map[dep_name])
            new_dep_str = manifest.render_specifier(repin(spec, new_version))
            if new_dep_str == dep_str:
                continue
            instructions.append(
                MutationInstruction(
                    target_path=package.manifest_path,
                    selector=f"{list_selector}[{index}]",
                    value=new_dep_str,
                    kind=MutationKind.SET_DEPENDENCY_VERSION,
                    package=package.name,
                    section=section,
                )
            )
            updated.setdefault(section, {}).setdefault(dep_name, new_version)

    notes_path = add_path(package.path, changelog_path)
    for section, deps in updated.items():
        for dep_name, new_version in deps.items():
            instructions.append(
                MutationInstruction(
                    target_path=notes_path,
                    selector=f"{section}/{dep_name}",
                    value=dependency_note(dep_name, new_version),
                    kind=MutationKind.APPEND_CHANGELOG_NOTE,
                    package=package.name,
                    section=section,
                )
            )

    if instructions:
        logger.debug("package_synthesized", package=package.name, instructions=len(instructions))
    return instructions


def synthesize_lock(
    lock: LockDocument,
    version_map: VersionMap,
    *,
    lock_path: str | None = None,
) -> tuple[list[MutationInstruction], list[str]]:
    """Synthesize version edits for the shared workspace lock file.

    Every ``[[package]]`` entry whose name is in the version map gets its
    version set; all other entries are left untouched.

    Returns:
        ``(instructions, warnings)``. A lock file without any matching
        entry yields no instructions and one warning.
    """
    lock_path = lock_path or lock.path
    instructions: list[MutationInstruction] = []
    matched = False

    entries = lock.read("package")
    if not isinstance(entries, list):
        entries = []
    for index, entry in enumerate(entries):
        raw_name = entry.get("name") if isinstance(entry, dict) else None
        if not raw_name:
            continue
        name = canonicalize_name(str(raw_name))
        version = entry.get("version")
        if name not in version_map:
            continue
        matched = True
        new_version = str(version_map[name])
        if version == new_version:
            continue
        logger.debug("lock_entry_updated", package=name, old=version, new=new_version)
        instructions.append(
            MutationInstruction(
                target_path=lock_path,
                selector=f"package[{index}].version",
                value=new_version,
                kind=MutationKind.SET_VERSION,
                package=name,
            )
        )

    warnings: list[str] = []
    if version_map and not matched:
        message = f"No workspace packages found in {lock_path} to update"
        logger.warning("lock_no_matching_entries", path=lock_path)
        warnings.append(message)
    return instructions, warnings
