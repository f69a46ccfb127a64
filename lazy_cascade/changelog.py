"""Changelog notes for workspace dependency updates.

Dependency notes are grouped by the manifest section they came from and
rendered as a nested markdown list::

    * The following workspace dependencies were updated
      * dependencies
        * core bumped to 1.1.0
      * dependency-groups.test
        * testkit bumped to 0.4.1
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import MutationInstruction, MutationKind

DEPENDENCIES_HEADING = "### Dependencies"
CHANGELOG_TITLE = "# Changelog"


def group_notes(
    instructions: Iterable[MutationInstruction],
) -> dict[str, dict[str, list[str]]]:
    """Collect changelog notes as ``{package: {section: [note, ...]}}``.

    Sections and notes keep their emission order; duplicates are dropped.
    """
    grouped: dict[str, dict[str, list[str]]] = {}
    for instruction in instructions:
        if instruction.kind is not MutationKind.APPEND_CHANGELOG_NOTE:
            continue
        notes = grouped.setdefault(instruction.package, {}).setdefault(
            instruction.section or "dependencies", []
        )
        if instruction.value not in notes:
            notes.append(instruction.value)
    return grouped


def render_dependency_notes(notes_by_section: dict[str, list[str]]) -> str:
    """Render grouped notes as a markdown list; empty string if no notes."""
    lines: list[str] = []
    for section, notes in notes_by_section.items():
        if not notes:
            continue
        lines.append(f"  * {section}")
        lines.extend(f"    * {note}" for note in notes)
    if not lines:
        return ""
    return "\n".join(["* The following workspace dependencies were updated", *lines])


def append_dependencies_section(entry: str, notes: str) -> str:
    """Add rendered dependency notes to a release-notes entry.

    Notes go under the entry's ``### Dependencies`` heading, which is
    created at the end of the entry if it does not exist yet.
    """
    if not notes:
        return entry
    if not entry.strip():
        return f"{DEPENDENCIES_HEADING}\n\n{notes}"

    lines = entry.rstrip("\n").split("\n")
    try:
        start = lines.index(DEPENDENCIES_HEADING)
    except ValueError:
        return f"{entry.rstrip()}\n\n{DEPENDENCIES_HEADING}\n\n{notes}"

    # Insert before the next heading, or at the end of the entry.
    end = len(lines)
    for index in range(start + 1, len(lines)):
        if lines[index].startswith("#"):
            end = index
            break
    while end > start + 1 and not lines[end - 1].strip():
        end -= 1
    inserted = [notes] if end > start + 1 else ["", notes]
    return "\n".join([*lines[:end], *inserted, *lines[end:]])


def prepend_release_entry(changelog: str, version: str, entry: str) -> str:
    """Insert a ``## <version>`` section at the top of a changelog file.

    The new section goes right after the ``# Changelog`` title when the
    file has one, otherwise at the very top.
    """
    section = f"## {version}\n\n{entry.strip()}\n"
    if not changelog.strip():
        return f"{CHANGELOG_TITLE}\n\n{section}"
    lines = changelog.split("\n")
    if lines[0].strip() == CHANGELOG_TITLE:
        rest = "\n".join(lines[1:]).lstrip("\n")
        return f"{CHANGELOG_TITLE}\n\n{section}\n{rest}" if rest else f"{CHANGELOG_TITLE}\n\n{section}"
    return f"{section}\n{changelog}"
