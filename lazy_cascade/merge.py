"""Merge synthesized instructions into one composite edit per file."""

from __future__ import annotations

from collections.abc import Iterable

from .errors import ConfigurationError
from .models import CompositeMutation, MutationInstruction


def merge(instructions: Iterable[MutationInstruction]) -> list[CompositeMutation]:
    """Group instructions by target file into CompositeMutations.

    Within a file, instructions are ordered by kind priority (version
    first, then dependency versions, then changelog notes) and otherwise
    keep their emission order. Exact duplicates collapse into one.
    Composites are returned sorted by path.

    Raises:
        ConfigurationError: If two instructions set the same field of the
            same file to different values.
    """
    by_path: dict[str, list[MutationInstruction]] = {}
    values: dict[tuple[str, str], MutationInstruction] = {}

    for instruction in instructions:
        key = (instruction.target_path, instruction.selector)
        previous = values.get(key)
        if previous is not None:
            if previous.value != instruction.value:
                raise ConfigurationError(
                    f"Conflicting updates for {instruction.selector}: "
                    f"{previous.value!r} ({previous.package}) vs "
                    f"{instruction.value!r} ({instruction.package})",
                    path=instruction.target_path,
                    names=sorted({previous.package, instruction.package}),
                )
            continue
        values[key] = instruction
        by_path.setdefault(instruction.target_path, []).append(instruction)

    return [
        CompositeMutation(
            target_path=path,
            # sorted() is stable, so emission order breaks ties.
            instructions=tuple(sorted(by_path[path], key=lambda i: i.kind.priority)),
        )
        for path in sorted(by_path)
    ]
