"""The manifest document interface used by the cascade engine.

The engine never touches raw manifest text. It reads and writes fields
through a selector, a dotted path with optional list indices. Keys that
contain a dot or a bracket are written in quoted bracket form::

    project.version
    project.optional-dependencies.dev[0]
    dependency-groups["docs.build"][1]
    package[3].version

Concrete dialects (see :mod:`lazy_cascade.toml`) implement
:class:`ManifestDocument` on top of their own parser.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, MutableMapping, MutableSequence
from typing import Any, Protocol, runtime_checkable

from .models import DependencySpecifier

_SELECTOR_TOKEN_RE = re.compile(r'([^.\[\]"]+)|\[(\d+)\]|\["([^"]*)"\]|(\.)')
_PLAIN_KEY_RE = re.compile(r'^[^.\[\]"]+$')

MISSING: Any = object()


def join_key(selector: str, key: str) -> str:
    """Append a mapping key to ``selector``, quoting it when needed.

    Examples:
        join_key("dependency-groups", "test") → "dependency-groups.test"
        join_key("dependency-groups", "docs.build") → 'dependency-groups["docs.build"]'

    Raises:
        ValueError: If ``key`` contains a double quote.
    """
    if _PLAIN_KEY_RE.match(key):
        return f"{selector}.{key}"
    if '"' in key:
        raise ValueError(f"Key cannot be used in a selector: {key!r}")
    return f'{selector}["{key}"]'


def parse_selector(selector: str) -> list[str | int]:
    """Split a selector into mapping keys (str) and list indices (int).

    Examples:
        "project.version" → ["project", "version"]
        "package[3].version" → ["package", 3, "version"]
        'dependency-groups["docs.build"]' → ["dependency-groups", "docs.build"]

    Raises:
        ValueError: If the selector is empty or malformed.
    """
    parts: list[str | int] = []
    pos = 0
    expect_key = True
    while pos < len(selector):
        match = _SELECTOR_TOKEN_RE.match(selector, pos)
        if not match:
            raise ValueError(f"Malformed selector: {selector!r}")
        key, index, quoted, dot = match.groups()
        if key is not None:
            if not expect_key:
                raise ValueError(f"Malformed selector: {selector!r}")
            parts.append(key)
            expect_key = False
        elif index is not None:
            if expect_key:
                raise ValueError(f"Malformed selector: {selector!r}")
            parts.append(int(index))
        elif quoted is not None:
            if expect_key:
                raise ValueError(f"Malformed selector: {selector!r}")
            parts.append(quoted)
        else:
            if expect_key:
                raise ValueError(f"Malformed selector: {selector!r}")
            expect_key = True
        pos = match.end()
    if not parts or expect_key:
        raise ValueError(f"Malformed selector: {selector!r}")
    return parts


def read_path(data: Any, selector: str, default: Any = MISSING) -> Any:
    """Read the value at ``selector`` from nested mappings and sequences.

    Returns ``default`` when any step of the path does not exist, or raises
    KeyError if no default was given.
    """
    current = data
    for part in parse_selector(selector):
        if isinstance(part, int):
            if not isinstance(current, MutableSequence) or part >= len(current):
                current = MISSING
                break
        elif not isinstance(current, MutableMapping) or part not in current:
            current = MISSING
            break
        current = current[part]
    if current is MISSING:
        if default is MISSING:
            raise KeyError(selector)
        return default
    return current


def write_path(data: Any, selector: str, value: Any) -> None:
    """Set the value at ``selector``; every parent on the path must exist.

    Raises:
        KeyError: If a parent key or index does not exist.
    """
    *parents, last = parse_selector(selector)
    container = data
    for part in parents:
        try:
            container = container[part]
        except (KeyError, IndexError, TypeError) as exc:
            raise KeyError(selector) from exc
    if isinstance(last, int):
        if not isinstance(container, MutableSequence) or last >= len(container):
            raise KeyError(selector)
    elif not isinstance(container, MutableMapping):
        raise KeyError(selector)
    container[last] = value


@runtime_checkable
class ManifestDocument(Protocol):
    """A parsed manifest the engine can query and edit.

    Implementations own serialization: ``render_specifier`` turns a
    :class:`DependencySpecifier` back into text in the dialect's syntax,
    and ``dumps`` produces the updated file contents.
    """

    path: str
    name_selector: str
    version_selector: str

    def read(self, selector: str, default: Any = None) -> Any: ...

    def write(self, selector: str, value: Any) -> None: ...

    def dumps(self) -> str: ...

    def dependency_sections(self) -> Iterator[tuple[str, str]]:
        """Yield ``(section label, list selector)`` for each dependency list."""
        ...

    def render_specifier(self, spec: DependencySpecifier) -> str: ...


@runtime_checkable
class LockDocument(Protocol):
    """A parsed workspace lock file with a ``package`` list of entries.

    Each entry is a mapping with at least ``name`` and ``version``.
    """

    path: str

    def read(self, selector: str, default: Any = None) -> Any: ...

    def write(self, selector: str, value: Any) -> None: ...

    def dumps(self) -> str: ...
