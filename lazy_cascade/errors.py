"""Error types for lazy-cascade.

Every fatal problem with the workspace (malformed or missing manifests,
ambiguous package names, dependency cycles, conflicting edits) is reported
as a :class:`ConfigurationError`. Transport failures from the workspace
reader are not wrapped and propagate as-is.
"""

from __future__ import annotations

from collections.abc import Iterable


class LazyCascadeError(Exception):
    """Base class for all errors raised by lazy-cascade."""


class ConfigurationError(LazyCascadeError):
    """The workspace or one of its manifests is malformed or ambiguous.

    Attributes:
        message: Human-readable description of the problem.
        path: Workspace-relative path of the offending file, if known.
        names: Package names involved (e.g. the members of a cycle).
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        names: Iterable[str] = (),
    ) -> None:
        self.message = message
        self.path = path
        self.names = tuple(names)
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message
