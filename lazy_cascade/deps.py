"""Dependency specifier handling.

Parses dependency strings from a manifest's dependency lists into
:class:`DependencySpecifier` values and computes their re-pinned form.
PEP 508 strings are parsed with :class:`packaging.requirements.Requirement`.
Poetry-style ``^`` and ``~`` constraints, which packaging rejects, go
through a lenient fallback so that any workspace dependency can still be
found and updated.
"""

from __future__ import annotations

import re

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .models import DependencySpecifier, SpecOperator

# The package name is the longest leading run of identifier characters.
_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")
_EXTRAS_RE = re.compile(r"^\s*\[([^\]]*)\]")
_SINGLE_CONSTRAINT_RE = re.compile(r"^(==|>=|\^|~=|~)\s*([^\s,]+)$")

_OPERATORS = {
    "==": SpecOperator.EXACT,
    ">=": SpecOperator.AT_LEAST,
    "^": SpecOperator.COMPATIBLE,
    "~=": SpecOperator.APPROX_EQUAL,
    "~": SpecOperator.APPROX_EQUAL,
}


def dep_canonical_name(dep_str: str) -> str | None:
    """Extract the canonical package name from a dependency string.

    Names are normalized per PEP 503 (lowercase, runs of ``-_.`` become a
    single hyphen). Returns None if the string has no leading name.

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
        "core^1.0" → "core"
    """
    try:
        return canonicalize_name(Requirement(dep_str).name)
    except InvalidRequirement:
        match = _NAME_RE.match(dep_str)
        return canonicalize_name(match.group(1)) if match else None


def _from_requirement(req: Requirement, dep_str: str) -> DependencySpecifier:
    specifiers = list(req.specifier)
    if req.url:
        operator, version = SpecOperator.OTHER, f" @ {req.url}"
    elif not specifiers:
        operator, version = SpecOperator.UNCONSTRAINED, ""
    elif len(specifiers) == 1 and specifiers[0].operator in _OPERATORS:
        operator, version = _OPERATORS[specifiers[0].operator], specifiers[0].version
    else:
        operator, version = SpecOperator.OTHER, str(req.specifier)

    # Keep the marker as written; str(req.marker) would requote it.
    marker = dep_str.partition(";")[2].strip() if req.marker is not None else ""
    return DependencySpecifier(
        name=req.name,
        extras=tuple(sorted(req.extras)),
        operator=operator,
        version=version,
        marker=marker,
    )


def _parse_lenient(dep_str: str) -> DependencySpecifier | None:
    match = _NAME_RE.match(dep_str)
    if not match:
        return None
    rest = dep_str[match.end() :]

    extras: tuple[str, ...] = ()
    extras_match = _EXTRAS_RE.match(rest)
    if extras_match:
        extras = tuple(sorted(e.strip() for e in extras_match.group(1).split(",") if e.strip()))
        rest = rest[extras_match.end() :]

    constraint, _, marker = rest.partition(";")
    constraint = constraint.strip()
    if constraint.startswith("(") and constraint.endswith(")"):
        constraint = constraint[1:-1].strip()

    single = _SINGLE_CONSTRAINT_RE.match(constraint)
    if not constraint:
        operator, version = SpecOperator.UNCONSTRAINED, ""
    elif single:
        operator, version = _OPERATORS[single.group(1)], single.group(2)
    else:
        operator, version = SpecOperator.OTHER, constraint

    return DependencySpecifier(
        name=match.group(1),
        extras=extras,
        operator=operator,
        version=version,
        marker=marker.strip(),
    )


def parse_specifier(dep_str: str) -> DependencySpecifier | None:
    """Split a dependency string into name, extras, constraint and marker.

    Only a single ``==``, ``>=``, ``^``, ``~=`` or ``~`` constraint is
    recognised as a known operator style. Anything else with a version
    part (ranges, ``<``, ``!=``, URLs) is reported as ``OTHER``. Extras
    are returned sorted.

    Returns None if the string has no leading package name.
    """
    try:
        req = Requirement(dep_str)
    except InvalidRequirement:
        return _parse_lenient(dep_str)
    return _from_requirement(req, dep_str)


def repin(spec: DependencySpecifier, version: str) -> DependencySpecifier:
    """Point ``spec`` at ``version``, keeping its operator style.

    Unconstrained and unsupported constraints become exact pins.

    Examples:
        core>=1.0 → core>=1.1.0
        core → core==1.1.0
        core>=1,<2 → core==1.1.0
    """
    operator = spec.operator
    if operator in (SpecOperator.UNCONSTRAINED, SpecOperator.OTHER):
        operator = SpecOperator.EXACT
    return spec.model_copy(update={"operator": operator, "version": version})
