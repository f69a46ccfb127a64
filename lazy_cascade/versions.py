"""Version parsing, bump policies and the per-run version map.

Versions are handled as ``semver.Version`` objects. Incomplete version
strings are padded (``"1.0"`` → ``"1.0.0"``) so that packages declaring
short versions in their pyproject.toml still take part in a cascade.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping

import semver

BumpPolicy = Callable[[semver.Version], semver.Version]


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3-rc.1" → "1.2.3-rc.1"

    Raises:
        ValueError: If the string is not a valid semantic version.
    """
    return semver.Version.parse(version_str.strip(), optional_minor_and_patch=True)


def bump_patch(version: semver.Version) -> semver.Version:
    """Smallest forward-compatible increment: "1.2.3" → "1.2.4"."""
    return version.bump_patch()


def bump_minor(version: semver.Version) -> semver.Version:
    """Increment the minor version: "1.2.3" → "1.3.0"."""
    return version.bump_minor()


def bump_major(version: semver.Version) -> semver.Version:
    """Increment the major version: "1.2.3" → "2.0.0"."""
    return version.bump_major()


BUMP_POLICIES: dict[str, BumpPolicy] = {
    "patch": bump_patch,
    "minor": bump_minor,
    "major": bump_major,
}


def get_bump_policy(name: str) -> BumpPolicy:
    """Look up a bump policy by its configuration name.

    Raises:
        KeyError: If ``name`` is not one of ``BUMP_POLICIES``.
    """
    return BUMP_POLICIES[name]


class VersionMap(Mapping[str, semver.Version]):
    """Package name → newly assigned version for one cascade run.

    The map is append-only: a name may be assigned once. Iteration is
    always in sorted name order so that everything derived from the map
    is deterministic.
    """

    def __init__(self, initial: Mapping[str, semver.Version | str] | None = None) -> None:
        self._versions: dict[str, semver.Version] = {}
        for name, version in (initial or {}).items():
            self.assign(name, version)

    def assign(self, name: str, version: semver.Version | str) -> None:
        """Record the new version for ``name``.

        Raises:
            RuntimeError: If ``name`` was already assigned in this run.
        """
        if name in self._versions:
            raise RuntimeError(
                f"Version for {name} already assigned ({self._versions[name]})"
            )
        if isinstance(version, str):
            version = parse_version(version)
        self._versions[name] = version

    def __getitem__(self, name: str) -> semver.Version:
        return self._versions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._versions))

    def __len__(self) -> int:
        return len(self._versions)

    def __repr__(self) -> str:
        items = ", ".join(f"{name}={self._versions[name]}" for name in self)
        return f"VersionMap({items})"

    def as_strings(self) -> dict[str, str]:
        """Return a plain ``{name: "x.y.z"}`` dict, sorted by name."""
        return {name: str(self._versions[name]) for name in self}
