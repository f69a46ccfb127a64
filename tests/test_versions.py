"""Tests for lazy_cascade.versions."""

from __future__ import annotations

import pytest
import semver

from lazy_cascade.versions import (
    VersionMap,
    bump_major,
    bump_minor,
    bump_patch,
    get_bump_policy,
    parse_version,
)


class TestParseVersion:
    def test_full_version(self) -> None:
        assert parse_version("1.2.3") == semver.Version(1, 2, 3)

    def test_pads_short_versions(self) -> None:
        assert parse_version("1") == semver.Version(1, 0, 0)
        assert parse_version("1.2") == semver.Version(1, 2, 0)

    def test_prerelease(self) -> None:
        version = parse_version("1.2.3-rc.1")
        assert version.prerelease == "rc.1"

    def test_strips_whitespace(self) -> None:
        assert parse_version(" 2.0.0\n") == semver.Version(2, 0, 0)

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_version("not-a-version")


class TestBumpPolicies:
    def test_patch(self) -> None:
        assert str(bump_patch(semver.Version(1, 2, 3))) == "1.2.4"

    def test_minor(self) -> None:
        assert str(bump_minor(semver.Version(1, 2, 3))) == "1.3.0"

    def test_major(self) -> None:
        assert str(bump_major(semver.Version(1, 2, 3))) == "2.0.0"

    def test_lookup_by_name(self) -> None:
        assert get_bump_policy("patch") is bump_patch
        assert get_bump_policy("minor") is bump_minor
        assert get_bump_policy("major") is bump_major

    def test_unknown_policy(self) -> None:
        with pytest.raises(KeyError):
            get_bump_policy("calver")


class TestVersionMap:
    def test_assign_parses_strings(self) -> None:
        versions = VersionMap()
        versions.assign("core", "1.1")
        assert versions["core"] == semver.Version(1, 1, 0)

    def test_initial_mapping(self) -> None:
        versions = VersionMap({"core": "1.1.0", "cli": semver.Version(1, 0, 1)})
        assert len(versions) == 2
        assert "cli" in versions
        assert "docs" not in versions

    def test_iterates_in_sorted_order(self) -> None:
        versions = VersionMap({"zeta": "1.0.0", "alpha": "1.0.0", "mid": "1.0.0"})
        assert list(versions) == ["alpha", "mid", "zeta"]

    def test_reassignment_raises(self) -> None:
        versions = VersionMap({"core": "1.1.0"})
        with pytest.raises(RuntimeError, match="already assigned"):
            versions.assign("core", "1.2.0")
        assert str(versions["core"]) == "1.1.0"

    def test_invalid_version_raises(self) -> None:
        with pytest.raises(ValueError):
            VersionMap({"core": "banana"})

    def test_as_strings(self) -> None:
        versions = VersionMap({"core": "1.1.0", "cli": "1.0.1"})
        assert versions.as_strings() == {"cli": "1.0.1", "core": "1.1.0"}
        assert list(versions.as_strings()) == ["cli", "core"]

    def test_repr(self) -> None:
        versions = VersionMap({"core": "1.1.0", "cli": "1.0.1"})
        assert repr(versions) == "VersionMap(cli=1.0.1, core=1.1.0)"
