"""Tests for lazy_cascade.deps."""

from __future__ import annotations

import pytest

from lazy_cascade.deps import dep_canonical_name, parse_specifier, repin
from lazy_cascade.models import SpecOperator


class TestDepCanonicalName:
    def test_simple_name(self) -> None:
        assert dep_canonical_name("requests") == "requests"

    def test_with_version_spec(self) -> None:
        assert dep_canonical_name("requests>=2.0") == "requests"

    def test_with_version_bound(self) -> None:
        assert dep_canonical_name("requests>=2.0,<3.0") == "requests"

    def test_with_extras(self) -> None:
        assert dep_canonical_name("requests[security]>=2.0") == "requests"

    def test_normalizes_underscores(self) -> None:
        assert dep_canonical_name("my_package>=1.0") == "my-package"

    def test_normalizes_case(self) -> None:
        assert dep_canonical_name("MyPackage>=1.0") == "mypackage"

    def test_poetry_caret(self) -> None:
        assert dep_canonical_name("core^1.0.0") == "core"

    def test_no_name(self) -> None:
        assert dep_canonical_name(">=1.0") is None
        assert dep_canonical_name("") is None


class TestParseSpecifier:
    @pytest.mark.parametrize(
        ("dep_str", "operator", "version"),
        [
            ("core==1.0.0", SpecOperator.EXACT, "1.0.0"),
            ("core>=1.0.0", SpecOperator.AT_LEAST, "1.0.0"),
            ("core^1.0.0", SpecOperator.COMPATIBLE, "1.0.0"),
            ("core~=1.0", SpecOperator.APPROX_EQUAL, "1.0"),
            ("core~1.0", SpecOperator.APPROX_EQUAL, "1.0"),
            ("core >= 1.0.0", SpecOperator.AT_LEAST, "1.0.0"),
            ("core", SpecOperator.UNCONSTRAINED, ""),
            ("core<2", SpecOperator.OTHER, "<2"),
        ],
    )
    def test_operator_styles(
        self, dep_str: str, operator: SpecOperator, version: str
    ) -> None:
        spec = parse_specifier(dep_str)
        assert spec is not None
        assert spec.name == "core"
        assert spec.operator is operator
        assert spec.version == version

    def test_extras_and_marker(self) -> None:
        spec = parse_specifier("Core_Lib[b, a]>=1.0 ; python_version >= '3.11'")
        assert spec is not None
        assert spec.name == "Core_Lib"
        assert spec.extras == ("a", "b")
        assert spec.operator is SpecOperator.AT_LEAST
        assert spec.version == "1.0"
        assert spec.marker == "python_version >= '3.11'"

    def test_version_range_is_other(self) -> None:
        spec = parse_specifier("core>=1.0,<2.0")
        assert spec is not None
        assert spec.operator is SpecOperator.OTHER
        assert set(spec.version.split(",")) == {">=1.0", "<2.0"}

    def test_url_is_other(self) -> None:
        spec = parse_specifier("core @ https://example.com/core-1.0.0.tar.gz")
        assert spec is not None
        assert spec.name == "core"
        assert spec.operator is SpecOperator.OTHER

    def test_marker_kept_as_written(self) -> None:
        spec = parse_specifier("core>=1.0; sys_platform == 'linux'")
        assert spec is not None
        assert spec.marker == "sys_platform == 'linux'"

    def test_poetry_operators_with_extras(self) -> None:
        spec = parse_specifier("core[z,a]^1.2 ; python_version >= '3.11'")
        assert spec is not None
        assert spec.name == "core"
        assert spec.extras == ("a", "z")
        assert spec.operator is SpecOperator.COMPATIBLE
        assert spec.version == "1.2"
        assert spec.marker == "python_version >= '3.11'"

    def test_parenthesized_constraint(self) -> None:
        spec = parse_specifier("core (>=1.0)")
        assert spec is not None
        assert spec.operator is SpecOperator.AT_LEAST
        assert spec.version == "1.0"

    def test_no_name(self) -> None:
        assert parse_specifier("==1.0") is None


class TestRepin:
    def test_keeps_operator(self) -> None:
        spec = parse_specifier("core>=1.0.0")
        assert spec is not None
        repinned = repin(spec, "1.1.0")
        assert repinned.operator is SpecOperator.AT_LEAST
        assert repinned.version == "1.1.0"

    def test_unconstrained_becomes_exact(self) -> None:
        spec = parse_specifier("core")
        assert spec is not None
        assert repin(spec, "1.1.0").operator is SpecOperator.EXACT

    def test_unknown_operator_becomes_exact(self) -> None:
        spec = parse_specifier("core>=1,<2")
        assert spec is not None
        repinned = repin(spec, "1.1.0")
        assert repinned.operator is SpecOperator.EXACT
        assert repinned.version == "1.1.0"

    def test_keeps_extras_and_marker(self) -> None:
        spec = parse_specifier("core[fast]~=1.0 ; sys_platform == 'linux'")
        assert spec is not None
        repinned = repin(spec, "1.1.0")
        assert repinned.extras == ("fast",)
        assert repinned.marker == "sys_platform == 'linux'"
