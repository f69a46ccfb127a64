"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from lazy_cascade.models import DiscoveredPackage
from lazy_cascade.toml import PyProjectManifest, parse_pyproject

ROOT_PYPROJECT = """\
[project]
name = "workspace-root"
version = "0.0.0"

[tool.uv.workspace]
members = ["packages/*"]
"""

CORE_PYPROJECT = """\
[project]
name = "core"
version = "1.0.0"
dependencies = ["requests>=2.0"]
"""

CLI_PYPROJECT = """\
[project]
name = "cli"
version = "1.0.0"
# keep in sync with core
dependencies = [
    "click>=8.0",
    "core>=1.0.0",
]
"""

DOCS_PYPROJECT = """\
[project]
name = "docs"
version = "0.3.0"
dependencies = ["sphinx>=7.0"]
"""

UV_LOCK = """\
version = 1
requires-python = ">=3.10"

[[package]]
name = "cli"
version = "1.0.0"
source = { editable = "packages/cli" }

[[package]]
name = "click"
version = "8.1.7"
source = { registry = "https://pypi.org/simple" }

[[package]]
name = "core"
version = "1.0.0"
source = { editable = "packages/core" }
"""


@pytest.fixture
def sample_manifest() -> PyProjectManifest:
    """A member manifest using every dependency section."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "core==1.0.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0", "core[fast]~=1.0 ; python_version >= '3.11'"]

[dependency-groups]
test = ["testkit", {include-group = "dev"}]
"""
    return parse_pyproject(content, "packages/my-package/pyproject.toml")


@pytest.fixture
def core_cli_packages() -> list[DiscoveredPackage]:
    """Discovered packages for a workspace where cli depends on core."""
    return [
        DiscoveredPackage(path=".", manifest_path="pyproject.toml", manifest_text=ROOT_PYPROJECT),
        DiscoveredPackage(
            path="packages/cli",
            manifest_path="packages/cli/pyproject.toml",
            manifest_text=CLI_PYPROJECT,
        ),
        DiscoveredPackage(
            path="packages/core",
            manifest_path="packages/core/pyproject.toml",
            manifest_text=CORE_PYPROJECT,
        ),
        DiscoveredPackage(
            path="packages/docs",
            manifest_path="packages/docs/pyproject.toml",
            manifest_text=DOCS_PYPROJECT,
        ),
    ]


@pytest.fixture
def uv_lock() -> DiscoveredPackage:
    return DiscoveredPackage(path=".", manifest_path="uv.lock", manifest_text=UV_LOCK)


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """A uv workspace on disk with core, cli and docs members and a uv.lock."""
    (tmp_path / ".git").mkdir()
    (tmp_path / "pyproject.toml").write_text(ROOT_PYPROJECT)
    (tmp_path / "uv.lock").write_text(UV_LOCK)
    for name, content in (
        ("core", CORE_PYPROJECT),
        ("cli", CLI_PYPROJECT),
        ("docs", DOCS_PYPROJECT),
    ):
        package_dir = tmp_path / "packages" / name
        package_dir.mkdir(parents=True)
        (package_dir / "pyproject.toml").write_text(content)
    return tmp_path
