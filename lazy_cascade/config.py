"""Configuration from the ``[tool.lazy-cascade]`` table of the root pyproject.toml.

Example::

    [tool.lazy-cascade]
    bump-policy = "minor"
    changelog-path = "CHANGES.md"
    lock-file = "uv.lock"

All keys are optional.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .manifest import ManifestDocument
from .versions import BumpPolicy, get_bump_policy

CONFIG_SELECTOR = "tool.lazy-cascade"


class CascadeConfig(BaseModel):
    """Settings for a cascade run.

    Attributes:
        bump_policy: How cascaded (non-seed) packages are bumped.
        changelog_path: Changelog file name, relative to each package.
        lock_file: Shared lock file, relative to the workspace root.
            Set to an empty string to skip lock file updates.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    bump_policy: Literal["patch", "minor", "major"] = Field(
        default="patch", alias="bump-policy"
    )
    changelog_path: str = Field(default="CHANGELOG.md", alias="changelog-path")
    lock_file: str = Field(default="uv.lock", alias="lock-file")

    @property
    def policy(self) -> BumpPolicy:
        return get_bump_policy(self.bump_policy)


def load_config(root_manifest: ManifestDocument) -> CascadeConfig:
    """Read CascadeConfig from a parsed root manifest.

    Raises:
        ConfigurationError: If the table has unknown keys or bad values.
    """
    table = root_manifest.read(CONFIG_SELECTOR) or {}
    if not isinstance(table, dict):
        raise ConfigurationError(
            f"[{CONFIG_SELECTOR}] must be a table", path=root_manifest.path
        )
    try:
        return CascadeConfig.model_validate(table)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid [{CONFIG_SELECTOR}] configuration: {exc}",
            path=root_manifest.path,
        ) from exc
