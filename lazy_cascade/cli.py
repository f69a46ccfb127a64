"""CLI entry point for lazy-cascade."""

from __future__ import annotations

import json
from pathlib import Path

import click
import tomlkit
from packaging.utils import canonicalize_name

from lazy_cascade.config import CONFIG_SELECTOR, CascadeConfig, load_config
from lazy_cascade.discovery import LocalWorkspaceReader, discover_workspace
from lazy_cascade.errors import LazyCascadeError
from lazy_cascade.graph import build_graph
from lazy_cascade.logging import configure_logging
from lazy_cascade.models import CascadeResult, Workspace
from lazy_cascade.pipeline import apply_mutations, run_cascade
from lazy_cascade.toml import parse_pyproject
from lazy_cascade.versions import BUMP_POLICIES, BumpPolicy


@click.group()
@click.version_option(package_name="lazy-cascade")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--json-log", is_flag=True, help="Log JSON lines to stderr.")
def cli(verbose: bool, quiet: bool, json_log: bool) -> None:
    """Cascade version bumps through a uv workspace."""
    configure_logging(verbose=verbose, quiet=quiet, json_log=json_log)


@cli.command()
def init() -> None:
    """Add a default [tool.lazy-cascade] table to the root pyproject.toml."""
    root = Path.cwd()

    # Sanity checks
    if not (root / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")

    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        raise click.ClickException("No pyproject.toml found in current directory.")

    doc = tomlkit.parse(pyproject.read_text())
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise click.ClickException(
            "No [tool.uv.workspace] members defined in pyproject.toml.\n"
            "lazy-cascade requires a uv workspace. Example:\n\n"
            "  [tool.uv.workspace]\n"
            '  members = ["packages/*"]'
        )

    tool = doc.setdefault("tool", tomlkit.table())
    if "lazy-cascade" in tool:
        click.echo(f"[{CONFIG_SELECTOR}] already present, nothing to do")
        return

    defaults = CascadeConfig().model_dump(by_alias=True)
    table = tomlkit.table()
    for key, value in defaults.items():
        table[key] = value
    tool["lazy-cascade"] = table
    pyproject.write_text(tomlkit.dumps(doc))

    click.echo(f"✓ Added [{CONFIG_SELECTOR}] to pyproject.toml")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Adjust bump-policy / changelog-path if needed")
    click.echo("  2. Preview a release:")
    click.echo("       lazy-cascade plan --seed <package>=<version>")


def _parse_seed(values: tuple[str, ...]) -> dict[str, str]:
    seeds: dict[str, str] = {}
    for value in values:
        name, sep, version = value.partition("=")
        if not sep or not name.strip() or not version.strip():
            raise click.BadParameter(
                f"expected NAME=VERSION, got {value!r}", param_hint="--seed"
            )
        seeds[canonicalize_name(name.strip())] = version.strip()
    return seeds


def _resolve_bumps(
    workspace: Workspace, names: tuple[str, ...], policy: BumpPolicy
) -> dict[str, str]:
    """Seed each named package with the policy applied to its current version."""
    if not names:
        return {}
    graph = build_graph(
        (p.path, parse_pyproject(p.manifest_text, p.manifest_path))
        for p in workspace.packages
        if p.manifest_text is not None
    )
    seeds: dict[str, str] = {}
    for name in names:
        node = graph.nodes.get(canonicalize_name(name))
        if node is None:
            raise click.BadParameter(f"unknown package {name!r}", param_hint="--bump")
        seeds[node.name] = str(policy(node.current_version))
    return seeds


def _result_json(result: CascadeResult, warnings: list[str]) -> str:
    return json.dumps(
        {
            "versions": result.version_map.as_strings(),
            "files": [c.model_dump(mode="json") for c in result.composite_mutations],
            "changelog": result.changelog_fragments,
            "warnings": warnings,
        },
        indent=2,
    )


def _print_plan(result: CascadeResult, warnings: list[str]) -> None:
    for warning in warnings:
        click.echo(f"Warning: {warning}", err=True)
    if not result.version_map:
        click.echo("Nothing to release.")
        return
    click.echo("Versions:")
    for name, version in result.version_map.as_strings().items():
        click.echo(f"  {name} → {version}")
    click.echo()
    click.echo("Files:")
    for composite in result.composite_mutations:
        click.echo(f"  {composite.target_path}")
        for instruction in composite.instructions:
            click.echo(f"    {instruction.selector} = {instruction.value}")

@cli.command()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root directory.",
)
@click.option("--seed", "seed", multiple=True, metavar="NAME=VERSION", help="Release NAME at VERSION (repeatable).")
@click.option("--bump", "bump", multiple=True, metavar="NAME", help="Release NAME with the bump policy applied (repeatable).")
@click.option(
    "--policy",
    type=click.Choice(sorted(BUMP_POLICIES)),
    default=None,
    help="Bump policy for cascaded packages (default: from config).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON.")
@click.option("--write", is_flag=True, help="Apply the plan to the files in --root.")
def plan(
    root: Path,
    seed: tuple[str, ...],
    bump: tuple[str, ...],
    policy: str | None,
    as_json: bool,
    write: bool,
) -> None:
    """Compute (and optionally apply) the version cascade for a release."""
    reader = LocalWorkspaceReader(root)
    try:
        root_text = reader.read_text("pyproject.toml")
        if root_text is None:
            raise click.ClickException(f"No pyproject.toml found in {root}.")
        config = load_config(parse_pyproject(root_text))
        if policy is not None:
            config = config.model_copy(update={"bump_policy": policy})

        workspace = discover_workspace(reader, lock_file=config.lock_file or None)
        seeds = {**_resolve_bumps(workspace, bump, config.policy), **_parse_seed(seed)}
        result = run_cascade(
            workspace.packages, seeds, lock_file=workspace.lock_file, config=config
        )
        warnings = [*workspace.warnings, *result.warnings]

        if write:
            current: dict[str, str] = {}
            for composite in result.composite_mutations:
                text = reader.read_text(composite.target_path)
                if text is not None:
                    current[composite.target_path] = text
            updated = apply_mutations(current, result.composite_mutations, result.version_map)
            for path, text in updated.items():
                (root / path).write_text(text, encoding="utf-8")
    except LazyCascadeError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(_result_json(result, warnings))
    else:
        _print_plan(result, warnings)
        if write:
            click.echo()
            click.echo(f"✓ Wrote {len(result.composite_mutations)} files")
