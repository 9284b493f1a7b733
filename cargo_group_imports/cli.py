#!/usr/bin/env python3
"""Command-line interface for cargo-group-imports using Click."""

from concurrent.futures import ThreadPoolExecutor
from importlib import metadata
import logging
from pathlib import Path
import sys
import time
from typing import Optional

import click
from cargo_group_imports import core
from cargo_group_imports import workspace
from cargo_group_imports.errors import GroupImportsError


try:
    VERSION = f"cargo-group-imports {metadata.version('cargo-group-imports')}"
except metadata.PackageNotFoundError:
    VERSION = "cargo-group-imports"

_DIFF_COLORS = {"+": "green", "-": "red"}


def _style_diff(diff: str) -> str:
    lines = []
    for line in diff.splitlines():
        if line == core.SKIP_MARKER:
            lines.append(click.style(line, dim=True))
        else:
            lines.append(click.style(line, fg=_DIFF_COLORS.get(line[:1])))
    return "\n".join(lines)


def _use_color(color: str) -> bool:
    if color == "auto":
        return sys.stderr.isatty()
    return color == "always"


def _handle_workspace(
    path: Path, fix: bool, rustfmt: Optional[bool], jobs: Optional[int], color: str
) -> int:
    """Group imports in every source file of a workspace.

    Args:
        path: Workspace root, holding the root Cargo.toml.
        fix: If True, rewrite files in place.
        rustfmt: Run rustfmt over changed files; None defers to the manifest.
        jobs: Number of worker threads; None lets the executor decide.
        color: One of 'auto', 'always' or 'never'.
    Returns:
        0 if nothing needs changing (or changes were applied), 1 if changes
        are required, 2 if an error occurred.
    """
    start = time.monotonic()
    try:
        packages = workspace.find_workspace_packages(path)
        config = workspace.read_config(path)
    except GroupImportsError as exc:
        logging.error("%s", exc)
        return 2

    workspace_packages = frozenset(package.name for package in packages)
    logging.debug("Workspace packages: %s", sorted(workspace_packages))
    if rustfmt is None:
        rustfmt = config.rustfmt
    formatter = core.RustfmtFormatter(path, edition=config.edition) if rustfmt else None

    file_paths = []
    for package in packages:
        logging.info("Processing %s", package.name)
        for file_path in core.iter_rust_files(package.root, config.exclude):
            file_paths.append((file_path, package.name))

    changed = 0
    failed = 0
    styled = _use_color(color)
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        futures = [
            (file_path, executor.submit(
                core.process_file, file_path, package_name, workspace_packages,
                apply=fix, formatter=formatter,
            ))
            for file_path, package_name in file_paths
        ]
        for file_path, future in futures:
            try:
                modified, diff = future.result()
            except GroupImportsError as exc:
                logging.error("[%s] ERROR: %s", file_path, exc)
                failed += 1
                continue
            if not modified:
                continue
            changed += 1
            if fix:
                logging.info("Wrote %s", file_path)
            else:
                logging.warning("Diff in %s:\n%s", file_path, _style_diff(diff) if styled else diff)

    logging.info(
        "Processed %d files in %.2fs, %d changed", len(file_paths), time.monotonic() - start, changed
    )
    if failed:
        return 2
    if changed and not fix:
        logging.warning("Not all files are formatted. Rerun with --fix to attempt to fix the issues")
        return 1
    return 0


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Increase verbosity.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.version_option(version=VERSION, prog_name="cargo-group-imports CLI")
def cli(verbose: bool, quiet: bool) -> None:
    """Group imports in Cargo workspace source files."""
    # Configure logging only once
    if not logging.getLogger().handlers:
        if quiet:
            logging.basicConfig(level=logging.ERROR, format="%(message)s")
        else:
            logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")


@cli.command(
    "group-imports",
    help=(
        "Group imports in workspace source files: module declarations, std, "
        "external crates, workspace crates, then the current crate.\n\n"
        "By default, displays a diff without applying changes. Exits with "
        "code 0 when no changes are necessary."
    ),
)
@click.argument(
    "workspace_path",
    metavar="WORKSPACE",
    default=".",
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
)
@click.option("--fix", is_flag=True, help="Apply changes.")
@click.option(
    "--rustfmt/--no-rustfmt",
    default=None,
    help="Run rustfmt over changed files (default: on, or the manifest setting).",
)
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=None, help="Number of worker threads.")
@click.option(
    "--color",
    type=click.Choice(["auto", "always", "never"]),
    default="auto",
    show_default=True,
    help="Colorize diffs.",
)
def group_imports(workspace_path: str, fix: bool, rustfmt: Optional[bool], jobs: Optional[int], color: str) -> None:
    exit_code = _handle_workspace(Path(workspace_path), fix, rustfmt, jobs, color)
    sys.exit(exit_code)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    cli()
