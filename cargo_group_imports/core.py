#!/usr/bin/env python3
"""Core utilities for cargo-group-imports. This module
renders grouped `use` and `mod` statements, splices them back into the
source in place of the original statements, and checks or rewrites Rust
files. It also runs the optional rustfmt pass and lists the source files of
a package.
"""
from __future__ import annotations
import difflib
import fnmatch
import logging
import os
from pathlib import Path
import re
import shutil
import subprocess
import tempfile
from typing import AbstractSet
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Set
from typing import Tuple

from cargo_group_imports.errors import AmbiguousStatementError
from cargo_group_imports.errors import FileAccessError
from cargo_group_imports.errors import FormatterError
from cargo_group_imports.errors import ParseError
from cargo_group_imports.parser import ImportStatement
from cargo_group_imports.parser import collect_statements
from cargo_group_imports.rules import CATEGORY_ORDER
from cargo_group_imports.rules import group_statements

LOG = logging.getLogger(__name__)

DIFF_CONTEXT = 5
SKIP_MARKER = "..."
BUILD_OUTPUT_TAG = "CACHEDIR.TAG"

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? ")

Grouping = Dict[str, List[ImportStatement]]
Formatter = Callable[[str], str]


def render_block(grouped: Grouping) -> str:
    """Render grouped statements as one block, with a blank line between groups."""
    chunks = []
    for category in sorted(grouped, key=CATEGORY_ORDER.__getitem__):
        statements = grouped[category]
        if statements:
            chunks.append("\n".join(statement.text for statement in statements))
    return "\n\n".join(chunks)


def _split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def owned_lines(grouped: Grouping) -> Set[int]:
    """Return the 0-based line numbers covered by the grouped statements.

    Raises:
        AmbiguousStatementError: If two statements claim the same line.
    """
    rows: Set[int] = set()
    for statements in grouped.values():
        for statement in statements:
            span = range(statement.start[0], statement.end[0] + 1)
            if not rows.isdisjoint(span):
                raise AmbiguousStatementError(statement.start[0] + 1)
            rows.update(span)
    return rows


def rewrite_imports(source: str, grouped: Grouping) -> str:
    """Replace the lines of the grouped statements with the rendered block.

    The block takes the place of the first statement line and is followed by
    one blank line unless it ends the file. A blank line directly after a
    removed line is dropped as well. Everything else is kept verbatim.
    """
    rows = owned_lines(grouped)
    if not rows:
        return source

    first = min(rows)
    block = render_block(grouped)
    new_lines: List[str] = []
    separator: Optional[int] = None
    for index, line in enumerate(_split_lines(source)):
        if index == first:
            new_lines.extend((block, ""))
            separator = len(new_lines) - 1
        elif index in rows:
            continue
        elif not line.strip() and index - 1 in rows:
            continue
        else:
            new_lines.append(line)

    if separator == len(new_lines) - 1:
        new_lines.pop()
    return "\n".join(new_lines) + "\n"


def process_source(source: str, package_name: str, workspace_packages: AbstractSet[str]) -> str:
    """Return ``source`` with its imports grouped.

    Raises:
        ParseError: If the source cannot be parsed.
        AmbiguousStatementError: If a statement shares a line with other code.
    """
    collected = collect_statements(source)
    grouped = group_statements(
        collected.statements, package_name, workspace_packages, collected.module_names
    )
    LOG.debug("Grouped statements: %s", {category: len(items) for category, items in grouped.items()})
    return rewrite_imports(source, grouped)


def format_diff(original: str, modified: str, context: int = DIFF_CONTEXT) -> str:
    """Return a line diff of two texts.

    Unchanged stretches longer than the context are replaced by a ``...``
    line.
    """
    old_lines = original.splitlines()
    diff = difflib.unified_diff(old_lines, modified.splitlines(), n=context, lineterm="")
    output: List[str] = []
    shown = 0
    # Skip the ---/+++ file headers.
    for line in list(diff)[2:]:
        match = _HUNK_HEADER.match(line)
        if match is None:
            output.append(line)
            continue
        start = int(match.group(1))
        length = int(match.group(2) or 1)
        if start > shown + 1:
            output.append(SKIP_MARKER)
        shown = start + length - 1 if length else start
    if output and shown < len(old_lines):
        output.append(SKIP_MARKER)
    return "\n".join(output)


class RustfmtFormatter:
    """Format source text with rustfmt, reading stdin and writing stdout.

    rustfmt runs from the workspace directory so that it picks up the
    workspace's rustfmt.toml.
    """

    def __init__(self, workspace: Path, edition: Optional[str] = None) -> None:
        self.workspace = Path(workspace)
        self.edition = edition

    def command(self) -> List[str]:
        cmd = ["rustfmt"]
        if self.edition:
            cmd.extend(["--edition", self.edition])
        return cmd

    def __call__(self, source: str) -> str:
        try:
            result = subprocess.run(
                self.command(),
                input=source.encode("utf-8"),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(self.workspace),
                check=False,
            )
        except OSError as exc:
            raise FormatterError(f"Could not run rustfmt: {exc}") from exc
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", "replace").strip()
            raise FormatterError(f"rustfmt exited with status {result.returncode}: {stderr}")
        try:
            return result.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatterError(f"rustfmt produced invalid UTF-8: {exc}") from exc


def _line_ending(text: str) -> str:
    """Return the line ending used by the first line of ``text``."""
    end = text.find("\n")
    if end > 0 and text[end - 1] == "\r":
        return "\r\n"
    return "\n"


def _write_file(path: Path, text: str) -> None:
    # Write next to the target, then swap it in, so the file is never left
    # half written.
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as tmp:
            tmp.write(text)
        shutil.copymode(str(path), tmp_name)
        os.replace(tmp_name, str(path))
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def process_file(
    file_path: str | Path,
    package_name: str,
    workspace_packages: AbstractSet[str],
    apply: bool = False,
    formatter: Optional[Formatter] = None,
) -> Tuple[bool, str]:
    """Group the imports of a single Rust file.

    Args:
        file_path: The file to process.
        package_name: Name of the crate the file belongs to, with `-`
            replaced by `_`.
        workspace_packages: Names of all crates in the workspace.
        apply: Write the result back to the file.
        formatter: Optional callable run over the rewritten text before it is
            compared with the original.

    Returns:
        ``(modified, diff)``, where ``modified`` tells whether the file was
        (or, without ``apply``, would be) changed, and ``diff`` holds the
        diff for a dry run that found changes and is empty otherwise.
        A file whose first line ends in CRLF is written back with CRLF line
        endings throughout.

    Raises:
        GroupImportsError: One of its subclasses; the file is left untouched.
    """
    path_obj = Path(file_path)
    try:
        with open(path_obj, encoding="utf-8", newline="") as f:
            raw = f.read()
    except UnicodeDecodeError as exc:
        raise ParseError(f"File is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise FileAccessError(f"Could not read file: {exc}") from exc

    newline = _line_ending(raw)
    source = raw.replace(newline, "\n") if newline != "\n" else raw
    new_source = process_source(source, package_name, workspace_packages)
    # Only run the formatter when something moved.
    if new_source != source and formatter is not None:
        new_source = formatter(new_source)
    if newline != "\n":
        new_source = new_source.replace("\n", newline)

    if new_source == raw:
        return False, ""
    if not apply:
        return True, format_diff(raw, new_source)

    try:
        _write_file(path_obj, new_source)
    except OSError as exc:
        raise FileAccessError(f"Could not write file: {exc}") from exc
    return True, ""


def iter_rust_files(root: str | Path, exclude: Optional[Iterable[str]] = None) -> Iterator[Path]:
    """Yield the Rust sources of the package rooted at ``root``.

    Only `src/` is searched, so that a workspace root package does not pick
    up its members' sources; directories holding a CACHEDIR.TAG (build
    output) are skipped. `build.rs` is included when present. Paths matching
    one of the ``exclude`` glob patterns, relative to ``root``, are left out.
    """
    root_path = Path(root)
    patterns = list(exclude or [])
    candidates: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root_path / "src"):
        dirnames[:] = sorted(d for d in dirnames if not (Path(dirpath) / d / BUILD_OUTPUT_TAG).exists())
        for name in sorted(filenames):
            if name.endswith(".rs"):
                candidates.append(Path(dirpath) / name)
    build = root_path / "build.rs"
    if build.is_file():
        candidates.append(build)

    for path in candidates:
        relative = path.relative_to(root_path).as_posix()
        if any(fnmatch.fnmatch(relative, pattern) for pattern in patterns):
            continue
        yield path
