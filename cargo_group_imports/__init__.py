"""Top-level package for cargo-group-imports.

This package exposes the core API for grouping `use` and `mod` statements in
the Rust sources of a Cargo workspace.
"""

from cargo_group_imports.core import format_diff
from cargo_group_imports.core import iter_rust_files
from cargo_group_imports.core import process_file
from cargo_group_imports.core import process_source
from cargo_group_imports.core import render_block
from cargo_group_imports.core import rewrite_imports
from cargo_group_imports.core import RustfmtFormatter
from cargo_group_imports.parser import collect_statements
from cargo_group_imports.parser import path_root
from cargo_group_imports.rules import classify_statement
from cargo_group_imports.rules import group_statements
from cargo_group_imports.workspace import find_workspace_packages


__all__ = [
    "collect_statements",
    "path_root",
    "classify_statement",
    "group_statements",
    "render_block",
    "rewrite_imports",
    "process_source",
    "process_file",
    "format_diff",
    "RustfmtFormatter",
    "iter_rust_files",
    "find_workspace_packages",
]
