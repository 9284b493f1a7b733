"""Rules module for cargo-group-imports.

This module classifies collected statements into the five import groups and
defines the order in which the groups are written out:

1. module declarations and `self::` re-exports
2. the standard library
3. external crates
4. other crates of the same workspace
5. the current crate (`crate::`, `super::` or the crate's own name)
"""

from typing import AbstractSet
from typing import Dict
from typing import Iterable
from typing import List

from cargo_group_imports.parser import ImportStatement

MODULE = "module"
STD = "std"
EXTERNAL = "external"
WORKSPACE = "workspace"
CRATE = "crate"

CATEGORY_ORDER = {
    MODULE: 0,
    STD: 1,
    EXTERNAL: 2,
    WORKSPACE: 3,
    CRATE: 4,
}

STD_ROOT = "std"
CRATE_ROOTS = frozenset({"crate", "super"})
SELF_ROOT = "self"


def ordered_categories() -> List[str]:
    """Return the categories in output order."""
    return sorted(CATEGORY_ORDER, key=CATEGORY_ORDER.__getitem__)


def classify_statement(
    statement: ImportStatement,
    package_name: str,
    workspace_packages: AbstractSet[str],
    module_names: AbstractSet[str],
) -> str:
    """Classify a statement by the root of the path it names.

    Args:
        statement: The statement to classify.
        package_name: Name of the crate the file belongs to.
        workspace_packages: Names of all crates in the workspace.
        module_names: Names of the modules declared in the file.

    Returns:
        One of the category constants of this module.
    """
    root = statement.root
    if root == STD_ROOT:
        return STD
    # Checked before module names: `crate` and the package name are exact.
    if root == package_name or root in CRATE_ROOTS:
        return CRATE
    if root in module_names or statement.is_module_decl or root == SELF_ROOT:
        return MODULE
    if root in workspace_packages:
        return WORKSPACE
    return EXTERNAL


def group_statements(
    statements: Iterable[ImportStatement],
    package_name: str,
    workspace_packages: AbstractSet[str],
    module_names: AbstractSet[str],
) -> Dict[str, List[ImportStatement]]:
    """Split statements into categories, keeping their original order.

    Returns:
        A dictionary mapping every category, in output order, to its list of
        statements. Categories without statements map to an empty list.
    """
    grouped: Dict[str, List[ImportStatement]] = {category: [] for category in ordered_categories()}
    for statement in statements:
        category = classify_statement(statement, package_name, workspace_packages, module_names)
        grouped[category].append(statement)
    return grouped
