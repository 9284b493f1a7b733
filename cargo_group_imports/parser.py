"""Parser module for cargo-group-imports.

This module parses Rust source with tree-sitter and extracts the top-level
`use` declarations and bodiless `mod` declarations, together with the
comments and attributes written directly above them.
"""

import logging
from typing import FrozenSet
from typing import List
from typing import NamedTuple
from typing import Set
from typing import Tuple

import tree_sitter_rust
from tree_sitter import Language
from tree_sitter import Node
from tree_sitter import Parser
from tree_sitter import Tree

from cargo_group_imports.errors import AmbiguousStatementError
from cargo_group_imports.errors import ParseError

LOG = logging.getLogger(__name__)

RUST_LANGUAGE = Language(tree_sitter_rust.language())

PATH_SEPARATOR = "::"
# Argument shapes whose text starts with the imported path.
PATH_KINDS = frozenset({"identifier", "scoped_identifier", "use_wildcard", "scoped_use_list"})
TRIVIA_KINDS = frozenset({"line_comment", "attribute_item"})
MODULE_DOC_PREFIX = "//!"


class ImportStatement(NamedTuple):
    """A `use` or `mod` statement with its attached comments and attributes.

    ``start`` and ``end`` are 0-based ``(row, column)`` points; ``start``
    is the first attached comment or attribute when there is one.
    """

    start: Tuple[int, int]
    end: Tuple[int, int]
    text: str
    root: str
    is_module_decl: bool


class CollectedStatements(NamedTuple):
    statements: List[ImportStatement]
    module_names: FrozenSet[str]
    macro_names: FrozenSet[str]


def path_root(path: str) -> str:
    """Return the first non-empty segment of a `::` separated path.

    A leading `::` (as in `::std::io`) produces an empty first segment,
    which is skipped.
    """
    for segment in path.split(PATH_SEPARATOR):
        segment = segment.strip()
        if segment:
            return segment
    return ""


def parse_source(source: str) -> Tuple[Tree, bytes]:
    """Parse Rust source into a tree-sitter tree.

    Raises:
        ParseError: If the source contains syntax errors.
    """
    data = source.encode("utf-8")
    tree = Parser(RUST_LANGUAGE).parse(data)
    if tree.root_node.has_error:
        raise ParseError(f"syntax error near line {_first_error_line(tree.root_node)}")
    return tree, data


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed(node.children))
    return root.start_point[0] + 1


def _text(node: Node, data: bytes) -> str:
    return data[node.start_byte:node.end_byte].decode("utf-8")


def _starts_line(node: Node, data: bytes) -> bool:
    """Whether nothing but whitespace precedes the node on its first line."""
    line_start = node.start_byte - node.start_point[1]
    return not data[line_start:node.start_byte].strip()


def _statement_root(node: Node, data: bytes) -> str:
    # TODO: handle `use_as_clause` and bare `use_list` arguments; they
    # currently get an empty root and are grouped as external imports
    # (pinned by test_aliased_import_is_grouped_as_external).
    field = "name" if node.type == "mod_item" else "argument"
    path = node.child_by_field_name(field)
    if path is None or path.type not in PATH_KINDS:
        return ""
    return path_root(_text(path, data))


def _build_statement(siblings: List[Node], index: int, data: bytes) -> ImportStatement:
    """Build the statement for ``siblings[index]``, pulling in the comments
    and attributes directly above it.

    File-level doc comments (`//!`) and inner attributes never travel with a
    statement, so the backward walk stops at them.
    """
    node = siblings[index]
    start = tuple(node.start_point)
    contents = [_text(node, data)]
    previous = None
    for position in range(index - 1, -1, -1):
        previous = siblings[position]
        if previous.type not in TRIVIA_KINDS:
            break
        if not _starts_line(previous, data):
            # Outer attributes must travel with the statement they apply to.
            if previous.type == "attribute_item":
                raise AmbiguousStatementError(previous.start_point[0] + 1)
            break
        content = _text(previous, data).rstrip("\r\n")
        if content.startswith(MODULE_DOC_PREFIX):
            break
        start = tuple(previous.start_point)
        contents.append(content)
        previous = None
    # Doc comments may end at column 0 of the following line.
    if previous is not None and previous.end_point[0] == start[0] and previous.end_point[1] > 0:
        raise AmbiguousStatementError(start[0] + 1)
    return ImportStatement(
        start=start,
        end=tuple(node.end_point),
        text="\n".join(reversed(contents)),
        root=_statement_root(node, data),
        is_module_decl=node.type == "mod_item",
    )


def collect_statements(source: str) -> CollectedStatements:
    """Collect the top-level `use` and bodiless `mod` statements of a file.

    Args:
        source: Rust source text.

    Returns:
        The statements in order of appearance, the names of all declared
        modules and the names of all `macro_rules!` definitions. Statements
        re-exporting one of those macros are left out, since they have to
        stay below the macro definition.

    Raises:
        ParseError: If the source cannot be parsed.
        AmbiguousStatementError: If a collected statement shares a line with
            other code.
    """
    tree, data = parse_source(source)
    siblings = tree.root_node.children
    statements: List[ImportStatement] = []
    module_names: Set[str] = set()
    macro_names: Set[str] = set()

    for index, node in enumerate(siblings):
        last_row = statements[-1].end[0] if statements else None
        # Statement lines are later deleted wholesale, so they must not hold
        # anything else.
        if last_row is not None and node.start_point[0] == last_row:
            raise AmbiguousStatementError(last_row + 1)

        if node.type == "macro_definition":
            name = node.child_by_field_name("name")
            if name is not None:
                macro_names.add(_text(name, data))
        elif node.type == "mod_item":
            name = node.child_by_field_name("name")
            if name is not None:
                module_names.add(_text(name, data))
            if node.child_by_field_name("body") is None:
                statements.append(_build_statement(siblings, index, data))
        elif node.type == "use_declaration":
            statements.append(_build_statement(siblings, index, data))

    LOG.debug("Macros: %s", sorted(macro_names))
    LOG.debug("Modules: %s", sorted(module_names))
    statements = [s for s in statements if s.root not in macro_names]
    return CollectedStatements(statements, frozenset(module_names), frozenset(macro_names))
