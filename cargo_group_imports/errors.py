"""Exceptions raised by cargo-group-imports.

Every error is scoped to a single file (or, for WorkspaceError, to the
workspace manifest) so that callers can keep processing other files.
"""


class GroupImportsError(Exception):
    """Base class for all cargo-group-imports errors."""


class ParseError(GroupImportsError):
    """The source could not be parsed into a syntax tree."""


class AmbiguousStatementError(GroupImportsError):
    """A `use` or `mod` statement shares its line with other code."""

    def __init__(self, lineno: int) -> None:
        super().__init__(
            f"use or mod expression on line {lineno} contains another expression. "
            "This is unsupported."
        )
        self.lineno = lineno


class FileAccessError(GroupImportsError):
    """Reading or writing a source file failed."""


class FormatterError(GroupImportsError):
    """The external formatter could not be run or failed."""


class WorkspaceError(GroupImportsError):
    """The workspace manifest is missing or cannot be read."""
