"""Exceptions for the library.

HotkeyConfigError is the ancestor for all of the exceptions in the library.
Every error carries the kind of failure along with its position in the source
text, so callers can render diagnostics without parsing messages.

Error kinds:
    lex: bad escape, unterminated group, continuation at end of input.
    syntax: a token or line not valid at its position in the grammar.
    validation: degenerate omission group, empty group, unorderable range.
    expansion: trigger/command alternation groups that don't line up.
"""
from __future__ import annotations

from typing import ClassVar, Optional

__all__ = [
    "HotkeyConfigError",
    # ---
    "LexError",
    "ConfigSyntaxError",
    "ValidationError",
    "ExpansionError",
    # ---
    "ConfigReadError",
]


class HotkeyConfigError(Exception):
    """Ancestor for all of the exceptions in the library.

    Instance variables:
        message: the description of the failure.
        line: the 1-based line number, if known.
        column: the 1-based column number, if known.
        offset: the 0-based character offset into the whole document, if known.
        snippet: the offending text.
        path: the file the error occurred in, if known.
    """

    kind: ClassVar[str] = "error"
    path: Optional[str] = None

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        offset: Optional[int] = None,
        snippet: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.offset = offset
        self.snippet = snippet

    def __str__(self) -> str:
        if self.line is not None:
            if self.column is None:
                return f"{self.line}: {self.message}"
            else:
                return f"{self.line}:{self.column}: {self.message}"
        elif self.column is not None:
            return f"{self.message} at column {self.column}"
        else:
            return self.message

    def at(
        self,
        line: Optional[int],
        column: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> HotkeyConfigError:
        """Fill in any missing position information and return the error."""
        if self.line is None:
            self.line = line
            if self.column is None:
                self.column = column
            if self.offset is None:
                self.offset = offset
        return self


class LexError(HotkeyConfigError):
    """Bad escape, unterminated bracket group, or continuation at end of input."""

    kind = "lex"


class ConfigSyntaxError(HotkeyConfigError):
    """Token or line not valid at its position in the grammar."""

    kind = "syntax"


class ValidationError(HotkeyConfigError):
    """Well-formed but meaningless construct, such as an empty group."""

    kind = "validation"


class ExpansionError(HotkeyConfigError):
    """The alternation groups of a trigger and its command didn't agree.

    Instance variables:
        trigger_cardinality: the cardinality on the trigger side, if relevant.
        command_cardinality: the cardinality on the command side, if relevant.
        group_index: the index of the offending group pair, if relevant.
    """

    kind = "expansion"

    def __init__(
        self,
        message: str,
        trigger_cardinality: Optional[int] = None,
        command_cardinality: Optional[int] = None,
        group_index: Optional[int] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        offset: Optional[int] = None,
        snippet: Optional[str] = None,
    ):
        super().__init__(
            message, line=line, column=column, offset=offset, snippet=snippet
        )
        self.trigger_cardinality = trigger_cardinality
        self.command_cardinality = command_cardinality
        self.group_index = group_index


class ConfigReadError(HotkeyConfigError):
    """A config file or one of its includes couldn't be read."""

    kind = "read"

    def __init__(
        self, message: str, path: str, line: Optional[int] = None
    ):
        super().__init__(message, line=line)
        self.path = path
