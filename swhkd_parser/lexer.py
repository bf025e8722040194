"""Lexing primitives shared by the trigger and command parsers.

The config is read line by line.  Physical lines ending in an unescaped
backslash are folded into a single `LogicalLine`, with the backslash-newline
pair contributing nothing to the text.  Every character of the folded text
keeps its original line, column, and offset so that errors raised further up
point at the right place.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple, Type, TypeVar

from .errors import HotkeyConfigError, LexError

__all__ = [
    "GROUP_ESCAPES",
    "LogicalLine",
    "SourceLine",
    "SourcePosition",
    "is_blank",
    "is_comment",
    "is_indented",
    "join_continuations",
    "split_lines",
    "unescape_group_char",
]


# Characters that must be backslash-escaped inside a {s1,s2,...,sn} group.
GROUP_ESCAPES = frozenset(",\\{}-")

E = TypeVar("E", bound=HotkeyConfigError)


class SourcePosition(NamedTuple):
    """Position of a character in the original text."""

    line: int
    column: int
    offset: int


class SourceLine(NamedTuple):
    """A physical line without its newline, along with where it starts."""

    text: str
    line: int
    offset: int


@dataclass
class LogicalLine:
    """Text of one or more physical lines joined by backslash-newline.

    Instance variables:
        text: the folded text.
        positions: the source position of each character in `text`.
        end: the source position just past the last character.
    """

    text: str
    positions: List[SourcePosition] = field(repr=False)
    end: SourcePosition = field(repr=False)

    @property
    def line(self) -> int:
        """Return the line number that the logical line starts on."""
        if self.positions:
            return self.positions[0].line
        return self.end.line

    def pos(self, index: int) -> SourcePosition:
        """Return the source position of `text[index]`, clamped to the end."""
        if 0 <= index < len(self.positions):
            return self.positions[index]
        return self.end

    def sub(self, start: int) -> LogicalLine:
        """Return the logical line from index `start` onwards."""
        return LogicalLine(self.text[start:], self.positions[start:], self.end)

    def error(
        self,
        cls: Type[E],
        message: str,
        index: int,
        snippet: Optional[str] = None,
    ) -> E:
        """Create an error of type `cls` located at `text[index]`."""
        pos = self.pos(index)
        if snippet is None:
            snippet = self.text
        return cls(
            message,
            line=pos.line,
            column=pos.column,
            offset=pos.offset,
            snippet=snippet,
        )


def split_lines(text: str) -> List[SourceLine]:
    """Split `text` on newlines, recording the line number and offset of each."""
    lines = []
    offset = 0
    for i, line in enumerate(text.split("\n"), start=1):
        lines.append(SourceLine(line, i, offset))
        offset += len(line) + 1
    return lines


def _ends_in_continuation(text: str) -> bool:
    # An escaped backslash at the end of the line doesn't continue it.
    return (len(text) - len(text.rstrip("\\"))) % 2 == 1


def join_continuations(
    lines: List[SourceLine], start: int
) -> Tuple[LogicalLine, int]:
    """Fold the physical lines from index `start` into one logical line.

    Returns the logical line and the index of the next unread physical line.
    """
    chars: List[str] = []
    positions: List[SourcePosition] = []
    i = start
    while True:
        text, lineno, offset = lines[i]
        continued = _ends_in_continuation(text)
        if continued:
            text = text[:-1]
        for col, c in enumerate(text, start=1):
            chars.append(c)
            positions.append(SourcePosition(lineno, col, offset + col - 1))
        i += 1
        if not continued:
            end = SourcePosition(lineno, len(text) + 1, offset + len(text))
            break
        if i >= len(lines):
            raise LexError(
                "Input ended after a line continuation",
                line=lineno,
                column=len(text) + 1,
                offset=offset + len(text),
                snippet=lines[i - 1].text,
            )
    return LogicalLine("".join(chars), positions, end), i


def is_blank(text: str) -> bool:
    """Return whether `text` is empty or only spaces and tabs."""
    return not text.strip(" \t")


def is_comment(text: str) -> bool:
    """Return whether `text` is a comment-only line, indented or not."""
    return text.lstrip(" \t").startswith("#")


def is_indented(text: str) -> bool:
    """Return whether `text` starts with indentation."""
    return text.startswith((" ", "\t"))


def unescape_group_char(c: str) -> Optional[str]:
    """Return the literal for the escape sequence '\\c' inside a group, or `None` if it's invalid."""
    if c in GROUP_ESCAPES:
        return c
    return None
