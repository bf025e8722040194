"""Classes and functions for sequences of the form {s1,s2,...,sn}.

Sequences on the command side are parsed by `parse_sequences` into levels of
`TextSpan` and `SequenceSpan` objects.  Ranges such as a-f or 1-10 found in
sequences are expanded on the spot by `expand_range`, which picks the first
`RangeOrdering` that accepts both endpoints.
"""
from __future__ import annotations

import re
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, NoReturn, Sequence, Tuple, Type

from .errors import (
    ConfigSyntaxError,
    HotkeyConfigError,
    LexError,
    ValidationError,
)
from .lexer import LogicalLine, unescape_group_char

__all__ = [
    "COMMAND_ORDERINGS",
    "CodepointOrdering",
    "KEY_ORDERINGS",
    "KeyAlphabetOrdering",
    "MAX_RANGE_SIZE",
    "NumericOrdering",
    "RangeOrdering",
    "SequenceSpan",
    "Span",
    "TextSpan",
    "expand_range",
    "parse_sequences",
]


@dataclass
class Span:
    """Span of text that separates sequences and non-sequence text.

    This also contains line and column information to allow for exact positions
    if necessary for error messages.

    Instance variables:
        line: the line number.
        col: the column number.
        offset: the character offset into the whole document.
    """

    line: int = -1
    col: int = -1
    offset: int = -1


@dataclass
class TextSpan(Span):
    """A string of non-sequence text.

    Instance variables:
        text: the string of text, with escapes already resolved.
        is_expansion: whether this span was the result of range expansion, in which case line and col are those of the range.
    """

    text: str = ""
    is_expansion: bool = False


@dataclass
class SequenceSpan(Span):
    """A sequence of text that itself contains further `TextSpan` objects.

    Instance variables:
        choices: the list of `TextSpan` objects in order of their appearance, ranges included.
    """

    choices: List[TextSpan] = field(default_factory=list)

    @property
    def cardinality(self) -> int:
        return len(self.choices)


# Upper bound on the number of values a single range may expand to.
MAX_RANGE_SIZE = 1024


class RangeOrdering(ABC):
    """Total order over one kind of range endpoint.

    Subclasses map endpoints to integer indices and back, so that a range is
    every value whose index lies between those of its endpoints.
    """

    name: str

    @abstractmethod
    def accepts(self, start: str, end: str) -> bool:
        """Return whether both endpoints belong to this ordering."""
        raise NotImplementedError

    @abstractmethod
    def index(self, value: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def value(self, index: int) -> str:
        raise NotImplementedError

    def expand(self, start: str, end: str) -> List[str]:
        """Return every value from `start` to `end`, inclusive.

        Raises ValidationError if `start` comes after `end` or the range has
        more than MAX_RANGE_SIZE values.
        """
        lo, hi = self.index(start), self.index(end)
        if lo > hi:
            raise ValidationError(
                f"Invalid range (start is past end): {start}-{end}",
                snippet=f"{start}-{end}",
            )
        if hi - lo >= MAX_RANGE_SIZE:
            raise ValidationError(
                f"Range {start}-{end} has more than {MAX_RANGE_SIZE} values",
                snippet=f"{start}-{end}",
            )
        return [self.value(i) for i in range(lo, hi + 1)]


class NumericOrdering(RangeOrdering):
    """Non-negative integers, e.g. 1-10."""

    name = "numeric"
    _NUMBER_RE = re.compile(r"[0-9]+")

    def accepts(self, start: str, end: str) -> bool:
        return bool(
            self._NUMBER_RE.fullmatch(start) and self._NUMBER_RE.fullmatch(end)
        )

    def index(self, value: str) -> int:
        return int(value)

    def value(self, index: int) -> str:
        return str(index)

    def expand(self, start: str, end: str) -> List[str]:
        values = super().expand(start, end)
        # Zero-padded endpoints of equal width keep their width, e.g. 01-10.
        if len(start) == len(end):
            return [value.zfill(len(start)) for value in values]
        return values


class CodepointOrdering(RangeOrdering):
    """Single characters, walked by successive codepoints."""

    name = "codepoint"

    def accepts(self, start: str, end: str) -> bool:
        return len(start) == 1 and len(end) == 1

    def index(self, value: str) -> int:
        return ord(value)

    def value(self, index: int) -> str:
        return chr(index)


class KeyAlphabetOrdering(CodepointOrdering):
    """Single lowercase letters or single digits, never mixed."""

    name = "key"

    def accepts(self, start: str, end: str) -> bool:
        for alphabet in (string.ascii_lowercase, string.digits):
            if start in alphabet and end in alphabet:
                return super().accepts(start, end)
        return False


# Tried in order: numeric endpoints take priority over the codepoint walk.
COMMAND_ORDERINGS: Tuple[RangeOrdering, ...] = (
    NumericOrdering(),
    CodepointOrdering(),
)
KEY_ORDERINGS: Tuple[RangeOrdering, ...] = (KeyAlphabetOrdering(),)


def expand_range(
    start: str, end: str, orderings: Sequence[RangeOrdering]
) -> List[str]:
    """Expand the range `start`-`end` into every value between them, inclusive.

    The first ordering in `orderings` that accepts both endpoints is used.
    Raises ValidationError if none do, or if the ordering rejects the range.
    """
    for ordering in orderings:
        if not ordering.accepts(start, end):
            continue
        return ordering.expand(start, end)
    raise ValidationError(
        f"Range endpoints can't be ordered: {start}-{end}",
        snippet=f"{start}-{end}",
    )


class _SequenceParseMode(Enum):
    """Mode when parsing out the spans of {s1,s2,...,sn} sequences."""

    NORMAL = auto()
    NORMAL_ESCAPE_NEXT = auto()
    SEQUENCE = auto()
    SEQUENCE_ESCAPE_NEXT = auto()


def parse_sequences(
    line: LogicalLine,
    orderings: Sequence[RangeOrdering] = COMMAND_ORDERINGS,
) -> List[Span]:
    """Parse the text of `line` into levels of `TextSpan` and `SequenceSpan` objects.

    Outside of sequences, only the braces may be escaped and any other
    backslash is kept as-is.  Inside sequences, each of `, \\ { } -` must be
    escaped to be taken literally.  Alternatives are trimmed of surrounding
    whitespace, and an alternative with an unescaped '-' is a range.
    """
    text = line.text
    spans: List[Span] = []
    mode = _SequenceParseMode.NORMAL
    # Characters of the current alternative, with whether each was escaped.
    item: List[Tuple[str, bool]] = []
    item_start = 0

    def _err(
        cls: Type[HotkeyConfigError], msg: str, index: int
    ) -> NoReturn:
        raise line.error(cls, msg, index)

    def _append_text(c: str, index: int) -> None:
        if spans and isinstance(spans[-1], TextSpan):
            spans[-1].text += c
        else:
            pos = line.pos(index)
            spans.append(TextSpan(pos.line, pos.column, text=c))

    def _finish_item(index: int) -> None:
        nonlocal item
        seq = spans[-1]
        assert isinstance(seq, SequenceSpan)
        pos = line.pos(item_start)
        # Trim unescaped whitespace from both ends.
        while item and not item[0][1] and item[0][0] in " \t":
            item.pop(0)
        while item and not item[-1][1] and item[-1][0] in " \t":
            item.pop()
        if not item:
            if not seq.choices and text[index] == "}":
                _err(ValidationError, "Empty sequence", index)
            _err(ValidationError, "Empty alternative in sequence", index)
        dashes = [
            i for i, (c, escaped) in enumerate(item) if c == "-" and not escaped
        ]
        if not dashes:
            choice = "".join(c for c, _ in item)
            seq.choices.append(TextSpan(pos.line, pos.column, text=choice))
        else:
            if len(dashes) > 1:
                _err(
                    ValidationError,
                    "Range must have exactly two endpoints (escape '-' to use it literally)",
                    item_start,
                )
            start = "".join(c for c, _ in item[: dashes[0]]).strip(" \t")
            end = "".join(c for c, _ in item[dashes[0] + 1 :]).strip(" \t")
            if not start or not end:
                _err(
                    ValidationError,
                    "Range is missing an endpoint (escape '-' to use it literally)",
                    item_start,
                )
            try:
                expanded = expand_range(start, end, orderings)
            except ValidationError as e:
                raise e.at(pos.line, pos.column, pos.offset)
            seq.choices.extend(
                TextSpan(pos.line, pos.column, text=value, is_expansion=True)
                for value in expanded
            )
        item = []

    for i, c in enumerate(text):
        if mode == _SequenceParseMode.NORMAL:
            if c == "}":
                _err(
                    ConfigSyntaxError,
                    "Unmatched closing brace (escape it as '\\}')",
                    i,
                )
            elif c == "{":
                mode = _SequenceParseMode.SEQUENCE
                pos = line.pos(i)
                spans.append(SequenceSpan(pos.line, pos.column, pos.offset))
                item_start = i + 1
                continue
            elif c == "\\":
                mode = _SequenceParseMode.NORMAL_ESCAPE_NEXT
            _append_text(c, i)
        elif mode == _SequenceParseMode.NORMAL_ESCAPE_NEXT:
            span = spans[-1]
            assert isinstance(span, TextSpan)
            # Braces can be escaped outside sequences, so the backslash shouldn't remain.
            if c in ("{", "}"):
                span.text = span.text[:-1] + c
            else:
                span.text += c
            mode = _SequenceParseMode.NORMAL
        elif mode == _SequenceParseMode.SEQUENCE:
            if c == "{":
                _err(ConfigSyntaxError, "No nested sequences allowed", i)
            elif c in ",}":
                _finish_item(i)
                item_start = i + 1
                if c == "}":
                    mode = _SequenceParseMode.NORMAL
            elif c == "\\":
                mode = _SequenceParseMode.SEQUENCE_ESCAPE_NEXT
            else:
                item.append((c, False))
        elif mode == _SequenceParseMode.SEQUENCE_ESCAPE_NEXT:
            literal = unescape_group_char(c)
            if literal is None:
                _err(LexError, f"Invalid escape '\\{c}' in sequence", i - 1)
            item.append((literal, True))
            mode = _SequenceParseMode.SEQUENCE

    if mode in (
        _SequenceParseMode.SEQUENCE,
        _SequenceParseMode.SEQUENCE_ESCAPE_NEXT,
    ):
        _err(LexError, "Input ended while parsing a sequence", len(text))
    elif mode == _SequenceParseMode.NORMAL_ESCAPE_NEXT:
        _err(LexError, "Input ended while escaping a character", len(text))
    return spans
