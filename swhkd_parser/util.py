"""Convenience functions for using the library.

`read_config` walks a whole document statement by statement, yielding parsed
entries, mode blocks, includes, and errors in source order.  `parse_config`
expands the entries into bindings, and `load_config` does the same for a file
on disk, following its includes.

Errors are collected per statement by default: a bad statement is reported
and parsing picks up again at the next one.  Pass `fail_fast=True` to raise
the first error instead.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from os import PathLike
from typing import Generator, List, Optional, Set, Union

from .errors import (
    ConfigReadError,
    ConfigSyntaxError,
    HotkeyConfigError,
)
from .expand import expand_entry
from .lexer import (
    LogicalLine,
    is_blank,
    is_comment,
    is_indented,
    join_continuations,
    split_lines,
)
from .parser import Binding, CommandTemplate, Entry, Trigger

__all__ = [
    "Config",
    "Include",
    "Mode",
    "load_config",
    "parse_config",
    "read_config",
]

logger = logging.getLogger(__name__)


@dataclass
class Mode:
    """A named block of bindings, delimited by `mode <name>` and `endmode`.

    Instance variables:
        name: the name of the mode.
        swallow: whether keys not bound in the mode are swallowed.
        oneoff: whether the mode is left after one of its bindings runs.
        line: the line of the `mode` statement.
        bindings: the bindings and unbinds declared in the block, in order.
    """

    name: str
    swallow: bool = False
    oneoff: bool = False
    line: Optional[int] = None
    bindings: List[Binding] = field(default_factory=list)


@dataclass
class Include:
    """An `include <path>` statement."""

    path: str
    line: Optional[int] = None


@dataclass
class Config:
    """The result of parsing a whole document.

    Instance variables:
        bindings: the top-level bindings and unbinds, in source order.
        modes: the mode blocks, in source order.
        includes: the include statements, in source order.
        errors: the errors of any statements that failed, in source order.
        path: the file the document was read from, if any.
        sources: every file loaded by `load_config`, in load order.
    """

    bindings: List[Binding] = field(default_factory=list)
    modes: List[Mode] = field(default_factory=list)
    includes: List[Include] = field(default_factory=list)
    errors: List[HotkeyConfigError] = field(default_factory=list)
    path: Optional[str] = None
    sources: List[str] = field(default_factory=list)

    def iter_bindings(self) -> Generator[Binding, None, None]:
        """Yield the top-level bindings followed by those of each mode."""
        yield from self.bindings
        for mode in self.modes:
            yield from mode.bindings

    def merge(self, other: Config) -> None:
        """Append everything from `other` to this config."""
        self.bindings.extend(other.bindings)
        self.modes.extend(other.modes)
        self.includes.extend(other.includes)
        self.errors.extend(other.errors)
        self.sources.extend(other.sources)


MODE_FLAGS = {"swallow", "oneoff"}
KEYWORD_RE = re.compile(r"^(?P<keyword>include|mode|endmode|ignore)(?=[ \t#]|$)")


@dataclass
class _PendingTrigger:
    # `trigger` is None if the trigger failed to parse, in which case its
    # command is skipped silently.
    trigger: Optional[Trigger]
    logical: LogicalLine

    @property
    def line(self) -> int:
        return self.logical.line


def _parse_mode(logical: LogicalLine, start: int) -> Mode:
    words = logical.text[start:].split("#", 1)[0].split()
    if not words:
        raise logical.error(
            ConfigSyntaxError, "Missing name for mode", len(logical.text)
        )
    name, *flags = words
    for flag in flags:
        if flag not in MODE_FLAGS:
            raise logical.error(
                ConfigSyntaxError,
                f"Unknown mode option {flag!r}: expected one of {sorted(MODE_FLAGS)}",
                logical.text.index(flag, start),
            )
    return Mode(
        name,
        swallow="swallow" in flags,
        oneoff="oneoff" in flags,
        line=logical.line,
    )


def read_config(
    text: str,
) -> Generator[Union[HotkeyConfigError, Entry, Mode, Include], None, None]:
    """Parse the statements of `text`, yielding a stream.

    Blank lines and comment lines are skipped.  Each remaining statement
    yields one of:

        - an `Entry` for a trigger and its indented command, or for an
          `ignore` statement;
        - a `Mode` when a mode block opens, with the entries of the block
          following it;
        - an `Include`;
        - a `HotkeyConfigError` if the statement failed to parse.

    Statements that fail don't stop the stream.  The `Mode` objects yielded
    have no bindings: those are added by `parse_config`.
    """
    lines = split_lines(text)
    pending: Optional[_PendingTrigger] = None
    mode: Optional[Mode] = None
    mode_logical: Optional[LogicalLine] = None
    i = 0
    while i < len(lines):
        src = lines[i]
        if is_blank(src.text) or is_comment(src.text):
            i += 1
            continue
        try:
            logical, i = join_continuations(lines, i)
        except HotkeyConfigError as e:
            yield e
            break
        logger.debug("line %d: read statement %r", logical.line, logical.text)

        if is_indented(logical.text):
            if pending is None:
                yield logical.error(
                    ConfigSyntaxError,
                    "Missing trigger while reading a command: did you forget to escape a newline?",
                    0,
                )
                continue
            trigger, trigger_line = pending.trigger, pending.line
            pending = None
            if trigger is None:
                continue
            try:
                command = CommandTemplate.parse(logical)
            except HotkeyConfigError as e:
                yield e
                continue
            yield Entry(
                trigger,
                command,
                line=trigger_line,
                mode=mode.name if mode is not None else None,
            )
            continue

        if pending is not None:
            if pending.trigger is not None:
                yield pending.logical.error(
                    ConfigSyntaxError,
                    "Missing command for trigger: commands must be indented",
                    0,
                )
            pending = None

        m = KEYWORD_RE.match(logical.text)
        keyword = m.group("keyword") if m else None
        try:
            if keyword == "include":
                if mode is not None:
                    raise logical.error(
                        ConfigSyntaxError,
                        "Include isn't allowed inside a mode",
                        0,
                    )
                path = logical.text[m.end() :].split("#", 1)[0].strip()
                if not path:
                    raise logical.error(
                        ConfigSyntaxError,
                        "Missing path for include",
                        len(logical.text),
                    )
                yield Include(path, line=logical.line)
            elif keyword == "mode":
                if mode is not None:
                    raise logical.error(
                        ConfigSyntaxError,
                        f"Nested mode: mode {mode.name!r} (line {mode.line}) is missing endmode",
                        0,
                    )
                mode = _parse_mode(logical, m.end())
                mode_logical = logical
                yield mode
            elif keyword == "endmode":
                if mode is None:
                    raise logical.error(
                        ConfigSyntaxError, "Endmode without a mode", 0
                    )
                rest = logical.text[m.end() :].split("#", 1)[0]
                mode = None
                if rest.strip():
                    raise logical.error(
                        ConfigSyntaxError,
                        f"Unexpected {rest.strip()!r} after endmode",
                        m.end(),
                    )
            elif keyword == "ignore":
                trigger = Trigger.parse(logical.sub(m.end()))
                yield Entry(
                    trigger,
                    None,
                    line=logical.line,
                    mode=mode.name if mode is not None else None,
                )
            else:
                pending = _PendingTrigger(None, logical)
                pending.trigger = Trigger.parse(logical)
        except HotkeyConfigError as e:
            yield e

    if pending is not None and pending.trigger is not None:
        yield pending.logical.error(
            ConfigSyntaxError, "Missing command for trigger: input ended", 0
        )
    if mode is not None:
        assert mode_logical is not None
        yield mode_logical.error(
            ConfigSyntaxError, f"Mode {mode.name!r} is missing endmode", 0
        )


def parse_config(
    text: str, broadcast: bool = True, fail_fast: bool = False
) -> Config:
    """Parse `text` and expand all of its entries into bindings.

    With `fail_fast`, the first error is raised.  Otherwise, errors are
    collected in the `errors` of the returned `Config` and the bindings of
    every statement that succeeded are kept.

    `broadcast` is passed on to `expand_entry`.
    """
    config = Config()
    current_mode: Optional[Mode] = None
    for item in read_config(text):
        if isinstance(item, HotkeyConfigError):
            if fail_fast:
                raise item
            config.errors.append(item)
            continue
        elif isinstance(item, Mode):
            current_mode = item
            config.modes.append(item)
            continue
        elif isinstance(item, Include):
            config.includes.append(item)
            continue

        assert isinstance(item, Entry)
        try:
            bindings = expand_entry(item, broadcast=broadcast)
        except HotkeyConfigError as e:
            if fail_fast:
                raise
            config.errors.append(e)
            continue
        if item.mode is not None:
            assert current_mode is not None and current_mode.name == item.mode
            current_mode.bindings.extend(bindings)
        else:
            config.bindings.extend(bindings)
    logger.debug(
        "parsed %d binding(s), %d mode(s), %d error(s)",
        len(config.bindings),
        len(config.modes),
        len(config.errors),
    )
    return config


def _resolve_include(path: str, relative_to: str) -> str:
    path = os.path.expandvars(os.path.expanduser(path))
    if not os.path.isabs(path):
        path = os.path.join(os.path.dirname(relative_to), path)
    return os.path.realpath(path)


def load_config(
    file: Union[str, PathLike[str]],
    broadcast: bool = True,
    fail_fast: bool = False,
    follow_includes: bool = True,
    _seen: Optional[Set[str]] = None,
) -> Config:
    """Read and parse the config at `file`, then any files it includes.

    Included files are loaded depth-first in source order and merged after
    the bindings of the file including them.  Each file is loaded at most
    once, so include cycles are harmless.  Include paths may use `~' and
    environment variables, and relative paths are taken relative to the
    including file.

    Errors from included files have their `path` attribute set.  An include
    that can't be read gives a ConfigReadError, collected or raised like any
    other error.  The top-level file itself must be readable.
    """
    path = os.fspath(file)
    if _seen is None:
        _seen = set()
    _seen.add(os.path.realpath(path))

    with open(path) as f:
        text = f.read()
    config = parse_config(text, broadcast=broadcast, fail_fast=fail_fast)
    config.path = path
    config.sources.append(path)
    for err in config.errors:
        if err.path is None:
            err.path = path
    if not follow_includes:
        return config

    for include in list(config.includes):
        include_path = _resolve_include(include.path, path)
        if include_path in _seen:
            logger.warning(
                "%s:%s: skipping include of %s: already loaded",
                path,
                include.line,
                include_path,
            )
            continue
        logger.debug("%s:%s: including %s", path, include.line, include_path)
        try:
            child = load_config(
                include_path,
                broadcast=broadcast,
                fail_fast=fail_fast,
                _seen=_seen,
            )
        except OSError as e:
            err = ConfigReadError(
                f"Couldn't read include {include.path!r}: {e.strerror}",
                path=path,
                line=include.line,
            )
            if fail_fast:
                raise err from e
            config.errors.append(err)
            continue
        config.merge(child)
    return config
