"""Code and utilities common to all command-line tools using this library."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from collections import defaultdict
from typing import (
    IO,
    DefaultDict,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Tuple,
    Union,
)

from .._package import __version__
from ..errors import HotkeyConfigError
from ..parser import Binding, Chord, Entry
from ..seq import SequenceSpan
from ..util import Config, load_config, read_config


def get_command_name(path: str) -> str:
    """Get command name from __file__."""
    cmd, _ = os.path.splitext(os.path.basename(path))
    return cmd


def find_config() -> Optional[str]:
    """Find any existing swhkdrc in the standard directories.

    Looks in $XDG_CONFIG_HOME (default: $HOME/.config) for subdir
    'swhkd/'.  Returns `None` if the $HOME variable doesn't exist or
    the swhkdrc at the standard location doesn't exist.
    """
    xdg_config_home = os.getenv("XDG_CONFIG_HOME")
    if not xdg_config_home:
        home = os.getenv("HOME")
        if not home:
            return None
        xdg_config_home = os.path.join(home, ".config")
    swhkdrc = os.path.join(xdg_config_home, "swhkd", "swhkdrc")
    if not os.path.exists(swhkdrc):
        return None
    return swhkdrc


BASE_PARSER = argparse.ArgumentParser(add_help=False)
BASE_PARSER.add_argument(
    "--version",
    "-V",
    action="version",
    version=f"%(prog)s (swhkd-parser) {__version__}",
)
BASE_PARSER.add_argument(
    "--config",
    "-c",
    default=find_config(),
    help="the location of the config file (default: $XDG_CONFIG_HOME/swhkd/swhkdrc)",
)
_expansion_group = BASE_PARSER.add_argument_group("expansion config")
_expansion_group.add_argument(
    "--no-broadcast",
    dest="broadcast",
    action="store_false",
    help="treat single-alternative groups like any other group instead of reusing their value for every binding",
)
_expansion_group.add_argument(
    "--fail-fast",
    action="store_true",
    help="stop at the first error instead of reporting every failed statement",
)
_expansion_group.add_argument(
    "--no-includes",
    dest="follow_includes",
    action="store_false",
    help="don't load the files named by include statements",
)
BASE_PARSER.add_argument(
    "--verbose",
    "-v",
    action="count",
    default=0,
    help="log more details to stderr (repeat for debug output)",
)


def setup_logging(namespace: argparse.Namespace) -> None:
    """Configure the root logger from the verbosity option."""
    if namespace.verbose >= 2:
        level = logging.DEBUG
    elif namespace.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level, format="%(name)s: %(levelname)s: %(message)s"
    )


def process_args(namespace: argparse.Namespace) -> Config:
    """Load the config named by the common command-line arguments.

    Raises HotkeyConfigError in fail-fast mode and OSError if the config
    can't be read.
    """
    setup_logging(namespace)
    if namespace.config is None:
        raise RuntimeError("got no config file and found none by default")
    return load_config(
        namespace.config,
        broadcast=namespace.broadcast,
        fail_fast=namespace.fail_fast,
        follow_includes=namespace.follow_includes,
    )


def read_entries(
    filename: str,
) -> Iterable[Union[HotkeyConfigError, Entry]]:
    """Yield the unexpanded entries and errors of the file `filename`."""
    with open(filename) as f:
        text = f.read()
    for item in read_config(text):
        if isinstance(item, (HotkeyConfigError, Entry)):
            yield item


class Message(NamedTuple):
    """Data object for CLI error messages."""

    line: Optional[int]
    column: Optional[int]
    message: str
    path: Optional[str] = None


def format_error_msg(
    msg: Union[Message, HotkeyConfigError], config_filename: str
) -> str:
    """Return formatted error message for an error in the file `config_filename`.

    The error's own `path` is used instead if it has one, as for errors in
    included files.
    """
    parts = []
    parts.append(msg.path or config_filename)
    if msg.line is None and msg.column is not None:
        raise ValueError(f"missing line but column exists with {msg}")
    if msg.line is not None:
        parts.append(str(msg.line))
    if msg.column is not None:
        parts.append(str(msg.column))
    if isinstance(msg, HotkeyConfigError):
        return f"{':'.join(parts)}: {msg.kind} error: {msg.message}"
    return f"{':'.join(parts)}: {msg.message}"


def print_exceptions(
    ex: BaseException, config_filename: str, file: Optional[IO[str]] = None
) -> None:
    """Print exceptions for a fatal error in order of their time of raising."""
    if file is None:
        file = sys.stdout
    if ex.__context__ is not None:
        print_exceptions(ex.__context__, config_filename, file)
    if isinstance(ex, HotkeyConfigError):
        print(f"{format_error_msg(ex, config_filename)} [FATAL]", file=file)
    else:
        print(f"{config_filename}: {ex} [FATAL]", file=file)


def find_duplicates(bindings: Iterable[Binding]) -> Iterable[Message]:
    """Yield `Message` objects for bindings with the same trigger in the same mode.

    Unbind records are ignored: unbinding a trigger twice is harmless.
    """
    groups: DefaultDict[
        Tuple[Optional[str], Chord], List[Binding]
    ] = defaultdict(list)
    for binding in bindings:
        if binding.unbind:
            continue
        groups[(binding.mode, binding.trigger)].append(binding)
    for (mode, chord), dups in groups.items():
        if len(dups) < 2:
            continue
        where = f" in mode {mode!r}" if mode is not None else ""
        for binding in dups:
            yield Message(
                binding.line, None, f"Duplicate trigger '{chord}'{where}"
            )


def find_single_alternatives(entry: Entry) -> Iterable[Message]:
    """Yield `Message` objects for groups of `entry` with only one alternative."""
    groups = list(entry.trigger.groups)
    if entry.command is not None:
        groups.extend(entry.command.groups)
    for group in groups:
        if group.cardinality != 1:
            continue
        kind = "Sequence" if isinstance(group, SequenceSpan) else "Group"
        yield Message(
            group.line,
            group.col,
            f"{kind} with only one element: did you forget to escape the braces?",
        )
