"""Tool for debugging hotkey configs."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Union

from ..errors import HotkeyConfigError
from ..expand import entry_cardinality, expand_entry
from ..parser import (
    AnyKeySlot,
    AnyModifierSlot,
    Entry,
    KeyGroup,
    KeySlot,
    ModifierGroup,
    ModifierOmissionGroup,
    ModifierSlot,
)
from ..seq import SequenceSpan, Span, TextSpan
from ..util import Include, Mode, read_config
from .common import (
    BASE_PARSER,
    format_error_msg,
    get_command_name,
    setup_logging,
)

__all__ = ["main"]


def format_slot(slot: Union[AnyModifierSlot, AnyKeySlot]) -> str:
    if isinstance(slot, ModifierSlot):
        return f"modifier {slot.modifier}"
    elif isinstance(slot, ModifierGroup):
        return f"modifier group {[str(mod) for mod in slot.choices]}"
    elif isinstance(slot, ModifierOmissionGroup):
        choices = ["_" if mod is None else str(mod) for mod in slot.choices]
        return f"omission group {choices}"
    elif isinstance(slot, KeySlot):
        return f"key {slot.combo}"
    else:
        assert isinstance(slot, KeyGroup)
        return f"key group {[str(combo) for combo in slot.choices]}"


def print_span_level(level: Span) -> None:
    if isinstance(level, TextSpan):
        print(f"\t\t{level.text!r}")
    else:
        assert isinstance(level, SequenceSpan)
        print(f"\t\t{[item.text for item in level.choices]}")


def print_entry(entry: Entry, broadcast: bool) -> None:
    print("Trigger:")
    print(f"\tline: {entry.trigger.line}")
    print(f"\traw: {entry.trigger.raw}")
    if entry.mode is not None:
        print(f"\tmode: {entry.mode}")
    print("\tslots:")
    for slot in entry.trigger.modifiers:
        print(f"\t\t{format_slot(slot)}")
    print(f"\t\t{format_slot(entry.trigger.key)}")
    if entry.command is None:
        print("Command: (unbind)")
    else:
        print("Command:")
        print(f"\tline: {entry.command.line}")
        print(f"\traw: {entry.command.raw}")
        print("\tspans:")
        for level in entry.command.spans:
            print_span_level(level)
    try:
        k = entry_cardinality(entry, broadcast=broadcast)
    except HotkeyConfigError as e:
        print(f"Expansion: {e.kind} error: {e.message}")
        return
    print(f"Expansion ({k}):")
    for binding in expand_entry(entry, broadcast=broadcast):
        print(f"\t{binding}")


PROGNAME = get_command_name(__file__)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command-line tool with the given arguments, without the command name.

    Only the given file is read: includes are listed but not followed.
    Returns 0, or 1 if the file couldn't be read.
    """
    parser = argparse.ArgumentParser(
        PROGNAME,
        description="Debug hotkey config files",
        parents=[BASE_PARSER],
    )
    namespace = parser.parse_args(argv)
    setup_logging(namespace)
    if namespace.config is None:
        raise RuntimeError("got no config file and found none by default")

    try:
        with open(namespace.config) as f:
            text = f.read()
    except OSError as e:
        print(f"{namespace.config}: {e.strerror} [FATAL]", file=sys.stderr)
        return 1

    # Copied straight from `apt`.
    print(
        f"WARNING: {PROGNAME} does not have a stable CLI interface. Use with caution in scripts.",
        file=sys.stderr,
    )
    for item in read_config(text):
        if isinstance(item, HotkeyConfigError):
            print(format_error_msg(item, namespace.config), file=sys.stderr)
        elif isinstance(item, Mode):
            flags = [
                flag
                for flag, enabled in (
                    ("swallow", item.swallow),
                    ("oneoff", item.oneoff),
                )
                if enabled
            ]
            print(f"Mode {item.name!r} (line {item.line}) flags: {flags}")
            print()
        elif isinstance(item, Include):
            print(f"Include {item.path!r} (line {item.line})")
            print()
        else:
            print_entry(item, broadcast=namespace.broadcast)
            print()
    return 0
