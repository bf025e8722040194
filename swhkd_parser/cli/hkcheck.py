"""Tool for linting hotkey configs."""
from __future__ import annotations

import argparse
from typing import List, Optional, Union, cast

from ..errors import HotkeyConfigError
from .common import (
    BASE_PARSER,
    Message,
    find_duplicates,
    find_single_alternatives,
    format_error_msg,
    get_command_name,
    print_exceptions,
    process_args,
    read_entries,
)

__all__ = ["main"]


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command-line tool with the given arguments, without the command name.

    Returns 0 if the config has no problems and 1 otherwise.  Any
    non-HotkeyConfigError exceptions are left unhandled.
    """
    parser = argparse.ArgumentParser(
        get_command_name(__file__),
        description="Check hotkey configs for errors, duplicate triggers, and suspicious groups",
        parents=[BASE_PARSER],
    )
    namespace = parser.parse_args(argv)

    try:
        config = process_args(namespace)
    except HotkeyConfigError as e:
        print_exceptions(e, namespace.config)
        return 1

    errors: List[Union[Message, HotkeyConfigError]] = list(config.errors)
    errors.extend(find_duplicates(config.iter_bindings()))
    # Single-element groups are only visible before expansion.
    for source in config.sources:
        for item in read_entries(source):
            if isinstance(item, HotkeyConfigError):
                continue
            errors.extend(
                msg._replace(path=source)
                for msg in find_single_alternatives(item)
            )

    numbered = []
    rest = []
    for msg in errors:
        if msg.line is not None:
            numbered.append(msg)
        else:
            rest.append(msg)
    numbered.sort(
        key=lambda x: (x.path or namespace.config, cast(int, x.line))
    )
    for msg in numbered:
        print(format_error_msg(msg, config_filename=namespace.config))
    for msg in rest:
        print(format_error_msg(msg, config_filename=namespace.config))

    return 1 if errors else 0
