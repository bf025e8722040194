"""Tool for exporting the expanded bindings of a hotkey config, as plaintext or JSON."""
from __future__ import annotations

import argparse
import json
import sys
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Type

from ..errors import HotkeyConfigError
from ..parser import Binding
from ..util import Config
from .common import (
    BASE_PARSER,
    format_error_msg,
    get_command_name,
    print_exceptions,
    process_args,
)

__all__ = ["main"]


class BindingEmitter(ABC):
    def __init__(self, include_unbinds: bool = True):
        self.include_unbinds = include_unbinds

    def _bindings(self, bindings: Iterable[Binding]) -> Iterable[Binding]:
        for binding in bindings:
            if binding.unbind and not self.include_unbinds:
                continue
            yield binding

    @abstractmethod
    def emit(self, config: Config) -> Iterable[str]:
        raise NotImplementedError


class PlaintextEmitter(BindingEmitter):
    def emit_bindings(
        self, bindings: Iterable[Binding], level: int
    ) -> Iterable[str]:
        indent = "\t" * level
        for binding in self._bindings(bindings):
            if binding.unbind:
                yield f"{indent}ignore {binding.trigger}"
            else:
                yield f"{indent}{binding.trigger}"
                yield f"{indent}\t{binding.command}"

    def emit(self, config: Config) -> Iterable[str]:
        yield from self.emit_bindings(config.bindings, level=0)
        for mode in config.modes:
            flags = "".join(
                f" {flag}"
                for flag, enabled in (
                    ("swallow", mode.swallow),
                    ("oneoff", mode.oneoff),
                )
                if enabled
            )
            yield f"mode {mode.name}{flags}"
            yield from self.emit_bindings(mode.bindings, level=1)
            yield "endmode"


class JSONEmitter(BindingEmitter):
    def emit(self, config: Config) -> Iterable[str]:
        out = {
            "bindings": [
                binding.to_dict() for binding in self._bindings(config.bindings)
            ],
            "modes": [
                {
                    "name": mode.name,
                    "swallow": mode.swallow,
                    "oneoff": mode.oneoff,
                    "bindings": [
                        binding.to_dict()
                        for binding in self._bindings(mode.bindings)
                    ],
                }
                for mode in config.modes
            ],
        }
        yield json.dumps(out, indent=2)


EMITTERS: Dict[str, Type[BindingEmitter]] = {
    "txt": PlaintextEmitter,
    "json": JSONEmitter,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command-line tool with the given arguments, without the command name.

    Returns 1 if the config has any errors, which are printed to stderr, and 0
    otherwise.  Bindings of statements that parsed are exported either way.
    """
    parser = argparse.ArgumentParser(
        get_command_name(__file__),
        description="Export the expanded bindings of a hotkey config",
        parents=[BASE_PARSER],
    )
    parser.add_argument(
        "--format",
        "-f",
        choices=list(EMITTERS),
        default="txt",
        help="the output format (default: %(default)s)",
    )
    parser.add_argument(
        "--no-unbinds",
        dest="include_unbinds",
        action="store_false",
        help="leave out the triggers of ignore statements",
    )
    namespace = parser.parse_args(argv)

    try:
        config = process_args(namespace)
    except HotkeyConfigError as e:
        print_exceptions(e, namespace.config, file=sys.stderr)
        return 1
    for err in config.errors:
        print(format_error_msg(err, namespace.config), file=sys.stderr)

    emitter = EMITTERS[namespace.format](
        include_unbinds=namespace.include_unbinds
    )
    for line in emitter.emit(config):
        print(line)
    return 1 if config.errors else 0
