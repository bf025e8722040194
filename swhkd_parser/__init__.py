"""Library for parsing and expanding hotkey daemon configs.

You should start with the `util` module, whose `parse_config` and
`load_config` functions turn config text into a flat list of bindings.

Re-exports every member in all modules directly part of this package.  The
`cli` subpackage as well as modules under it need to be imported explicitly.
"""
# mypy: implicit-reexport
from ._package import *
from .errors import *
from .expand import *
from .lexer import *
from .parser import *
from .seq import *
from .util import *
