"""Command-line interfaces to the library.

This package provides command-line programs for checking, exporting, and
debugging hotkey configs.  Each one is a module with a `main` function taking
the argument list, so they can also be run from other programs.

All such CLI programs are prefixed with 'hk'.
"""
