import textwrap

import pytest

from swhkd_parser.errors import (
    ConfigReadError,
    ConfigSyntaxError,
    ExpansionError,
    LexError,
)
from swhkd_parser.parser import Entry
from swhkd_parser.util import Include, Mode, load_config, parse_config, read_config

CONFIG = textwrap.dedent(
    """\
    # Terminal
    super + enter
    \talacritty

    super + {h,j,k,l}  # focus
    \tbspc node -f {west,south,north,east}

    ignore alt + q
    """
)


def test_read_config_stream():
    items = list(read_config(CONFIG))
    assert [type(item) for item in items] == [Entry, Entry, Entry]
    assert [item.line for item in items] == [2, 5, 8]
    assert items[2].unbind


def test_parse_config():
    config = parse_config(CONFIG)
    assert config.errors == []
    assert [str(b) for b in config.bindings] == [
        "super + enter: alacritty",
        "super + h: bspc node -f west",
        "super + j: bspc node -f south",
        "super + k: bspc node -f north",
        "super + l: bspc node -f east",
        "ignore alt + q",
    ]


def test_blank_lines_between_trigger_and_command():
    config = parse_config("super + a\n\n\techo a\n")
    assert [b.command for b in config.bindings] == ["echo a"]


def test_continued_command():
    config = parse_config("super + a\n\techo one \\\n\ttwo\n")
    assert config.bindings[0].command == "echo one \ttwo"


def test_command_without_trigger():
    config = parse_config("\techo orphan\nsuper + a\n\techo a\n")
    (err,) = config.errors
    assert isinstance(err, ConfigSyntaxError)
    assert err.line == 1
    assert len(config.bindings) == 1


def test_trigger_without_command():
    config = parse_config("super + a\nsuper + b\n\techo b\nsuper + c\n")
    assert [(type(e), e.line) for e in config.errors] == [
        (ConfigSyntaxError, 1),
        (ConfigSyntaxError, 4),
    ]
    assert [b.trigger.key for b in config.bindings] == ["b"]


def test_missing_command_error_location():
    config = parse_config("super + a\nsuper + b\n\techo b\nsuper + c\n")
    first, last = config.errors
    assert (first.line, first.column, first.offset) == (1, 1, 0)
    assert first.snippet == "super + a"
    assert (last.line, last.column, last.offset) == (4, 1, 28)
    assert last.snippet == "super + c"


def test_unclosed_mode_error_location():
    (err,) = parse_config("super + a\n\techo\nmode resize swallow\n").errors
    assert (err.line, err.column, err.offset) == (3, 1, 16)
    assert err.snippet == "mode resize swallow"


def test_errors_are_collected_per_statement():
    text = textwrap.dedent(
        """\
        shift + k + m
        \techo skipped
        super + {a,b,c}
        \techo {x,y}
        super + {a
        \techo skipped
        super + z
        \techo z
        """
    )
    config = parse_config(text)
    assert [(type(e), e.line) for e in config.errors] == [
        (ConfigSyntaxError, 1),
        (ExpansionError, 4),
        (LexError, 5),
    ]
    assert [str(b) for b in config.bindings] == ["super + z: echo z"]


def test_fail_fast():
    with pytest.raises(ConfigSyntaxError):
        parse_config("shift + k + m\n\techo\nsuper + a\n\techo\n", fail_fast=True)
    with pytest.raises(ExpansionError):
        parse_config("super + {a,b}\n\techo {1,2,3}\n", fail_fast=True)


def test_no_broadcast_policy():
    text = "{super} + {a,b}\n\techo\n"
    assert len(parse_config(text).bindings) == 2
    config = parse_config(text, broadcast=False)
    assert isinstance(config.errors[0], ExpansionError)


MODES = textwrap.dedent(
    """\
    super + r
    \t@enter resize
    mode resize swallow oneoff
    {h,l}
    \tresize {left,right}
    ignore super + r
    endmode
    """
)


def test_read_config_yields_modes():
    items = list(read_config(MODES))
    assert [type(item) for item in items] == [Entry, Mode, Entry, Entry]
    mode = items[1]
    assert (mode.name, mode.swallow, mode.oneoff, mode.line) == (
        "resize",
        True,
        True,
        3,
    )
    assert items[2].mode == "resize"
    assert items[0].mode is None


def test_mode_bindings():
    config = parse_config(MODES)
    assert config.errors == []
    assert [str(b) for b in config.bindings] == ["super + r: @enter resize"]
    (mode,) = config.modes
    assert [str(b) for b in mode.bindings] == [
        "h: resize left",
        "l: resize right",
        "ignore super + r",
    ]
    assert all(b.mode == "resize" for b in mode.bindings)
    assert len(list(config.iter_bindings())) == 4


@pytest.mark.parametrize(
    "text, line",
    [
        ("mode a\nmode b\nendmode\n", 2),
        ("endmode\n", 1),
        ("mode a\n", 1),
        ("mode\nendmode\n", 1),
        ("mode a bogus\nendmode\n", 1),
        ("mode a\ninclude other\nendmode\n", 2),
    ],
)
def test_mode_errors(text, line):
    config = parse_config(text)
    assert [e.line for e in config.errors][:1] == [line]
    assert all(isinstance(e, ConfigSyntaxError) for e in config.errors)


def test_include_statements():
    config = parse_config("include ~/other  # more\nsuper + a\n\techo\n")
    assert config.includes == [Include("~/other", line=1)]
    assert len(config.bindings) == 1


def test_keyword_prefix_is_not_a_keyword():
    # 'modeX' isn't a mode statement, so it's parsed as a (bad) trigger.
    config = parse_config("modeX\n\techo\n")
    assert isinstance(config.errors[0], ConfigSyntaxError)
    assert config.modes == []


def test_load_config_follows_includes(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "extra").write_text(
        "super + b\n\techo b\nsuper + {x\n\techo\n"
    )
    main = tmp_path / "swhkdrc"
    main.write_text("include sub/extra\nsuper + a\n\techo a\n")

    config = load_config(main)
    assert [b.command for b in config.bindings] == ["echo a", "echo b"]
    (err,) = config.errors
    assert err.path.endswith("extra")
    assert err.line == 3
    assert config.path == str(main)


def test_load_config_expands_env_vars(tmp_path, monkeypatch):
    (tmp_path / "extra").write_text("super + b\n\techo b\n")
    monkeypatch.setenv("HOTKEY_DIR", str(tmp_path))
    main = tmp_path / "swhkdrc"
    main.write_text("include $HOTKEY_DIR/extra\n")
    config = load_config(main)
    assert [b.command for b in config.bindings] == ["echo b"]


def test_load_config_include_cycle(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.write_text("include second\nsuper + a\n\techo a\n")
    second.write_text("include first\nsuper + b\n\techo b\n")
    config = load_config(first)
    assert config.errors == []
    assert [b.command for b in config.bindings] == ["echo a", "echo b"]


def test_load_config_missing_include(tmp_path):
    main = tmp_path / "swhkdrc"
    main.write_text("include nowhere\nsuper + a\n\techo a\n")
    config = load_config(main)
    (err,) = config.errors
    assert isinstance(err, ConfigReadError)
    assert err.kind == "read"
    assert err.line == 1
    assert len(config.bindings) == 1
    with pytest.raises(ConfigReadError):
        load_config(main, fail_fast=True)


def test_load_config_without_includes(tmp_path):
    main = tmp_path / "swhkdrc"
    main.write_text("include nowhere\nsuper + a\n\techo a\n")
    config = load_config(main, follow_includes=False)
    assert config.errors == []
    assert len(config.includes) == 1
