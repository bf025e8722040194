import json
import os

import pytest

from swhkd_parser.cli import hkcheck, hkdebug, hkexport
from swhkd_parser.cli.common import Message, format_error_msg
from swhkd_parser.errors import ConfigSyntaxError


@pytest.fixture
def config_file(tmp_path):
    def _write(text):
        path = tmp_path / "swhkdrc"
        path.write_text(text)
        return str(path)

    return _write


def test_format_error_msg():
    err = ConfigSyntaxError("Missing key in trigger", line=3, column=8)
    assert format_error_msg(err, "rc") == "rc:3:8: syntax error: Missing key in trigger"
    err.path = "other"
    assert format_error_msg(err, "rc").startswith("other:3:8:")
    assert format_error_msg(Message(2, None, "Duplicate"), "rc") == "rc:2: Duplicate"


def test_hkcheck_clean(config_file, capsys):
    path = config_file("super + {a,b}\n\techo {1,2}\n")
    assert hkcheck.main(["-c", path]) == 0
    assert capsys.readouterr().out == ""


def test_hkcheck_reports_errors(config_file, capsys):
    path = config_file("shift + k + m\n\techo\nsuper + {a,b,c}\n\techo {x,y}\n")
    assert hkcheck.main(["-c", path]) == 1
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith(f"{path}:1:9: syntax error:")
    assert lines[1].startswith(f"{path}:4:7: expansion error:")


def test_hkcheck_duplicates(config_file, capsys):
    path = config_file(
        "super + shift + a\n\techo 1\nshift + super + {a,b}\n\techo 2\n"
    )
    assert hkcheck.main(["-c", path]) == 1
    out = capsys.readouterr().out.splitlines()
    assert out == [
        f"{path}:1: Duplicate trigger 'super + shift + a'",
        f"{path}:3: Duplicate trigger 'super + shift + a'",
    ]


def test_hkcheck_duplicates_in_different_modes(config_file, capsys):
    path = config_file("super + a\n\techo\nmode m\nsuper + a\n\techo\nendmode\n")
    assert hkcheck.main(["-c", path]) == 0


def test_hkcheck_single_alternative(config_file, capsys):
    path = config_file("super + {a}\n\techo\n")
    assert hkcheck.main(["-c", path]) == 1
    out = capsys.readouterr().out
    assert f"{path}:1:9: Group with only one element" in out


def test_hkcheck_single_alternative_in_include(tmp_path, capsys):
    extra = tmp_path / "extra"
    extra.write_text("super + b\n\techo b\nsuper + {c}\n\techo c\n")
    main = tmp_path / "swhkdrc"
    main.write_text("include extra\nsuper + a\n\techo a\n")
    assert hkcheck.main(["-c", str(main)]) == 1
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 1
    expected = f"{os.path.realpath(extra)}:3:9: Group with only one element"
    assert out[0].startswith(expected)


def test_hkcheck_fail_fast(config_file, capsys):
    path = config_file("super + {a\n\techo\nshift + k + m\n\techo\n")
    assert hkcheck.main(["-c", path, "--fail-fast"]) == 1
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 1
    assert out[0].endswith("[FATAL]")


def test_hkexport_txt(config_file, capsys):
    path = config_file(
        "super + {a,b}\n\techo {1,2}\nmode m oneoff\nignore x\nendmode\n"
    )
    assert hkexport.main(["-c", path]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "super + a",
        "\techo 1",
        "super + b",
        "\techo 2",
        "mode m oneoff",
        "\tignore x",
        "endmode",
    ]


def test_hkexport_json(config_file, capsys):
    path = config_file("ignore super + q\nsuper + {a,b}\n\techo {1,2}\n")
    assert hkexport.main(["-c", path, "--format", "json", "--no-unbinds"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["modes"] == []
    assert [b["command"] for b in out["bindings"]] == ["echo 1", "echo 2"]
    assert out["bindings"][0]["trigger"]["key"] == "a"


def test_hkexport_reports_errors(config_file, capsys):
    path = config_file("super + {a\n\techo\nsuper + b\n\techo b\n")
    assert hkexport.main(["-c", path]) == 1
    captured = capsys.readouterr()
    assert "lex error" in captured.err
    assert captured.out.splitlines() == ["super + b", "\techo b"]


def test_hkdebug(config_file, capsys):
    path = config_file(
        "include extra\nsuper + {_,shift} + {a,b}\n\techo {x,y} {1,2}\n"
    )
    assert hkdebug.main(["-c", path]) == 0
    out = capsys.readouterr().out
    assert "Include 'extra' (line 1)" in out
    assert "omission group ['_', 'shift']" in out
    assert "\t\t['x', 'y']" in out
    assert "Expansion (2):" in out
    assert "\tsuper + a: echo x 1" in out
    assert "\tsuper + shift + b: echo y 2" in out
