import pytest

from swhkd_parser.errors import ExpansionError
from swhkd_parser.expand import entry_cardinality, expand_entry
from swhkd_parser.parser import Binding, Chord, Entry, Modifier
from swhkd_parser.util import read_config


def entry(text):
    (item,) = list(read_config(text))
    assert isinstance(item, Entry), item
    return item


def expand(text, **kwargs):
    return expand_entry(entry(text), **kwargs)


def test_single_binding():
    bindings = expand("super + shift + a\n\techo hi")
    assert bindings == [
        Binding(Chord((Modifier.SUPER, Modifier.SHIFT), "a"), "echo hi")
    ]
    assert bindings[0].line == 1


def test_key_group_with_plain_command():
    bindings = expand("super + {a,b,c}\n\techo same")
    assert [b.trigger.key for b in bindings] == ["a", "b", "c"]
    assert {b.command for b in bindings} == {"echo same"}
    assert all(b.trigger.modifiers == (Modifier.SUPER,) for b in bindings)


def test_positional_pairing():
    bindings = expand("super + {h,j,k,l}\n\tbspc node -f {west,south,north,east}")
    assert [(b.trigger.key, b.command) for b in bindings] == [
        ("h", "bspc node -f west"),
        ("j", "bspc node -f south"),
        ("k", "bspc node -f north"),
        ("l", "bspc node -f east"),
    ]


def test_cardinality_mismatch():
    with pytest.raises(ExpansionError) as excinfo:
        expand("super + {a,b,c}\n\techo {x,y}")
    err = excinfo.value
    assert err.kind == "expansion"
    assert err.trigger_cardinality == 3
    assert err.command_cardinality == 2
    assert err.group_index == 0
    assert (err.line, err.column, err.offset) == (2, 7, 22)
    assert err.snippet == "super + {a,b,c}\necho {x,y}"


def test_trigger_groups_must_agree():
    with pytest.raises(ExpansionError):
        expand("{super,alt} + {a,b,c}\n\techo")


def test_group_count_mismatch():
    with pytest.raises(ExpansionError):
        expand("super + {a,b}\n\techo {x,y} {1,2}")


def test_ranges():
    bindings = expand("super + {a-e}\n\tworkspace {1-5}")
    assert [(b.trigger.key, b.command) for b in bindings] == [
        ("a", "workspace 1"),
        ("b", "workspace 2"),
        ("c", "workspace 3"),
        ("d", "workspace 4"),
        ("e", "workspace 5"),
    ]


def test_omission_group_pairs_by_index():
    bindings = expand("{_,ctrl} + {a,b}\n\techo")
    assert [b.trigger for b in bindings] == [
        Chord((), "a"),
        Chord((Modifier.CTRL,), "b"),
    ]


def test_omission_group_with_command():
    bindings = expand("super + {_,shift} + {1-2}\n\tmove {focus,send} {1-2}")
    assert [(str(b.trigger), b.command) for b in bindings] == [
        ("super + 1", "move focus 1"),
        ("super + shift + 2", "move send 2"),
    ]


def test_modifier_group():
    bindings = expand("{super,alt} + {a,b}\n\techo {1,2} {x,y}")
    assert [str(b.trigger) for b in bindings] == ["super + a", "alt + b"]
    assert [b.command for b in bindings] == ["echo 1 x", "echo 2 y"]


def test_modifier_group_with_plain_command():
    bindings = expand("{super,alt} + {a,b}\n\techo")
    assert [str(b.trigger) for b in bindings] == ["super + a", "alt + b"]
    assert {b.command for b in bindings} == {"echo"}


def test_fewer_command_groups_than_trigger_groups():
    with pytest.raises(ExpansionError) as excinfo:
        expand("\n\n{super,alt} + {a,b}\n\techo {1,2}")
    err = excinfo.value
    assert err.group_index is None
    assert (err.line, err.column, err.offset) == (3, 1, 2)
    assert err.snippet == "{super,alt} + {a,b}\necho {1,2}"


def test_broadcast_single_alternative():
    bindings = expand("{super} + {a,b}\n\techo {x} {1,2}")
    assert [(str(b.trigger), b.command) for b in bindings] == [
        ("super + a", "echo x 1"),
        ("super + b", "echo x 2"),
    ]


def test_broadcast_disabled():
    with pytest.raises(ExpansionError):
        expand("{super} + {a,b}\n\techo", broadcast=False)
    assert len(expand("super + {a,b}\n\techo {1,2}", broadcast=False)) == 2


def test_command_groups_without_trigger_groups():
    assert expand("super + a\n\techo {x}")[0].command == "echo x"
    with pytest.raises(ExpansionError) as excinfo:
        expand("super + a\n\techo {x,y}")
    assert excinfo.value.command_cardinality == 2


def test_duplicate_modifiers_collapse():
    (binding,) = expand("super + {super} + a\n\techo")
    assert binding.trigger.modifiers == (Modifier.SUPER,)


def test_chord_equality_ignores_modifier_order():
    first = Chord((Modifier.SUPER, Modifier.SHIFT), "a")
    second = Chord((Modifier.SHIFT, Modifier.SUPER), "a")
    assert first == second
    assert hash(first) == hash(second)
    assert first != Chord((Modifier.SUPER,), "a")
    assert first != Chord((Modifier.SUPER, Modifier.SHIFT), "a", send=True)


def test_unbind_expands_trigger_groups_only():
    bindings = expand("ignore super + {a,b}")
    assert [b.trigger.key for b in bindings] == ["a", "b"]
    assert all(b.unbind and b.command is None for b in bindings)


def test_escaped_delimiter_survives_expansion():
    bindings = expand("super + {\\,,a}\n\techo {\\,,comma\\, too}")
    assert [(b.trigger.key, b.command) for b in bindings] == [
        (",", "echo ,"),
        ("a", "echo comma, too"),
    ]


def test_entry_cardinality():
    assert entry_cardinality(entry("super + a\n\techo")) == 1
    assert entry_cardinality(entry("{super,alt} + c\n\techo")) == 2


def test_binding_to_dict():
    (binding,) = expand("super + ~@a\n\techo hi")
    assert binding.to_dict() == {
        "trigger": {
            "modifiers": ["super"],
            "key": "a",
            "send": True,
            "on_release": True,
        },
        "command": "echo hi",
        "line": 1,
    }
    assert str(binding) == "super + ~@a: echo hi"
