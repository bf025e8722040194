"""Classes and functions for triggers, commands, and config entries.

Terminology:
    Trigger: The modifiers and key needed to activate a command, possibly
        containing alternation groups of the form {s1,s2,...,sn}.
    Command: The command template passed to the shell when the trigger fires.
    Entry: One statement of the config, pairing a trigger with a command, or
        marking the trigger to be unbound (`ignore`).
    Chord: A fully resolved trigger, free of alternation groups.
    Binding: A chord together with the one command it runs.

Trigger and CommandTemplate objects are parsed from `LogicalLine` objects by
their `parse` methods.  The expansion of an `Entry` into `Binding` objects is
left to the `expand` module.
"""
from __future__ import annotations

import itertools as it
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    FrozenSet,
    List,
    NoReturn,
    Optional,
    Tuple,
    Type,
    Union,
)

from .errors import (
    ConfigSyntaxError,
    HotkeyConfigError,
    LexError,
    ValidationError,
)
from .lexer import LogicalLine, unescape_group_char
from .seq import KEY_ORDERINGS, SequenceSpan, Span, expand_range, parse_sequences

__all__ = [
    "AlternationGroup",
    "Binding",
    "Chord",
    "CommandTemplate",
    "Entry",
    "HotkeyToken",
    "KeyCombo",
    "KeyGroup",
    "KeySlot",
    "Modifier",
    "ModifierGroup",
    "ModifierOmissionGroup",
    "ModifierSlot",
    "Trigger",
]


class Modifier(Enum):
    """Enum of the modifiers that may precede a key.

    Parsed case-insensitively and always stored in lowercase.
    """

    SUPER = "super"
    CTRL = "ctrl"
    ALT = "alt"
    SHIFT = "shift"

    def __str__(self) -> str:
        return self.value


MODIFIERS: Dict[str, Modifier] = {mod.value: mod for mod in Modifier}
# Named keys and the canonical name each is stored under.
KEY_NAMES: Dict[str, str] = {"enter": "enter", "return": "enter"}

# Marks an alternative of a `ModifierOmissionGroup` that contributes nothing.
OMIT = None


@dataclass(frozen=True)
class KeyCombo:
    """A key along with its send (`~') and on-release (`@') flags."""

    key: str
    send: bool = False
    on_release: bool = False

    def __str__(self) -> str:
        prefix = ""
        if self.send:
            prefix += "~"
        if self.on_release:
            prefix += "@"
        return prefix + self.key


@dataclass
class ModifierSlot:
    """A single modifier, e.g. `super'."""

    modifier: Modifier
    line: int = -1
    col: int = -1
    offset: int = -1


@dataclass
class ModifierGroup:
    """An alternation of modifiers, e.g. `{super,alt}'."""

    choices: List[Modifier]
    line: int = -1
    col: int = -1
    offset: int = -1

    @property
    def cardinality(self) -> int:
        return len(self.choices)


@dataclass
class ModifierOmissionGroup:
    """An alternation of modifiers where `_' means no modifier, e.g. `{_,shift}'.

    Omitted alternatives are stored as `None`.
    """

    choices: List[Optional[Modifier]]
    line: int = -1
    col: int = -1
    offset: int = -1

    @property
    def cardinality(self) -> int:
        return len(self.choices)


@dataclass
class KeySlot:
    """A single key-combo, e.g. `~@a'."""

    combo: KeyCombo
    line: int = -1
    col: int = -1
    offset: int = -1


@dataclass
class KeyGroup:
    """An alternation of key-combos, with any ranges already expanded, e.g. `{a-c,@enter}'."""

    choices: List[KeyCombo]
    line: int = -1
    col: int = -1
    offset: int = -1

    @property
    def cardinality(self) -> int:
        return len(self.choices)


AnyModifierSlot = Union[ModifierSlot, ModifierGroup, ModifierOmissionGroup]
AnyKeySlot = Union[KeySlot, KeyGroup]
AlternationGroup = Union[
    ModifierGroup, ModifierOmissionGroup, KeyGroup, SequenceSpan
]


class _TriggerParseMode(Enum):
    SLOT = auto()  # initial state
    CONNECTIVE = auto()
    KEY_GOT_TILDE = auto()
    KEY_GOT_ATSIGN = auto()
    KEY_NAME = auto()
    KEY = auto()  # terminal state


@dataclass
class HotkeyToken:
    """Token used for parsing triggers.

    Generated by the static method Trigger.tokenize.

    See Trigger.TOKEN_SPEC for the token types.  After tokenizing, WORD and
    GROUP tokens are classified as MODIFIER or KEY and MODIFIER_GROUP or
    KEY_GROUP respectively, depending on whether a PLUS token follows them.

    Instance variables:
        type: the token type.
        value: the matched text.
        index: the index of the token in the logical line's text.
        items: for GROUP tokens, the tokens of each comma-separated alternative.
    """

    type: str
    value: str
    index: int
    items: List[List[HotkeyToken]] = field(default_factory=list, repr=False)


@dataclass
class Trigger:
    """The trigger of an entry: modifier slots followed by exactly one key slot.

    Instance variables:
        raw: the unexpanded trigger text, continuations folded.
        line: the starting line number.
        col: the starting column number.
        modifiers: the modifier slots in order of appearance.
        key: the key slot.
        offset: the character offset of the trigger in the whole document.
    """

    TOKEN_SPEC: ClassVar[List[Tuple[str, str]]] = [
        ("PLUS", r"\+"),
        ("LBRACE", r"\{"),
        ("RBRACE", r"\}"),
        ("COMMA", r","),
        ("DASH", r"-"),
        ("TILDE", r"~"),
        ("ATSIGN", r"@"),
        ("OMIT", r"_"),
        ("ESCAPE", r"\\."),
        ("WORD", r"[A-Za-z0-9]+"),
        ("COMMENT", r"#.*"),
        ("WHITESPACE", r"[ \t]+"),
        ("CHAR", r"."),
    ]
    TOKENIZER_RE: ClassVar["re.Pattern[str]"] = re.compile(
        "|".join("(?P<%s>%s)" % pair for pair in TOKEN_SPEC)
    )

    raw: str
    line: int
    col: int
    modifiers: List[AnyModifierSlot]
    key: AnyKeySlot
    offset: int = -1

    @property
    def groups(self) -> List[AlternationGroup]:
        """Return the alternation groups in textual order."""
        groups: List[AlternationGroup] = [
            slot for slot in self.modifiers if not isinstance(slot, ModifierSlot)
        ]
        if isinstance(self.key, KeyGroup):
            groups.append(self.key)
        return groups

    def __str__(self) -> str:
        return self.raw

    @staticmethod
    def tokenize(line: LogicalLine) -> List[HotkeyToken]:
        """Tokenize the trigger text of `line`, grouping braces into GROUP tokens.

        Whitespace and any trailing comment are dropped.  Tokens between a
        pair of braces are split on commas and stored in the `items` of a
        single GROUP token.
        """
        flat = []
        for m in Trigger.TOKENIZER_RE.finditer(line.text):
            type_ = m.lastgroup
            assert type_ is not None
            if type_ == "WHITESPACE":
                continue
            elif type_ == "COMMENT":
                break
            flat.append(HotkeyToken(type_, m.group(), m.start()))

        tokens: List[HotkeyToken] = []
        group: Optional[HotkeyToken] = None
        for tok in flat:
            if group is None:
                if tok.type == "LBRACE":
                    group = HotkeyToken("GROUP", tok.value, tok.index, [[]])
                elif tok.type == "RBRACE":
                    raise line.error(
                        ConfigSyntaxError, "Unmatched closing brace", tok.index
                    )
                else:
                    tokens.append(tok)
                continue
            group.value += tok.value
            if tok.type == "LBRACE":
                raise line.error(
                    ConfigSyntaxError, "No nested sequences allowed", tok.index
                )
            elif tok.type == "RBRACE":
                tokens.append(group)
                group = None
            elif tok.type == "COMMA":
                group.items.append([])
            else:
                group.items[-1].append(tok)
        if group is not None:
            raise line.error(
                LexError, "Input ended while parsing a sequence", len(line.text)
            )

        # Anything followed by '+' is in a modifier position.
        for i, tok in enumerate(tokens):
            followed_by_plus = i + 1 < len(tokens) and tokens[i + 1].type == "PLUS"
            if tok.type == "WORD":
                tok.type = "MODIFIER" if followed_by_plus else "KEY"
            elif tok.type == "GROUP":
                tok.type = "MODIFIER_GROUP" if followed_by_plus else "KEY_GROUP"
        return tokens

    @staticmethod
    def parse(line: LogicalLine) -> Trigger:
        """Parse the trigger text of `line` into a `Trigger`.

        Raises ConfigSyntaxError for tokens out of place, ValidationError for
        degenerate groups and ranges, and LexError for bad escapes or
        unterminated groups.
        """
        tokens = Trigger.tokenize(line)
        modifiers: List[AnyModifierSlot] = []
        key: Optional[AnyKeySlot] = None
        curr_send = False
        curr_on_release = False

        def _err(
            cls: Type[HotkeyConfigError], msg: str, index: int
        ) -> NoReturn:
            raise line.error(cls, msg, index)

        def _pos(tok: HotkeyToken) -> Dict[str, int]:
            pos = line.pos(tok.index)
            return {"line": pos.line, "col": pos.column, "offset": pos.offset}

        def on_MODIFIER(tok: HotkeyToken) -> None:
            mod = _parse_modifier(tok.value)
            if mod is None:
                _err(
                    ConfigSyntaxError,
                    f"Expected a modifier before '+' but got {tok.value!r}",
                    tok.index,
                )
            modifiers.append(ModifierSlot(mod, **_pos(tok)))

        def on_MODIFIER_GROUP(tok: HotkeyToken) -> None:
            modifiers.append(Trigger._parse_modifier_group(tok, line))

        def on_KEY(tok: HotkeyToken) -> None:
            nonlocal key
            name = _parse_key_name(tok.value, in_group=False)
            if name is None:
                if _parse_modifier(tok.value) is not None:
                    msg = f"Expected a key after the modifiers but got modifier {tok.value!r}"
                else:
                    msg = f"Invalid key {tok.value!r}"
                _err(ConfigSyntaxError, msg, tok.index)
            key = KeySlot(
                KeyCombo(name, send=curr_send, on_release=curr_on_release),
                **_pos(tok),
            )

        def on_KEY_GROUP(tok: HotkeyToken) -> None:
            nonlocal key
            key = Trigger._parse_key_group(tok, line)

        def on_TILDE(tok: HotkeyToken) -> None:
            nonlocal curr_send
            curr_send = True

        def on_ATSIGN(tok: HotkeyToken) -> None:
            nonlocal curr_on_release
            curr_on_release = True

        # Transitions from state-to-state based on received token,
        # with their callback functions upon transition.
        STATE_TABLE: Dict[
            _TriggerParseMode,
            Dict[str, Tuple[_TriggerParseMode, Callable[[HotkeyToken], None]]],
        ]
        STATE_TABLE = {
            _TriggerParseMode.SLOT: {
                "MODIFIER": (_TriggerParseMode.CONNECTIVE, on_MODIFIER),
                "MODIFIER_GROUP": (
                    _TriggerParseMode.CONNECTIVE,
                    on_MODIFIER_GROUP,
                ),
                "KEY": (_TriggerParseMode.KEY, on_KEY),
                "KEY_GROUP": (_TriggerParseMode.KEY, on_KEY_GROUP),
                "TILDE": (_TriggerParseMode.KEY_GOT_TILDE, on_TILDE),
                "ATSIGN": (_TriggerParseMode.KEY_GOT_ATSIGN, on_ATSIGN),
            },
            _TriggerParseMode.CONNECTIVE: {
                "PLUS": (_TriggerParseMode.SLOT, lambda tok: None),
            },
            _TriggerParseMode.KEY_GOT_TILDE: {
                "ATSIGN": (_TriggerParseMode.KEY_NAME, on_ATSIGN),
                "KEY": (_TriggerParseMode.KEY, on_KEY),
            },
            # The send marker must come before the release marker.
            _TriggerParseMode.KEY_GOT_ATSIGN: {
                "KEY": (_TriggerParseMode.KEY, on_KEY),
            },
            _TriggerParseMode.KEY_NAME: {
                "KEY": (_TriggerParseMode.KEY, on_KEY),
            },
            _TriggerParseMode.KEY: {},
        }

        mode = _TriggerParseMode.SLOT
        for token in tokens:
            transition_table = STATE_TABLE[mode]
            if token.type not in transition_table:
                if transition_table:
                    expected = ", ".join(transition_table)
                    msg = f"Unexpected {token.value!r}: expected one of {expected}"
                else:
                    msg = f"Unexpected {token.value!r} after the key"
                _err(ConfigSyntaxError, msg, token.index)
            next_mode, callback = transition_table[token.type]
            callback(token)
            mode = next_mode
        if mode != _TriggerParseMode.KEY:
            _err(ConfigSyntaxError, "Missing key in trigger", len(line.text))
        assert key is not None

        start = line.pos(tokens[0].index)
        return Trigger(
            raw=_strip_comment(line.text).strip(" \t"),
            line=start.line,
            col=start.column,
            modifiers=modifiers,
            key=key,
            offset=start.offset,
        )

    @staticmethod
    def _parse_modifier_group(
        tok: HotkeyToken, line: LogicalLine
    ) -> Union[ModifierGroup, ModifierOmissionGroup]:
        pos = line.pos(tok.index)
        choices: List[Optional[Modifier]] = []
        for item in tok.items:
            if not item:
                raise line.error(
                    ValidationError,
                    "Empty alternative in modifier group"
                    if len(tok.items) > 1
                    else "Empty modifier group",
                    tok.index,
                    snippet=tok.value,
                )
            if len(item) == 1 and item[0].type == "OMIT":
                choices.append(OMIT)
                continue
            mod = None
            if len(item) == 1 and item[0].type == "WORD":
                mod = _parse_modifier(item[0].value)
            if mod is None:
                text = "".join(t.value for t in item)
                raise line.error(
                    ConfigSyntaxError,
                    f"Expected a modifier or '_' in modifier group but got {text!r}",
                    item[0].index,
                    snippet=tok.value,
                )
            choices.append(mod)

        if OMIT not in choices:
            return ModifierGroup(
                [c for c in choices if c is not None],
                pos.line,
                pos.column,
                pos.offset,
            )
        if len(choices) < 2 or all(c is OMIT for c in choices):
            raise line.error(
                ValidationError,
                "Modifier group with '_' needs at least one modifier to alternate with",
                tok.index,
                snippet=tok.value,
            )
        return ModifierOmissionGroup(
            choices, pos.line, pos.column, pos.offset
        )

    @staticmethod
    def _parse_key_group(tok: HotkeyToken, line: LogicalLine) -> KeyGroup:
        pos = line.pos(tok.index)
        choices: List[KeyCombo] = []
        for item in tok.items:
            if not item:
                raise line.error(
                    ValidationError,
                    "Empty alternative in key group"
                    if len(tok.items) > 1
                    else "Empty key group",
                    tok.index,
                    snippet=tok.value,
                )
            dashes = [i for i, t in enumerate(item) if t.type == "DASH"]
            if dashes:
                if len(item) != 3 or dashes != [1]:
                    raise line.error(
                        ConfigSyntaxError,
                        "Key range must be of the form 'x-y' (escape '-' to use it literally)",
                        item[0].index,
                        snippet=tok.value,
                    )
                start = _key_group_char(item[0], line)
                end = _key_group_char(item[2], line)
                try:
                    expanded = expand_range(start, end, KEY_ORDERINGS)
                except ValidationError as e:
                    item_pos = line.pos(item[0].index)
                    raise e.at(item_pos.line, item_pos.column, item_pos.offset)
                choices.extend(KeyCombo(k) for k in expanded)
                continue

            send = on_release = False
            rest = item
            if rest[0].type == "TILDE" and len(rest) > 1:
                send = True
                rest = rest[1:]
            if rest[0].type == "ATSIGN" and len(rest) > 1:
                on_release = True
                rest = rest[1:]
            if len(rest) != 1:
                text = "".join(t.value for t in item)
                raise line.error(
                    ConfigSyntaxError,
                    f"Invalid key {text!r} in key group",
                    item[0].index,
                    snippet=tok.value,
                )
            choices.append(
                KeyCombo(_key_group_char(rest[0], line), send, on_release)
            )
        return KeyGroup(choices, pos.line, pos.column, pos.offset)


def _strip_comment(text: str) -> str:
    for m in Trigger.TOKENIZER_RE.finditer(text):
        if m.lastgroup == "COMMENT":
            return text[: m.start()]
    return text


def _parse_modifier(word: str) -> Optional[Modifier]:
    return MODIFIERS.get(word.lower())


def _parse_key_name(word: str, in_group: bool) -> Optional[str]:
    lowered = word.lower()
    if lowered in KEY_NAMES:
        return KEY_NAMES[lowered]
    if len(word) == 1 and (word.isalnum() or in_group):
        return lowered
    return None


def _key_group_char(tok: HotkeyToken, line: LogicalLine) -> str:
    """Return the key named by a single token inside a key group."""
    if tok.type == "ESCAPE":
        literal = unescape_group_char(tok.value[1])
        if literal is None:
            raise line.error(
                LexError, f"Invalid escape {tok.value!r} in key group", tok.index
            )
        return literal
    if tok.type == "CHAR" and tok.value == "\\":
        raise line.error(
            LexError, "Input ended while escaping a character", tok.index
        )
    if tok.type in ("WORD", "CHAR", "OMIT", "PLUS", "TILDE", "ATSIGN"):
        name = _parse_key_name(tok.value, in_group=True)
        if name is not None:
            return name
    raise line.error(
        ConfigSyntaxError, f"Invalid key {tok.value!r} in key group", tok.index
    )


@dataclass
class CommandTemplate:
    """The command for an entry: literal text interleaved with sequences.

    Instance variables:
        raw: the unexpanded command text, continuations folded.
        line: the starting line number.
        spans: the `TextSpan` and `SequenceSpan` levels of the command.
    """

    raw: str
    line: int
    spans: List[Span] = field(repr=False)

    @property
    def groups(self) -> List[SequenceSpan]:
        """Return the sequences in textual order."""
        return [span for span in self.spans if isinstance(span, SequenceSpan)]

    def __str__(self) -> str:
        return self.raw

    @staticmethod
    def parse(line: LogicalLine) -> CommandTemplate:
        """Parse the command text of `line`, ignoring its indentation."""
        text = line.text
        start = len(text) - len(text.lstrip(" \t"))
        stripped = line.sub(start)
        end = len(stripped.text.rstrip(" \t"))
        stripped = LogicalLine(
            stripped.text[:end],
            stripped.positions[:end],
            stripped.pos(end),
        )
        return CommandTemplate(
            raw=stripped.text,
            line=stripped.line,
            spans=parse_sequences(stripped),
        )


@dataclass
class Entry:
    """One statement of the config.

    Instance variables:
        trigger: the `Trigger` of the entry.
        command: the `CommandTemplate` to run, or `None` for unbind entries.
        line: the line of the statement.
        mode: the name of the enclosing mode block, or `None` at the top level.
    """

    trigger: Trigger
    command: Optional[CommandTemplate]
    line: int
    mode: Optional[str] = None

    @property
    def unbind(self) -> bool:
        """Return whether this is an `ignore` statement."""
        return self.command is None


@dataclass(frozen=True, eq=False)
class Chord:
    """A fully resolved trigger.

    The modifiers form a set: they are kept in order of first appearance for
    stable output, but the order doesn't affect equality.

    Instance variables:
        modifiers: the modifiers, without duplicates.
        key: the key name.
        send: whether the key event is sent on to other clients (`~').
        on_release: whether the binding fires on key-release (`@').
    """

    modifiers: Tuple[Modifier, ...]
    key: str
    send: bool = False
    on_release: bool = False

    @property
    def modifier_set(self) -> FrozenSet[Modifier]:
        return frozenset(self.modifiers)

    def _key(self) -> Tuple[Any, ...]:
        return (self.modifier_set, self.key, self.send, self.on_release)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chord):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        combo = KeyCombo(self.key, self.send, self.on_release)
        return " + ".join(
            it.chain((mod.value for mod in self.modifiers), [str(combo)])
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modifiers": [mod.value for mod in self.modifiers],
            "key": self.key,
            "send": self.send,
            "on_release": self.on_release,
        }


@dataclass(frozen=True)
class Binding:
    """A chord and the command it runs, or an unbind record when `command` is `None`.

    Instance variables:
        trigger: the resolved `Chord`.
        command: the resolved command text, or `None` for unbind records.
        line: the line of the statement it was expanded from.
        mode: the name of the enclosing mode block, or `None` at the top level.
    """

    trigger: Chord
    command: Optional[str]
    line: Optional[int] = field(default=None, compare=False)
    mode: Optional[str] = None

    @property
    def unbind(self) -> bool:
        return self.command is None

    def __str__(self) -> str:
        if self.command is None:
            return f"ignore {self.trigger}"
        return f"{self.trigger}: {self.command}"

    def to_dict(self) -> Dict[str, Any]:
        """Return the binding as a JSON-serializable dict."""
        out: Dict[str, Any] = {"trigger": self.trigger.to_dict()}
        if self.command is None:
            out["unbind"] = True
        else:
            out["command"] = self.command
        if self.mode is not None:
            out["mode"] = self.mode
        out["line"] = self.line
        return out
