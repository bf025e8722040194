"""Expansion of config entries into concrete bindings.

The alternation groups of a trigger and of its command are kept in lockstep:
the j-th binding takes the j-th alternative of every group.  Groups are
paired up by their position within each side, so the i-th group of the trigger
goes with the i-th group of the command.

The cardinality k of an entry is the largest cardinality among its trigger
groups.  Under the broadcast rule, any group with a single alternative reuses
that alternative for every binding; every other group must have exactly k
alternatives.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from .errors import ExpansionError
from .parser import (
    AlternationGroup,
    Binding,
    Chord,
    Entry,
    KeyCombo,
    KeyGroup,
    KeySlot,
    Modifier,
    ModifierGroup,
    ModifierOmissionGroup,
    ModifierSlot,
    Trigger,
)
from .seq import SequenceSpan, TextSpan

__all__ = ["entry_cardinality", "expand_entry"]

logger = logging.getLogger(__name__)


def _pick(
    group: Union[ModifierGroup, ModifierOmissionGroup, KeyGroup, SequenceSpan],
    j: int,
) -> object:
    """Return the j-th alternative of `group`, or its sole one if broadcasting."""
    if group.cardinality == 1:
        return group.choices[0]
    return group.choices[j]


def _mismatch(
    entry: Entry,
    message: str,
    trigger_cardinality: Optional[int] = None,
    command_cardinality: Optional[int] = None,
    group_index: Optional[int] = None,
    group: Optional[AlternationGroup] = None,
) -> ExpansionError:
    trigger = entry.trigger
    line, col, offset = trigger.line, trigger.col, trigger.offset
    if group is not None:
        line, col, offset = group.line, group.col, group.offset
    snippet = entry.trigger.raw
    if entry.command is not None:
        snippet = f"{snippet}\n{entry.command.raw}"
    return ExpansionError(
        message,
        trigger_cardinality=trigger_cardinality,
        command_cardinality=command_cardinality,
        group_index=group_index,
        line=line,
        column=col,
        offset=offset,
        snippet=snippet,
    )


def entry_cardinality(entry: Entry, broadcast: bool = True) -> int:
    """Validate the alternation groups of `entry` and return how many bindings it expands to.

    Raises ExpansionError if the groups don't line up.  With `broadcast`
    disabled, single-alternative groups get no special treatment.
    """
    trigger_groups = entry.trigger.groups
    cards = [group.cardinality for group in trigger_groups]
    k = max(cards, default=1)

    def _fits(card: int, expected: int) -> bool:
        return card == expected or (broadcast and card == 1)

    for i, group in enumerate(trigger_groups):
        if not _fits(group.cardinality, k):
            raise _mismatch(
                entry,
                f"Trigger group {i + 1} has {group.cardinality} alternatives but another trigger group has {k}",
                trigger_cardinality=k,
                group_index=i,
                group=group,
            )

    if entry.command is None:
        return k
    command_groups = entry.command.groups
    if not trigger_groups:
        for i, group in enumerate(command_groups):
            if group.cardinality != 1:
                raise _mismatch(
                    entry,
                    f"Command group {i + 1} has {group.cardinality} alternatives but the trigger has no groups",
                    trigger_cardinality=1,
                    command_cardinality=group.cardinality,
                    group_index=i,
                    group=group,
                )
        return k
    if command_groups and len(command_groups) != len(trigger_groups):
        raise _mismatch(
            entry,
            f"The trigger has {len(trigger_groups)} groups but the command has {len(command_groups)}",
        )
    for i, (tgroup, cgroup) in enumerate(zip(trigger_groups, command_groups)):
        if not _fits(cgroup.cardinality, tgroup.cardinality):
            raise _mismatch(
                entry,
                f"The number of trigger alternatives {tgroup.cardinality} does not equal the number of command alternatives {cgroup.cardinality} in group {i + 1}",
                trigger_cardinality=tgroup.cardinality,
                command_cardinality=cgroup.cardinality,
                group_index=i,
                group=cgroup,
            )
    return k


def _resolve_chord(trigger: Trigger, j: int) -> Chord:
    modifiers: List[Modifier] = []
    for slot in trigger.modifiers:
        if isinstance(slot, ModifierSlot):
            mod: Optional[Modifier] = slot.modifier
        else:
            assert isinstance(slot, (ModifierGroup, ModifierOmissionGroup))
            mod = _pick(slot, j)  # type: ignore[assignment]
        # Omitted, or a duplicate that collapses into the set.
        if mod is None or mod in modifiers:
            continue
        modifiers.append(mod)

    if isinstance(trigger.key, KeySlot):
        combo = trigger.key.combo
    else:
        assert isinstance(trigger.key, KeyGroup)
        combo = _pick(trigger.key, j)  # type: ignore[assignment]
    assert isinstance(combo, KeyCombo)
    return Chord(tuple(modifiers), combo.key, combo.send, combo.on_release)


def _resolve_command(spans: Sequence[object], j: int) -> str:
    parts = []
    for span in spans:
        if isinstance(span, TextSpan):
            parts.append(span.text)
        else:
            assert isinstance(span, SequenceSpan)
            choice = _pick(span, j)
            assert isinstance(choice, TextSpan)
            parts.append(choice.text)
    return "".join(parts)


def expand_entry(entry: Entry, broadcast: bool = True) -> List[Binding]:
    """Expand `entry` into its bindings, in ascending order of alternative index.

    Unbind entries expand only their trigger groups and give unbind records.
    Raises ExpansionError if the alternation groups don't line up.
    """
    k = entry_cardinality(entry, broadcast=broadcast)
    bindings = []
    for j in range(k):
        chord = _resolve_chord(entry.trigger, j)
        command = None
        if entry.command is not None:
            command = _resolve_command(entry.command.spans, j)
        bindings.append(
            Binding(chord, command, line=entry.line, mode=entry.mode)
        )
    logger.debug(
        "line %d: expanded %r into %d binding(s)",
        entry.line,
        entry.trigger.raw,
        len(bindings),
    )
    return bindings
