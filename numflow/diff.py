"""
Per-key transition planning between two renders of a number.

Matches parts of two `Data` instances by key and classifies every slot, which
is all an animation layer needs to roll digits in place, slide new digits in
and fade symbols in or out.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass
from enum import StrEnum, unique

# Local ----------------------------------------------------------------------------------------------------------------
from .parts import DIGIT_TYPES, Data, KeyedNumberPart


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class ChangeKind(StrEnum):
    """
    Kinds of per-key changes between two renders.

    ENTER: key is new, the part appears.
    EXIT: key is gone, or a symbol's text changed and the old part leaves.
    UPDATE: digit slot kept its key and changed value, the digit rolls.
    KEEP: part is unchanged.
    """
    ENTER = "enter"
    EXIT = "exit"
    UPDATE = "update"
    KEEP = "keep"


@dataclass(frozen=True)
class PartChange:
    """One entry of a render transition plan."""
    kind: ChangeKind
    key: str
    before: KeyedNumberPart | None = None
    after: KeyedNumberPart | None = None

    @property
    def delta(self) -> int:
        """Digit difference for UPDATE changes, 0 otherwise."""
        if self.kind is ChangeKind.UPDATE:
            return self.after.value - self.before.value
        return 0


# Methods --------------------------------------------------------------------------------------------------------------

def diff(before: Data | None, after: Data | None) -> tuple[PartChange, ...]:
    """
    Plan the transition from one render to the next.

    Changes for the parts of `after` come first, in render order; symbols whose
    text changed yield an EXIT of the old part directly followed by an ENTER of
    the new one. EXIT changes for keys missing from `after` follow, in the
    render order of `before`.

    Either side may be None (no previous render, or an abstained render), in
    which case every part of the other side enters or exits.

    Examples:
        >>> [(c.kind, c.key) for c in diff(to_keyed_parts(99), to_keyed_parts(100))]
        [('enter', 'integer:2'), ('update', 'integer:1'), ('update', 'integer:0')]
    """
    before_parts = before.parts if before is not None else ()
    after_parts = after.parts if after is not None else ()
    previous = {part.key: part for part in before_parts}
    current = {part.key for part in after_parts}

    changes: list[PartChange] = []
    for part in after_parts:
        old = previous.get(part.key)
        if old is None:
            changes.append(PartChange(ChangeKind.ENTER, part.key, after=part))
        elif old == part:
            changes.append(PartChange(ChangeKind.KEEP, part.key, before=old, after=part))
        elif part.type in DIGIT_TYPES and old.type == part.type:
            changes.append(PartChange(ChangeKind.UPDATE, part.key, before=old, after=part))
        else:
            changes.append(PartChange(ChangeKind.EXIT, part.key, before=old))
            changes.append(PartChange(ChangeKind.ENTER, part.key, after=part))

    for part in before_parts:
        if part.key not in current:
            changes.append(PartChange(ChangeKind.EXIT, part.key, before=part))

    return tuple(changes)


def trend(before: Data | int | float | None, after: Data | int | float) -> int:
    """
    Direction of a value change: 1 for an increase, -1 for a decrease, 0 otherwise.

    Accepts Data instances or plain numbers. A missing or NaN side gives 0.

    Examples:
        >>> trend(to_keyed_parts(99), to_keyed_parts(100))
        1
        >>> trend(None, 5)
        0
    """
    if before is None or after is None:
        return 0
    old = before.value if isinstance(before, Data) else before
    new = after.value if isinstance(after, Data) else after
    if new > old:
        return 1
    if new < old:
        return -1
    return 0
