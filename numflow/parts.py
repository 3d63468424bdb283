"""
Stably keyed number parts for animated number displays.

`to_keyed_parts()` turns a number into four ordered buckets of typed parts
(`pre`, `integer`, `fraction`, `post`) and gives every part a key that
identifies the same conceptual slot across renders. A consumer diffs two
`Data` instances by key to decide, per slot, whether a digit rolls to a new
value, a new digit slides in, or a symbol fades in or out.
"""

# ## Key stability
#
# Integer digits are keyed from the right: the units digit is always
# "integer:0" with place 0, the tens digit "integer:1" with place 1, and so on.
# Going from 99 to 100 therefore keeps both existing digit keys and adds a
# single "integer:2" at the front. Group separators are keyed from the right
# the same way.
#
# Fraction digits grow and shrink on the right, so they are keyed left to
# right: the first fraction digit is "fraction:0" with place -1.
#
# Keys of other symbols count occurrences per type in encounter order
# ("sign:0", "currency:0", "literal:0", "literal:1", ...).

# Standard library -----------------------------------------------------------------------------------------------------
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from .formatting import FormatPart, NumberFormat, NumberFormatter, PartType, PartsFormatter
from .numeric import plain_number
from .utils import fmt_type

logger = logging.getLogger(__name__)

DIGIT_TYPES = frozenset({PartType.INTEGER, PartType.FRACTION})

_SIGN_TYPES = frozenset({PartType.MINUS_SIGN, PartType.PLUS_SIGN})
_INVALID_TYPES = frozenset({PartType.NAN, PartType.INFINITY})


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class DigitPart:
    """A single decimal digit of the integer or fraction portion."""
    type: PartType
    value: int

    def keyed(self, key: str, place: int) -> "KeyedDigitPart":
        return KeyedDigitPart(self.type, self.value, key, place)


@dataclass(frozen=True)
class SymbolPart:
    """Any non-digit part: separators, signs, currency, affixes and literal text."""
    type: PartType
    value: str

    def keyed(self, key: str) -> "KeyedSymbolPart":
        return KeyedSymbolPart(self.type, self.value, key)


@dataclass(frozen=True)
class KeyedDigitPart(DigitPart):
    """
    Digit part with a stable key and a positional weight.

    Attributes:
        key: Identity of the digit slot, e.g. "integer:0".
        place: Power of ten of the digit: 0 for units, 1 for tens,
            -1 for tenths, -2 for hundredths.
    """
    key: str
    place: int


@dataclass(frozen=True)
class KeyedSymbolPart(SymbolPart):
    """Symbol part with a stable key, e.g. "group:0" or "currency:0"."""
    key: str


NumberPart = DigitPart | SymbolPart
KeyedNumberPart = KeyedDigitPart | KeyedSymbolPart


@dataclass(frozen=True)
class Data:
    """
    Keyed parts of one formatted number.

    Attributes:
        pre: Symbols before the numeric body (sign, currency, prefix).
        integer: Integer digits and group separators, most significant first.
        fraction: Decimal separator followed by fraction digits.
        post: Symbols after the numeric body (percent sign, unit, suffix).
        value_as_string: Full rendered text with overrides applied.
        value: The formatted number as a plain int or float.

    Examples:
        >>> data = to_keyed_parts(1234.5)
        >>> str(data)
        '1,234.5'
        >>> [p.key for p in data.integer]
        ['integer:3', 'group:0', 'integer:2', 'integer:1', 'integer:0']
    """
    pre: tuple[KeyedSymbolPart, ...]
    integer: tuple[KeyedNumberPart, ...]
    fraction: tuple[KeyedNumberPart, ...]
    post: tuple[KeyedSymbolPart, ...]
    value_as_string: str
    value: int | float

    def __str__(self) -> str:
        return self.value_as_string

    @property
    def parts(self) -> tuple[KeyedNumberPart, ...]:
        """All parts in render order."""
        return self.pre + self.integer + self.fraction + self.post

    @property
    def keys(self) -> tuple[str, ...]:
        """All part keys in render order."""
        return tuple(part.key for part in self.parts)

    def get(self, key: str) -> KeyedNumberPart | None:
        """Return the part with the given key, or None."""
        for part in self.parts:
            if part.key == key:
                return part
        return None

    def to_dict(self) -> dict[str, Any]:
        """
        Return a JSON-ready representation.

        Each part becomes a dict with "type", "value" and "key", digit parts
        also carry "place". Bucket and field names are kept as is.
        """
        return {
            "pre": [_part_dict(p) for p in self.pre],
            "integer": [_part_dict(p) for p in self.integer],
            "fraction": [_part_dict(p) for p in self.fraction],
            "post": [_part_dict(p) for p in self.post],
            "value_as_string": self.value_as_string,
            "value": self.value,
        }


# Methods --------------------------------------------------------------------------------------------------------------

def to_keyed_parts(
        value,
        fmt: NumberFormat | PartsFormatter | None = None,
        overrides: Mapping[str, str] | None = None,
        prefix: str | None = None,
        suffix: str | None = None,
) -> Data | None:
    """
    Format a number into stably keyed parts.

    Parameters:
        value: Number to format: int, float, Decimal, Fraction or numeric text.
        fmt: NumberFormat options, a ready NumberFormatter, or any object with a
            format_to_parts(value) method. None formats with NumberFormat() defaults.
        overrides: Replacement text per merged part type, e.g. {"group": " "}
            or {"sign": "−"}. Overrides change the displayed text only; keys,
            places and digit values are derived from the formatted number.
            Types that do not occur are ignored.
        prefix: Literal text placed before the formatted number, in `pre`.
        suffix: Literal text placed after the formatted number, in `post`.

    Returns:
        Data: The keyed parts, or None when value is NaN or infinite. Callers
        are expected to fall back to a plain rendering in that case.

    Raises:
        TypeError: If fmt or value has an unsupported type.
        babel.UnknownLocaleError: From the formatter, for an unknown locale.

    Examples:
        >>> [(p.key, p.place) for p in to_keyed_parts(99).integer]
        [('integer:1', 1), ('integer:0', 0)]
        >>> [(p.key, p.place) for p in to_keyed_parts(100).integer]
        [('integer:2', 2), ('integer:1', 1), ('integer:0', 0)]
        >>> to_keyed_parts(float("nan")) is None
        True
    """
    formatter = _formatter(fmt)
    overrides = {str(part_type): text for part_type, text in (overrides or {}).items()}

    raw_parts: list[FormatPart] = list(formatter.format_to_parts(value))
    if prefix:
        raw_parts.insert(0, FormatPart(PartType.PREFIX, prefix))
    if suffix:
        raw_parts.append(FormatPart(PartType.SUFFIX, suffix))

    counts: dict[PartType, int] = {}

    def next_key(part_type: PartType) -> tuple[str, int]:
        ordinal = counts.get(part_type, 0)
        counts[part_type] = ordinal + 1
        return f"{part_type}:{ordinal}", ordinal

    pre: list[KeyedSymbolPart] = []
    staged_integer: list[NumberPart] = []
    fraction: list[KeyedNumberPart] = []
    post: list[KeyedSymbolPart] = []

    value_as_string = ""
    seen_integer = seen_decimal = False
    for raw in raw_parts:
        part_type = PartType.SIGN if raw.type in _SIGN_TYPES else PartType(raw.type)
        if part_type in _INVALID_TYPES:
            logger.debug("no keyed parts for non-finite value %r", value)
            return None

        text = overrides.get(str(part_type), raw.value)
        value_as_string += text

        if part_type is PartType.INTEGER:
            seen_integer = True
            staged_integer.extend(DigitPart(part_type, int(digit)) for digit in raw.value)
        elif part_type is PartType.GROUP:
            staged_integer.append(SymbolPart(part_type, text))
        elif part_type is PartType.DECIMAL:
            seen_decimal = True
            fraction.append(SymbolPart(part_type, text).keyed(next_key(part_type)[0]))
        elif part_type is PartType.FRACTION:
            for digit in raw.value:
                key, ordinal = next_key(part_type)
                fraction.append(DigitPart(part_type, int(digit)).keyed(key, place=-1 - ordinal))
        else:
            bucket = post if seen_integer or seen_decimal else pre
            bucket.append(SymbolPart(part_type, text).keyed(next_key(part_type)[0]))

    # Key the integer bucket from the right, so slots keep their keys when digits are added on the left
    integer: list[KeyedNumberPart] = []
    for part in reversed(staged_integer):
        key, ordinal = next_key(part.type)
        integer.append(part.keyed(key, place=ordinal) if isinstance(part, DigitPart) else part.keyed(key))
    integer.reverse()

    return Data(
        pre=tuple(pre),
        integer=tuple(integer),
        fraction=tuple(fraction),
        post=tuple(post),
        value_as_string=value_as_string,
        value=plain_number(value),
    )


def _formatter(fmt) -> PartsFormatter:
    if fmt is None:
        return NumberFormatter()
    if isinstance(fmt, NumberFormat):
        return NumberFormatter(fmt)
    if isinstance(fmt, PartsFormatter):
        return fmt
    raise TypeError(f"fmt must be a NumberFormat or provide format_to_parts(), but found {fmt_type(fmt)}")


def _part_dict(part: KeyedNumberPart) -> dict[str, Any]:
    if part.type in DIGIT_TYPES:
        return {"type": str(part.type), "value": part.value, "key": part.key, "place": part.place}
    return {"type": str(part.type), "value": part.value, "key": part.key}
